"""Unit tests for the line-pattern simulators (Python, Go, Rust, C++)."""

import pytest

from lemma.normalize import finalize_steps
from lemma.samples import get_sample
from lemma.simulators import (
    SUPPORTED_SIMULATOR_LANGUAGES,
    get_line_simulator,
    simulate_lines,
)
from lemma.simulators.cpp import CppSimulator
from lemma.simulators.go import GoSimulator
from lemma.simulators.python import PythonSimulator
from lemma.simulators.rust import RustSimulator


def _run(code: str, language: str):
    return finalize_steps(simulate_lines(code, language))


def _final(steps):
    return steps[-1].scope


class TestRegistry:
    def test_registered_languages(self):
        assert set(SUPPORTED_SIMULATOR_LANGUAGES) == {"python", "go", "rust", "cpp"}

    @pytest.mark.parametrize(
        "language,cls",
        [
            ("python", PythonSimulator),
            ("go", GoSimulator),
            ("rust", RustSimulator),
            ("cpp", CppSimulator),
        ],
    )
    def test_returns_fresh_instance(self, language, cls):
        first = get_line_simulator(language)
        second = get_line_simulator(language)
        assert isinstance(first, cls)
        assert first is not second

    def test_javascript_is_not_simulated(self):
        with pytest.raises(ValueError, match="javascript"):
            get_line_simulator("javascript")


class TestPythonSimulator:
    def test_assignment_then_print(self):
        steps = _run("a = 1\nprint(a)", "python")
        assert len(steps) == 2
        assert steps[0].line == 1
        assert steps[1].line == 2
        assert _final(steps)["a"] == 1
        assert _final(steps)["__finalOutput"] == "1"

    def test_step_numbers_are_sequential(self):
        steps = _run("a = 1\nb = 2\nprint(a + b)", "python")
        assert [s.step for s in steps] == [0, 1, 2]

    def test_comments_and_blank_lines_are_skipped(self):
        steps = _run("# header\n\nx = 5\n", "python")
        assert [s.line for s in steps] == [3]

    def test_string_concatenation(self):
        code = 'first = "Hello"\nsecond = "World"\nmsg = first + " " + second\nprint(msg)'
        assert _final(_run(code, "python"))["msg"] == "Hello World"

    def test_print_joins_arguments_with_space(self):
        steps = _run('x = 3\nprint("x is", x)', "python")
        assert _final(steps)["__finalOutput"] == "x is 3"

    def test_print_honors_sep(self):
        steps = _run('print("a", "b", sep="-")', "python")
        assert _final(steps)["__finalOutput"] == "a-b"

    def test_fstring(self):
        steps = _run('name = "Ada"\nprint(f"Hi {name}")', "python")
        assert _final(steps)["__finalOutput"] == "Hi Ada"

    def test_augmented_assignment(self):
        steps = _run("x = 1\nx += 2\nprint(x)", "python")
        assert _final(steps)["x"] == 3
        assert _final(steps)["__finalOutput"] == "3"

    def test_string_augmented_assignment(self):
        steps = _run('s = "a"\ns += "b"', "python")
        assert _final(steps)["s"] == "ab"

    def test_comparison_is_not_a_binding(self):
        steps = _run("x = 1\nif x == 1:\n    y = 2", "python")
        assert len(steps) == 3
        assert _final(steps)["x"] == 1
        assert _final(steps)["y"] == 2

    def test_control_step_has_empty_log(self):
        steps = simulate_lines('print("a")\nfor i in range(3):\n    pass', "python")
        assert steps[1].line == 2
        assert steps[1].scope["__log"] == []

    def test_unresolved_expression_kept_as_text(self):
        steps = _run("items = [1, 2]\nn = compute(items)", "python")
        assert _final(steps)["n"] == "compute(items)"

    def test_bare_call_emits_step(self):
        steps = simulate_lines("setup()", "python")
        assert len(steps) == 1
        assert steps[0].scope["__log"] == []

    def test_booleans_and_none(self):
        steps = _run("flag = True\nnothing = None\nprint(flag)", "python")
        assert _final(steps)["flag"] is True
        assert _final(steps)["nothing"] is None
        assert _final(steps)["__finalOutput"] == "True"

    def test_unmatched_statement_is_skipped(self):
        assert simulate_lines("import os", "python") == []


class TestGoSimulator:
    def test_single_line_main(self):
        code = 'package main\nimport "fmt"\nfunc main() { fmt.Println(2) }'
        steps = _run(code, "go")
        assert _final(steps)["__finalOutput"] == "2"

    def test_only_main_body_runs(self):
        code = (
            "package main\n"
            "func main() {\n"
            "    a := 1\n"
            "}\n"
            "func other() {\n"
            "    b := 2\n"
            "}\n"
        )
        steps = _run(code, "go")
        assert _final(steps)["a"] == 1
        assert "b" not in _final(steps)

    def test_single_line_main_closes_region(self):
        code = "func main() { a := 1 }\nfunc other() { b := 2 }"
        steps = _run(code, "go")
        assert "b" not in _final(steps)

    def test_entry_step_has_empty_log(self):
        steps = simulate_lines("func main() {\n    x := 3\n}", "go")
        assert steps[0].line == 1
        assert steps[0].scope == {"__log": []}

    def test_println_and_printf(self):
        code = (
            "func main() {\n"
            "    n := 3\n"
            '    fmt.Println("n:", n)\n'
            '    fmt.Printf("%d items\\n", n)\n'
            "}"
        )
        assert _final(_run(code, "go"))["__finalOutput"] == "n: 3\n3 items"

    def test_increment(self):
        steps = _run("func main() {\n    i := 0\n    i++\n}", "go")
        assert _final(steps)["i"] == 1

    def test_sprintf_binding(self):
        code = 'func main() {\n    s := fmt.Sprintf("%s-%d", "id", 7)\n    fmt.Println(s)\n}'
        assert _final(_run(code, "go"))["s"] == "id-7"


class TestRustSimulator:
    def test_single_line_main(self):
        steps = _run('fn main() { println!("hi"); }', "rust")
        assert _final(steps)["__finalOutput"] == "hi"

    def test_let_mut_with_type(self):
        steps = _run("fn main() {\n    let mut total: i32 = 4;\n    total += 1;\n}", "rust")
        assert _final(steps)["total"] == 5

    def test_inline_named_placeholder(self):
        code = 'fn main() {\n    let name = "Ferris";\n    println!("Hi {name}");\n}'
        assert _final(_run(code, "rust"))["__finalOutput"] == "Hi Ferris"

    def test_format_macro_and_string_from(self):
        code = (
            "fn main() {\n"
            '    let who = String::from("crab");\n'
            '    let msg = format!("hello {}", who);\n'
            "}"
        )
        assert _final(_run(code, "rust"))["msg"] == "hello crab"


class TestCppSimulator:
    def test_cout_chain(self):
        code = "#include <iostream>\nint main() { std::cout << 3 << std::endl; return 0; }"
        assert _final(_run(code, "cpp"))["__finalOutput"] == "3"

    def test_typed_declarations(self):
        code = (
            "int main() {\n"
            "    int a = 15;\n"
            "    const double half = 0.5;\n"
            "    std::string name = \"cpp\";\n"
            "}"
        )
        final = _final(_run(code, "cpp"))
        assert final["a"] == 15
        assert final["half"] == 0.5
        assert final["name"] == "cpp"

    def test_printf(self):
        code = 'int main() {\n    int n = 2;\n    printf("%d apples\\n", n);\n}'
        assert _final(_run(code, "cpp"))["__finalOutput"] == "2 apples"


class TestSamples:
    @pytest.mark.parametrize(
        "language,expected",
        [
            ("python", "3\nHello World\nResult: 53"),
            ("go", "Sum: 30\nHello Go\nProduct: 15"),
            ("rust", "Sum: 15\nHello Rust\nProduct: 21"),
            ("cpp", "Sum: 40\nProduct: 32"),
        ],
    )
    def test_sample_output(self, language, expected):
        steps = _run(get_sample(language), language)
        assert _final(steps)["__finalOutput"] == expected

    def test_last_step_aggregates_logs(self):
        steps = _run(get_sample("python"), "python")
        assert _final(steps)["__log"] == ["3", "Hello World", "Result: 53"]
