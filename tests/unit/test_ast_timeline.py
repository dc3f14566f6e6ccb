"""Unit tests for the two-pass AST-pattern timeline builder."""

import pytest

from lemma.ast_timeline import AstTimelineBuilder, build_ast_timeline
from lemma.normalize import finalize_steps
from lemma.parser import SourceParser
from lemma.trace_types import NodeStep, Phase

GO_SOURCE = """\
package main

import "fmt"

type Point struct{ X int }

func helper() {}

func main() {
\tx := 2
\tfmt.Println(x)
\tfor i := 0; i < 3; i++ {
\t}
}
"""

PYTHON_SOURCE = """\
def helper():
    return 1

class Box:
    pass

if __name__ == "__main__":
    a = 5
    print(a)
"""

RUST_SOURCE = """\
struct P { x: i32 }

fn main() {
    let v = 3;
    println!("{}", v);
}
"""

CPP_SOURCE = """\
int square(int n) { return n * n; }

int main() {
    int x = 4;
    int y;
    std::cout << x << std::endl;
    return 0;
}
"""


def _build(source: str, language: str):
    tree = SourceParser().parse_sync(source, language)
    return build_ast_timeline(tree, language)


def _phases(steps):
    return [s.execution_context.phase for s in steps]


def _descriptions(steps):
    return [s.execution_context.description for s in steps]


class TestGoTimeline:
    def test_phases_in_order(self):
        steps = _build(GO_SOURCE, "go")
        assert _phases(steps) == [
            Phase.DECLARATION,
            Phase.DECLARATION,
            Phase.EXECUTION,
            Phase.ASSIGNMENT,
            Phase.CALL,
            Phase.LOOP,
        ]

    def test_descriptions(self):
        steps = _build(GO_SOURCE, "go")
        assert _descriptions(steps)[:5] == [
            "Declare type Point",
            "Declare function helper",
            "Start execution of main",
            "Assign 2 to x",
            "Call fmt.Println",
        ]

    def test_steps_carry_live_nodes_and_lines(self):
        steps = _build(GO_SOURCE, "go")
        assert all(isinstance(s, NodeStep) and s.node is not None for s in steps)
        assert steps[3].execution_context.line_number == 10
        assert steps[3].execution_context.code_snippet == "x := 2"

    def test_call_step_carries_output(self):
        steps = _build(GO_SOURCE, "go")
        variables = steps[4].execution_context.variables
        assert variables["__log"] == ["2"]
        assert variables["__finalOutput"] == "2"
        assert variables["x"] == 2

    def test_finalized_output(self):
        tree = SourceParser().parse_sync(GO_SOURCE, "go")
        steps = finalize_steps(build_ast_timeline(tree, "go"), terminal_node=tree.root_node)
        final = steps[-1].execution_context.variables
        assert final["__log"] == ["2"]
        assert final["__finalOutput"] == "2"

    def test_no_main_declarations_only(self):
        steps = _build("package main\n\nfunc helper() {}\n", "go")
        assert _descriptions(steps) == ["Declare function helper"]


class TestPythonTimeline:
    def test_main_guard_entry(self):
        steps = _build(PYTHON_SOURCE, "python")
        assert _descriptions(steps) == [
            "Define function helper",
            "Define class Box",
            "Start execution of __main__ block",
            "Assign 5 to a",
            "Call print",
        ]

    def test_module_fallback(self):
        steps = _build("a = 1\nprint(a)\n", "python")
        assert _descriptions(steps) == [
            "Start execution of module",
            "Assign 1 to a",
            "Call print",
        ]
        assert steps[-1].execution_context.variables["__finalOutput"] == "1"

    def test_annotation_without_value_is_initialization(self):
        steps = _build("count: int\n", "python")
        assert _phases(steps)[-1] == Phase.INITIALIZATION
        assert steps[-1].execution_context.description == "Declare count"


class TestRustTimeline:
    def test_struct_and_macro_call(self):
        steps = _build(RUST_SOURCE, "rust")
        assert _descriptions(steps) == [
            "Define struct P",
            "Start execution of main",
            "Assign 3 to v",
            "Call println!",
        ]
        assert steps[-1].execution_context.variables["__log"] == ["3"]


class TestCppTimeline:
    def test_phases(self):
        steps = _build(CPP_SOURCE, "cpp")
        assert _phases(steps) == [
            Phase.DECLARATION,
            Phase.EXECUTION,
            Phase.ASSIGNMENT,
            Phase.INITIALIZATION,
            Phase.CALL,
            Phase.RETURN,
        ]
        assert _descriptions(steps)[0] == "Define function square"
        assert _descriptions(steps)[3] == "Declare y"
        assert _descriptions(steps)[4] == "Call std::cout"


class TestBuilder:
    def test_javascript_unsupported(self):
        with pytest.raises(ValueError):
            AstTimelineBuilder("javascript")

    def test_step_numbers_sequential(self):
        steps = _build(CPP_SOURCE, "cpp")
        assert [s.step for s in steps] == list(range(len(steps)))
