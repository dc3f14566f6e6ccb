"""Unit tests for the QuickJS-backed JavaScript stepper."""

import pytest

from lemma.errors import ExecutionFailed
from lemma.js_stepper import JsStepper, instrument, lexical_names, run_javascript


class TestInstrument:
    def test_snapshot_after_each_non_blank_line(self):
        assert instrument("a\n\nb") == "a\n__snapshot(1);\n\nb\n__snapshot(3);"

    def test_lexical_names_deduplicated_in_order(self):
        source = "let a = 1;\nconst b = 2;\nvar c;\nlet a2 = a;\nvar c = 3;"
        assert lexical_names(source) == ["a", "b", "c", "a2"]


class TestRunJavascript:
    def test_log_then_snapshot(self):
        steps = run_javascript("x = 1; console.log(x)")
        assert len(steps) == 2
        assert steps[0].line == 0
        assert steps[0].scope["__log"] == [1]
        assert steps[1].line == 1
        assert steps[-1].scope["x"] == 1
        assert steps[-1].scope["__log"] == [1]
        assert steps[-1].scope["__finalOutput"] == "1"

    def test_let_and_const_are_captured(self):
        steps = run_javascript("let a = 2;\nconst b = a * 3;")
        assert [s.line for s in steps] == [1, 2]
        assert steps[0].scope["a"] == 2
        assert "b" not in steps[0].scope
        assert steps[1].scope["b"] == 6

    def test_functions_are_not_scope_entries(self):
        steps = run_javascript("function f() { return 1; }\nvar y = f();")
        assert steps[-1].scope["y"] == 1
        assert "f" not in steps[-1].scope

    def test_log_arguments_are_separate_entries(self):
        steps = run_javascript('console.log("hi", {a: 1});')
        assert steps[-1].scope["__log"] == ["hi", {"a": 1}]
        assert steps[-1].scope["__finalOutput"] == 'hi\n{"a":1}'

    def test_console_aliases(self):
        steps = run_javascript('console.warn("w");\nconsole.error("e");')
        assert steps[-1].scope["__finalOutput"] == "w\ne"

    def test_undefined_becomes_null(self):
        steps = run_javascript("var u;")
        assert steps[-1].scope["u"] is None

    def test_empty_program_gets_terminal_step(self):
        steps = run_javascript("")
        assert len(steps) == 1
        assert steps[0].scope["__finalOutput"] == ""

    def test_reserved_keys_not_in_user_scope(self):
        steps = run_javascript("var __log = 5;")
        assert steps[-1].scope["__log"] == []

    def test_user_error_raises(self):
        with pytest.raises(ExecutionFailed, match="boom"):
            run_javascript('console.log(1);\nthrow new Error("boom");')

    def test_time_limit_stops_runaway_loop(self):
        with pytest.raises(ExecutionFailed):
            run_javascript("while (true) {}", time_limit=0.5)

    def test_each_run_is_isolated(self):
        run_javascript("var leaked = 1;")
        steps = run_javascript("var other = 2;")
        assert "leaked" not in steps[-1].scope

    def test_stepper_is_reusable_after_failure(self):
        stepper = JsStepper()
        with pytest.raises(ExecutionFailed):
            stepper.run("undefinedFunction();")
        steps = stepper.run("var ok = true;")
        assert steps[-1].scope["ok"] is True
