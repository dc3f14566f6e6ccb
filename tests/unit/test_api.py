"""Tests for the composable API functions."""

import pytest

from lemma import check_syntax, execute_traced, lint_source, simulate
from lemma.run_types import EngineConfig, RunStats
from lemma.samples import SAMPLES, get_sample
from lemma.trace_types import IssueType, LineStep, NodeStep

SOURCE = "a = 1\nb = a + 2\nprint(b)\n"

GO_SOURCE = """\
package main

import "fmt"

func main() {
    x := 4
    fmt.Println(x)
}
"""


class TestCheckSyntax:
    def test_valid_source(self):
        assert check_syntax(SOURCE, "python") is None

    def test_invalid_source(self):
        error = check_syntax("def f(:\n    pass\n", "python")
        assert error is not None
        assert error.line == 1
        assert error.message.startswith("Syntax error on line 1")


class TestLintSource:
    def test_issues_reported(self):
        issues = lint_source("var a = 1;", "javascript")
        assert [i.type for i in issues] == [IssueType.STYLE]

    def test_clean_source(self):
        assert lint_source(SOURCE, "python") == []


class TestSimulate:
    def test_lines_strategy(self):
        steps = simulate(SOURCE, "python")
        assert all(isinstance(s, LineStep) for s in steps)
        assert steps[-1].scope["b"] == 3
        assert steps[-1].scope["__finalOutput"] == "3"

    def test_ast_strategy(self):
        steps = simulate(GO_SOURCE, "go", strategy="ast")
        assert all(isinstance(s, NodeStep) for s in steps)
        assert steps[-1].execution_context.variables["__finalOutput"] == "4"

    def test_ast_strategy_empty_program(self):
        steps = simulate("", "rust", strategy="ast")
        assert len(steps) == 1
        assert steps[0].execution_context.description == "Program finished"

    def test_javascript_is_not_heuristic(self):
        with pytest.raises(ValueError):
            simulate("console.log(1)", "javascript")

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            simulate(SOURCE, "python", strategy="guess")


class TestExecuteTraced:
    def test_returns_steps_and_stats(self):
        steps, stats = execute_traced(SOURCE, "python")
        assert isinstance(stats, RunStats)
        assert stats.step_count == len(steps)
        assert steps[-1].scope["__finalOutput"] == "3"

    def test_javascript(self):
        steps, stats = execute_traced("let n = 2;\nconsole.log(n * 2);", "javascript")
        assert steps[-1].scope["__finalOutput"] == "4"
        assert stats.strategy == "vm"

    def test_ast_config(self):
        steps, stats = execute_traced(
            GO_SOURCE, "go", config=EngineConfig(use_workers=False, heuristic_strategy="ast")
        )
        assert stats.strategy == "ast"
        assert isinstance(steps[0], NodeStep)

    @pytest.mark.parametrize("language", [lang.value for lang in SAMPLES])
    def test_every_sample_runs(self, language):
        steps, _ = execute_traced(get_sample(language), language)
        final = steps[-1]
        scope = final.scope if isinstance(final, LineStep) else final.execution_context.variables
        assert isinstance(scope["__finalOutput"], str)
        assert scope["__finalOutput"]

    def test_javascript_sample_output(self):
        steps, _ = execute_traced(get_sample("javascript"), "javascript")
        assert steps[-1].scope["__finalOutput"] == "Initial a:\n1\nFinal a:\n1"
