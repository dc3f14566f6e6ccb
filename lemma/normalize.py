"""Final-step normalization and linter-issue attachment."""

from __future__ import annotations

import logging
from typing import Any

from . import constants
from .expressions import json_text
from .trace_types import (
    ExecutionContext,
    ExecutionStep,
    LinterIssue,
    LineStep,
    NodeStep,
    Phase,
)

logger = logging.getLogger(__name__)


def step_scope(step: ExecutionStep) -> dict[str, Any]:
    """Return the mutable variable mapping of *step*."""
    if isinstance(step, LineStep):
        return step.scope
    if isinstance(step, NodeStep):
        return step.execution_context.variables
    raise TypeError(f"Unknown execution step type: {type(step).__name__}")


def step_line(step: ExecutionStep) -> int:
    if isinstance(step, LineStep):
        return step.line
    if isinstance(step, NodeStep):
        return step.execution_context.line_number
    raise TypeError(f"Unknown execution step type: {type(step).__name__}")


def _log_entry_text(value: Any) -> str:
    return value if isinstance(value, str) else json_text(value)


def _terminal_step(terminal_node: Any) -> ExecutionStep:
    if terminal_node is None:
        return LineStep(step=0, line=0, scope={})
    return NodeStep(
        step=0,
        node=terminal_node,
        execution_context=ExecutionContext(
            phase=Phase.EXECUTION,
            description="Program finished",
            line_number=terminal_node.end_point[0] + 1,
            code_snippet="",
        ),
    )


def finalize_steps(
    steps: list[ExecutionStep], terminal_node: Any = None
) -> list[ExecutionStep]:
    """Make the last step carry the aggregated ``__log`` and ``__finalOutput``.

    An empty run gets a single terminal step (a line-0 ``LineStep``, or a
    ``NodeStep`` on *terminal_node* for AST-pattern runs).  Mutates and
    returns *steps*.
    """
    if not steps:
        steps.append(_terminal_step(terminal_node))

    aggregated: list[Any] = []
    for step in steps:
        log = step_scope(step).get(constants.LOG_KEY)
        if isinstance(log, list):
            aggregated.extend(log)

    last = step_scope(steps[-1])
    last[constants.LOG_KEY] = aggregated
    if not isinstance(last.get(constants.FINAL_OUTPUT_KEY), str):
        last[constants.FINAL_OUTPUT_KEY] = "\n".join(
            _log_entry_text(v) for v in aggregated
        )
    return steps


def attach_issues(
    steps: list[ExecutionStep], issues: list[LinterIssue]
) -> list[ExecutionStep]:
    """Copy each linter issue onto every step located on the issue's line."""
    by_line: dict[int, list[LinterIssue]] = {}
    for issue in issues:
        if issue.line is not None:
            by_line.setdefault(issue.line, []).append(issue)
    if not by_line:
        return steps
    attached = 0
    for step in steps:
        matches = by_line.get(step_line(step), [])
        if matches:
            step.issues = [*step.issues, *matches]
            attached += len(matches)
    logger.debug("Attached %d linter issues to steps", attached)
    return steps
