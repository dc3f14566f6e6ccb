"""Execution step data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel


class IssueType(str, Enum):
    PERF = "Perf"
    SECURITY = "Security"
    STYLE = "Style"


class Phase(str, Enum):
    DECLARATION = "declaration"
    INITIALIZATION = "initialization"
    EXECUTION = "execution"
    CALL = "call"
    RETURN = "return"
    CONDITION = "condition"
    LOOP = "loop"
    ASSIGNMENT = "assignment"


class LinterIssue(BaseModel):
    """An advisory finding; never blocks execution."""

    type: IssueType
    message: str
    line: int | None = None


class LineStep(BaseModel):
    """A step located by source line, carrying a scope snapshot.

    ``line`` is 1-based, or 0 for events that have no line (console writes).
    ``scope`` maps variable names to detached value snapshots plus the
    reserved ``__log`` and ``__finalOutput`` keys.
    """

    step: int
    line: int
    scope: dict[str, Any] = {}
    issues: list[LinterIssue] = []


class ExecutionContext(BaseModel):
    phase: Phase
    description: str
    line_number: int
    code_snippet: str
    variables: dict[str, Any] = {}


@dataclass
class NodeStep:
    """A step located by syntax-tree node (AST-pattern simulation).

    ``node`` is a live tree-sitter node; it is ``None`` for steps rehydrated
    from persisted history.
    """

    step: int
    node: Any
    execution_context: ExecutionContext
    issues: list[LinterIssue] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "execution_context": self.execution_context.model_dump(mode="json"),
            "issues": [i.model_dump(mode="json") for i in self.issues],
        }


ExecutionStep = Union[LineStep, NodeStep]


@dataclass(frozen=True)
class ParseError:
    """Positioned, UI-facing description of the first syntax error."""

    message: str
    line: int | None = None
    start_column: int | None = None
    end_column: int | None = None


@dataclass(frozen=True)
class TimelineState:
    steps: tuple[ExecutionStep, ...] = ()
    current_index: int = -1
    is_playing: bool = False
