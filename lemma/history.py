"""Run history: the most recent runs, newest first, persisted as JSON."""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable

from . import constants
from .normalize import step_scope
from .storage import KeyValueStore, MemoryStore
from .trace_types import ExecutionContext, ExecutionStep, LineStep, LinterIssue, NodeStep

logger = logging.getLogger(__name__)

STEP_KIND_LINE = "line"
STEP_KIND_NODE = "node"


def step_to_dict(step: ExecutionStep) -> dict[str, Any]:
    if isinstance(step, LineStep):
        return {"kind": STEP_KIND_LINE, **step.model_dump(mode="json")}
    if isinstance(step, NodeStep):
        return {"kind": STEP_KIND_NODE, **step.to_dict()}
    raise TypeError(f"Unknown execution step type: {type(step).__name__}")


def step_from_dict(data: dict[str, Any]) -> ExecutionStep:
    kind = data.get("kind", STEP_KIND_LINE)
    if kind == STEP_KIND_LINE:
        return LineStep.model_validate({k: v for k, v in data.items() if k != "kind"})
    if kind == STEP_KIND_NODE:
        return NodeStep(
            step=data["step"],
            node=None,
            execution_context=ExecutionContext.model_validate(data["execution_context"]),
            issues=[LinterIssue.model_validate(i) for i in data.get("issues", [])],
        )
    raise ValueError(f"Unknown execution step kind: {kind}")


def _final_output(steps: list[ExecutionStep]) -> str | None:
    if not steps:
        return None
    value = step_scope(steps[-1]).get(constants.FINAL_OUTPUT_KEY)
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class RunHistoryEntry:
    id: str
    code: str
    language: str
    execution_steps: tuple[ExecutionStep, ...] = ()
    current_step_index: int = constants.NOT_RUN_INDEX
    timestamp: int = 0  # epoch milliseconds
    final_output: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "language": self.language,
            "executionSteps": [step_to_dict(s) for s in self.execution_steps],
            "currentStepIndex": self.current_step_index,
            "finalOutput": self.final_output,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunHistoryEntry:
        return cls(
            id=str(data["id"]),
            code=data.get("code", ""),
            language=data.get("language", ""),
            execution_steps=tuple(
                step_from_dict(s) for s in data.get("executionSteps") or []
            ),
            current_step_index=data.get("currentStepIndex", constants.NOT_RUN_INDEX),
            timestamp=int(data.get("timestamp", 0)),
            final_output=data.get("finalOutput"),
        )


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class RunHistoryStore:
    """Bounded, newest-first run history backed by a ``KeyValueStore``.

    The persisted list is loaded once on construction and rewritten on every
    change.  Storage failures are logged and never reach the caller.
    """

    storage: KeyValueStore = field(default_factory=MemoryStore)
    key: str = constants.HISTORY_STORAGE_KEY
    limit: int = constants.HISTORY_LIMIT
    id_factory: Callable[[], str] = _new_id
    clock: Callable[[], int] = _epoch_millis
    _entries: list[RunHistoryEntry] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        self._hydrate()

    def _hydrate(self):
        try:
            raw = self.storage.get(self.key)
            if raw is None:
                return
            parsed = json.loads(raw)
            self._entries = [RunHistoryEntry.from_dict(e) for e in parsed][: self.limit]
            logger.info("Hydrated %d run history entries", len(self._entries))
        except Exception:
            logger.warning("Could not load run history from %s", self.key, exc_info=True)
            self._entries = []

    def _persist(self):
        try:
            payload = json.dumps([e.to_dict() for e in self._entries])
            self.storage.set(self.key, payload)
        except Exception:
            logger.warning("Could not persist run history to %s", self.key, exc_info=True)

    @property
    def entries(self) -> tuple[RunHistoryEntry, ...]:
        return tuple(self._entries)

    def add(
        self,
        code: str,
        language: str,
        steps: list[ExecutionStep],
        current_index: int,
    ) -> RunHistoryEntry:
        entry = RunHistoryEntry(
            id=self.id_factory(),
            code=code,
            language=language,
            execution_steps=tuple(steps),
            current_step_index=current_index,
            timestamp=self.clock(),
            final_output=_final_output(steps),
        )
        self._entries = [entry, *self._entries][: self.limit]
        self._persist()
        return entry

    def get(self, entry_id: str) -> RunHistoryEntry | None:
        return next((e for e in self._entries if e.id == entry_id), None)

    def restore(self, entry_id: str) -> RunHistoryEntry | None:
        entry = self.get(entry_id)
        if entry is None:
            logger.info("Run history entry %s not found", entry_id)
        return entry

    def clear(self) -> None:
        self._entries = []
        self._persist()

    def __len__(self) -> int:
        return len(self._entries)
