"""Execution cache for heuristic runs, keyed on the exact source text."""

from __future__ import annotations

import logging

from . import constants
from .trace_types import ExecutionStep

logger = logging.getLogger(__name__)


class ExecutionCache:
    """In-memory ``language::code`` → steps mapping owned by one session.

    Keys are not normalized: a single changed character is a miss.  A hit
    returns the stored list itself, so repeated lookups yield the same object.
    """

    def __init__(self):
        self._entries: dict[str, list[ExecutionStep]] = {}

    @staticmethod
    def make_key(language: str, code: str) -> str:
        return f"{language}{constants.CACHE_KEY_SEPARATOR}{code}"

    def get(self, language: str, code: str) -> list[ExecutionStep] | None:
        steps = self._entries.get(self.make_key(language, code))
        logger.debug("Execution cache %s for %s", "hit" if steps is not None else "miss", language)
        return steps

    def set(self, language: str, code: str, steps: list[ExecutionStep]) -> None:
        self._entries[self.make_key(language, code)] = steps

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
