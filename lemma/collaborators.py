"""Interfaces to the surfaces around the engine: notifications and the editor."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Transient user-facing messages (toasts, status lines)."""

    @abstractmethod
    def success(self, message: str) -> None: ...

    @abstractmethod
    def error(self, message: str) -> None: ...


class LoggingNotifier(Notifier):
    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.error(message)


class EditorSurface(ABC):
    """The code editor the session reads from and marks errors in."""

    @abstractmethod
    def read(self) -> tuple[str, str]:
        """Return the current ``(code, language)``."""

    @abstractmethod
    def highlight(self, line: int, start_column: int, end_column: int) -> None: ...

    @abstractmethod
    def clear_highlight(self) -> None: ...
