"""Error taxonomy for the execution timeline engine."""

from __future__ import annotations


class LemmaError(Exception):
    """Base class for every error raised by the engine."""

    pass


class GrammarUnavailable(LemmaError):
    """Raised when a guest language's grammar cannot be loaded."""

    def __init__(self, language: str, reason: str = ""):
        self.language = language
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Could not load grammar for {language}{detail}")


class SyntaxInvalid(LemmaError):
    """Raised when the parsed tree contains an error node."""

    def __init__(
        self,
        message: str,
        line: int | None = None,
        start_column: int | None = None,
        end_column: int | None = None,
    ):
        self.message = message
        self.line = line
        self.start_column = start_column
        self.end_column = end_column
        super().__init__(message)


class ExecutionFailed(LemmaError):
    """Raised when the embedded VM reports a runtime error."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class WorkerUnavailable(LemmaError):
    """Raised internally when no isolated worker context can be used."""

    pass


class RunInProgress(LemmaError):
    """Raised when a run is requested while another is still in flight."""

    pass
