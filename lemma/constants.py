"""Named constants for guest languages, reserved scope keys and engine defaults."""

from __future__ import annotations

from enum import Enum


class Language(str, Enum):
    """Guest languages the engine can visualize."""

    JAVASCRIPT = "javascript"
    PYTHON = "python"
    GO = "go"
    RUST = "rust"
    CPP = "cpp"


DYNAMIC_LANGUAGE = Language.JAVASCRIPT

HEURISTIC_LANGUAGES: tuple[Language, ...] = (
    Language.PYTHON,
    Language.GO,
    Language.RUST,
    Language.CPP,
)

SUPPORTED_LANGUAGES: tuple[str, ...] = tuple(lang.value for lang in Language)

LANGUAGE_DISPLAY_NAMES: dict[Language, str] = {
    Language.JAVASCRIPT: "JavaScript",
    Language.PYTHON: "Python",
    Language.GO: "Go",
    Language.RUST: "Rust",
    Language.CPP: "C++",
}

# Reserved scope keys
LOG_KEY = "__log"
FINAL_OUTPUT_KEY = "__finalOutput"
RESERVED_SCOPE_KEYS: frozenset[str] = frozenset({LOG_KEY, FINAL_OUTPUT_KEY})

# VM instrumentation
SNAPSHOT_FUNCTION = "__snapshot"
HOST_SNAPSHOT_FUNCTION = "__lemma_host_snapshot"
HOST_LOG_FUNCTION = "__lemma_host_log"

CACHE_KEY_SEPARATOR = "::"

HISTORY_LIMIT = 50
HISTORY_STORAGE_KEY = "lemma.runHistory"

# Playback cadence (milliseconds)
BASE_TICK_MS = 200
MIN_TICK_MS = 20

NOT_RUN_INDEX = -1

STRATEGY_LINES = "lines"
STRATEGY_AST = "ast"
STRATEGY_VM = "vm"
HEURISTIC_STRATEGIES: tuple[str, ...] = (STRATEGY_LINES, STRATEGY_AST)

WORKER_KIND_DYNAMIC = "dynamic"
WORKER_KIND_HEURISTIC = "heuristic"

SYNTAX_ERROR_MESSAGE = "Syntax error{where}. Please fix the code before running."


def to_language(language: str | Language) -> Language:
    """Coerce *language* to a :class:`Language`.

    Raises ``ValueError`` for identifiers outside the supported set.
    """
    try:
        return Language(language)
    except ValueError as exc:
        raise ValueError(
            f"Unsupported language: {language!r}. "
            f"Supported: {', '.join(SUPPORTED_LANGUAGES)}"
        ) from exc
