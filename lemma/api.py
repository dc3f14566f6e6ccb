"""Composable API functions for the execution timeline pipeline.

Each function corresponds to a CLI workflow (--check-only, --lint-only, a
full run) but is callable programmatically without argparse.
"""

from __future__ import annotations

import asyncio
import logging

from . import constants
from .ast_timeline import build_ast_timeline
from .linter import lint
from .normalize import finalize_steps
from .parser import SourceParser, describe_error, find_first_error
from .run import ExecutionSession
from .run_types import EngineConfig, RunStats
from .simulators import simulate_lines
from .trace_types import ExecutionStep, LinterIssue, ParseError

logger = logging.getLogger(__name__)


def check_syntax(
    source: str, language: str, parser: SourceParser | None = None
) -> ParseError | None:
    """Return the first syntax error in *source*, or ``None`` if it parses."""
    parser = parser or SourceParser()
    tree = parser.parse_sync(source, language)
    error_node = find_first_error(tree)
    return describe_error(error_node) if error_node is not None else None


def lint_source(
    source: str, language: str, parser: SourceParser | None = None
) -> list[LinterIssue]:
    parser = parser or SourceParser()
    tree = parser.parse_sync(source, language)
    return lint(tree, parser.grammar(language), language)


def simulate(
    source: str,
    language: str,
    strategy: str = constants.STRATEGY_LINES,
    parser: SourceParser | None = None,
) -> list[ExecutionStep]:
    """Run one heuristic strategy in-process, without the syntax gate."""
    lang = constants.to_language(language)
    if lang not in constants.HEURISTIC_LANGUAGES:
        raise ValueError(f"{lang.value} is not a heuristic language")
    if strategy == constants.STRATEGY_AST:
        parser = parser or SourceParser()
        tree = parser.parse_sync(source, lang.value)
        return finalize_steps(
            build_ast_timeline(tree, lang.value), terminal_node=tree.root_node
        )
    if strategy != constants.STRATEGY_LINES:
        raise ValueError(f"Unknown heuristic strategy: {strategy}")
    return finalize_steps(simulate_lines(source, lang.value))


def execute_traced(
    source: str,
    language: str,
    config: EngineConfig | None = None,
) -> tuple[list[ExecutionStep], RunStats]:
    """Full pipeline (gate, lint, execute) in a throwaway session."""
    session = ExecutionSession(config=config or EngineConfig(use_workers=False))
    try:
        steps = asyncio.run(session.run(source, language))
    finally:
        session.close()
    logger.debug("execute_traced: %d steps", len(steps))
    return steps, session.last_stats
