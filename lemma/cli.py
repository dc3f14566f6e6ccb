"""Command-line entry point: run a program and print its execution timeline."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from . import constants
from .api import check_syntax, lint_source
from .errors import LemmaError
from .history import step_to_dict
from .normalize import step_scope
from .run import ExecutionSession
from .run_types import EngineConfig
from .samples import get_sample
from .storage import JsonFileStore
from .trace_types import ExecutionStep, LineStep, NodeStep

logger = logging.getLogger(__name__)


def _format_scope(scope: dict) -> str:
    visible = {k: v for k, v in scope.items() if k not in constants.RESERVED_SCOPE_KEYS}
    return " ".join(f"{k}={json.dumps(v, default=str)}" for k, v in visible.items())


def format_step(step: ExecutionStep) -> str:
    if isinstance(step, LineStep):
        head = f"  [{step.step:>3}] line {step.line:<4}"
        body = _format_scope(step.scope)
    elif isinstance(step, NodeStep):
        ctx = step.execution_context
        head = f"  [{step.step:>3}] line {ctx.line_number:<4} {ctx.phase.value:<14} {ctx.description}"
        body = _format_scope(ctx.variables)
    else:
        raise TypeError(f"Unknown execution step type: {type(step).__name__}")
    lines = [f"{head} {body}".rstrip()]
    for issue in step.issues:
        lines.append(f"        ! {issue.type.value}: {issue.message}")
    return "\n".join(lines)


async def _play(session: ExecutionSession, speed: float):
    timeline = session.timeline
    timeline.jump_to_start()
    shown = timeline.current_index
    print(format_step(timeline.current_step()))
    timeline.play(speed)
    while timeline.is_playing:
        await asyncio.sleep(timeline.interval_ms(speed) / 2000)
        while shown < timeline.current_index:
            shown += 1
            print(format_step(timeline.steps[shown]))
    while shown < timeline.current_index:
        shown += 1
        print(format_step(timeline.steps[shown]))


async def _run(args, source: str, config: EngineConfig) -> int:
    storage = JsonFileStore(args.history) if args.history else None
    session = ExecutionSession(config=config, storage=storage)
    try:
        steps = await session.run(source, args.language)
        if args.json:
            print(json.dumps([step_to_dict(s) for s in steps], indent=2, default=str))
        elif args.play:
            await _play(session, args.play)
        else:
            print("═══ Timeline ═══")
            for step in steps:
                print(format_step(step))
        if not args.json:
            final = step_scope(steps[-1]).get(constants.FINAL_OUTPUT_KEY, "")
            print("\n═══ Output ═══")
            print(final)
        if args.stats and session.last_stats is not None:
            print()
            print(session.last_stats.report())
    finally:
        session.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="lemma", description="Step through a program as an execution timeline")
    parser.add_argument("file", nargs="?",
                        help="Source file to run (default: built-in sample)")
    parser.add_argument("--language", "-l", default=constants.Language.JAVASCRIPT.value,
                        choices=constants.SUPPORTED_LANGUAGES,
                        help="Guest language (default: javascript)")
    parser.add_argument("--strategy", "-s", default=constants.STRATEGY_LINES,
                        choices=constants.HEURISTIC_STRATEGIES,
                        help="Heuristic strategy for non-JavaScript languages")
    parser.add_argument("--no-workers", action="store_true",
                        help="Execute on the calling thread instead of a worker process")
    parser.add_argument("--play", type=float, metavar="SPEED", default=None,
                        help="Replay the timeline at SPEED (1.0 = 200ms per step)")
    parser.add_argument("--lint-only", action="store_true",
                        help="Only print linter issues")
    parser.add_argument("--check-only", action="store_true",
                        help="Only check syntax")
    parser.add_argument("--json", action="store_true",
                        help="Print steps as JSON")
    parser.add_argument("--stats", action="store_true",
                        help="Print run statistics")
    parser.add_argument("--history", metavar="PATH", default=None,
                        help="Persist run history to a JSON file")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    if not args.file:
        source = get_sample(args.language)
        print("No file provided. Using built-in demo:\n")
        print(source)
    else:
        source = Path(args.file).read_text(encoding="utf-8")

    try:
        if args.check_only:
            error = check_syntax(source, args.language)
            print(error.message if error else "Syntax OK")
            return 1 if error else 0
        if args.lint_only:
            issues = lint_source(source, args.language)
            for issue in issues:
                print(f"  line {issue.line}: [{issue.type.value}] {issue.message}")
            print(f"{len(issues)} issue(s)")
            return 0
        config = EngineConfig(
            use_workers=not args.no_workers, heuristic_strategy=args.strategy
        )
        return asyncio.run(_run(args, source, config))
    except LemmaError as exc:
        logger.debug("Run failed", exc_info=True)
        print(f"error: {exc}")
        return 1
