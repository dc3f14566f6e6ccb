"""Execution session — orchestrates parse → lint → execute → timeline → history."""

from __future__ import annotations

import logging
import time

from . import constants
from .ast_timeline import build_ast_timeline
from .cache import ExecutionCache
from .collaborators import EditorSurface, LoggingNotifier, Notifier
from .dispatcher import IsolationDispatcher
from .errors import ExecutionFailed, GrammarUnavailable, RunInProgress, SyntaxInvalid
from .expressions import json_text
from .history import RunHistoryEntry, RunHistoryStore
from .linter import lint
from .normalize import attach_issues, finalize_steps, step_scope
from .parser import SourceParser, describe_error, find_first_error
from .run_types import EngineConfig, RunStats
from .storage import KeyValueStore, MemoryStore
from .timeline import TimelineController
from .trace_types import ExecutionStep, ParseError, TimelineState

logger = logging.getLogger(__name__)


def _format_log_entry(value) -> str:
    return value if isinstance(value, str) else json_text(value)


class ExecutionSession:
    """One user's workspace: current code, timeline, cache and run history.

    Collaborators are injected; anything omitted gets an in-memory default.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        parser: SourceParser | None = None,
        dispatcher: IsolationDispatcher | None = None,
        cache: ExecutionCache | None = None,
        storage: KeyValueStore | None = None,
        history: RunHistoryStore | None = None,
        notifier: Notifier | None = None,
        editor: EditorSurface | None = None,
    ):
        self.config = config or EngineConfig()
        if self.config.heuristic_strategy not in constants.HEURISTIC_STRATEGIES:
            raise ValueError(f"Unknown heuristic strategy: {self.config.heuristic_strategy}")
        self._parser = parser or SourceParser()
        self._dispatcher = dispatcher or IsolationDispatcher(
            use_workers=self.config.use_workers, max_workers=self.config.max_workers
        )
        self.cache = cache or ExecutionCache()
        self.history = history or RunHistoryStore(
            storage=storage or MemoryStore(),
            key=self.config.history_storage_key,
            limit=self.config.history_limit,
        )
        self._notifier = notifier or LoggingNotifier()
        self._editor = editor
        self.timeline = TimelineController(
            base_tick_ms=self.config.base_tick_ms, min_tick_ms=self.config.min_tick_ms
        )

        self.code = ""
        self.language = constants.DYNAMIC_LANGUAGE.value
        self.parse_error: ParseError | None = None
        self.last_stats: RunStats | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    # ── edits ────────────────────────────────────────────────────

    def _clear_parse_error(self):
        self.parse_error = None
        if self._editor is not None:
            self._editor.clear_highlight()

    def set_code(self, code: str) -> None:
        self.code = code
        self.timeline.reset()
        self._clear_parse_error()

    def set_language(self, language: str) -> None:
        self.language = constants.to_language(language).value
        self.timeline.reset()
        self._clear_parse_error()

    # ── run ──────────────────────────────────────────────────────

    async def run(self, code: str, language: str) -> list[ExecutionStep]:
        """Validate, lint and execute *code*; load the steps into the timeline.

        Raises ``RunInProgress`` if another run is in flight, ``SyntaxInvalid``
        when the source does not parse, ``GrammarUnavailable`` and
        ``ExecutionFailed`` from the respective stages.
        """
        lang = constants.to_language(language)
        if self._running:
            raise RunInProgress("A run is already in progress")
        self._running = True
        try:
            return await self._run(code, lang)
        finally:
            self._running = False

    async def run_from_editor(self, editor: EditorSurface | None = None) -> list[ExecutionStep]:
        editor = editor or self._editor
        if editor is None:
            raise ValueError("No editor surface to read from")
        code, language = editor.read()
        return await self.run(code, language)

    def _reject(self, error: ParseError):
        self.parse_error = error
        if self._editor is not None and error.line is not None:
            self._editor.highlight(
                error.line, error.start_column or 1, error.end_column or 1
            )
        self._notifier.error(error.message)
        raise SyntaxInvalid(
            error.message,
            line=error.line,
            start_column=error.start_column,
            end_column=error.end_column,
        )

    async def _run(self, code: str, lang: constants.Language) -> list[ExecutionStep]:
        pipeline_start = time.perf_counter()
        stats = RunStats(
            language=lang.value,
            source_bytes=len(code.encode("utf-8")),
            source_lines=code.count("\n") + 1,
        )
        self.code = code
        self.language = lang.value
        self.timeline.reset()
        self._clear_parse_error()

        # 1. Parse and gate on syntax errors
        t0 = time.perf_counter()
        try:
            tree = await self._parser.parse(code, lang.value)
        except GrammarUnavailable as exc:
            self._notifier.error(str(exc))
            raise
        stats.parse_time = time.perf_counter() - t0
        error_node = find_first_error(tree)
        if error_node is not None:
            logger.info("Rejected %s source: syntax error", lang.value)
            self._reject(describe_error(error_node))

        # 2. Lint
        t0 = time.perf_counter()
        issues = lint(tree, self._parser.grammar(lang.value), lang.value)
        stats.lint_time = time.perf_counter() - t0
        stats.issue_count = len(issues)

        # 3. Execute
        t0 = time.perf_counter()
        try:
            steps, cached = await self._execute(code, lang, tree, stats)
        except ExecutionFailed as exc:
            self._notifier.error(exc.message or "An unknown error occurred during execution.")
            raise
        stats.execution_time = time.perf_counter() - t0

        if not cached:
            attach_issues(steps, issues)
            if lang != constants.DYNAMIC_LANGUAGE:
                self.cache.set(lang.value, code, steps)

        # 4. Timeline, history, notification
        self.timeline.load(steps)
        self.history.add(code, lang.value, steps, self.timeline.current_index)
        self._notify_success(lang, steps)

        stats.step_count = len(steps)
        stats.total_time = time.perf_counter() - pipeline_start
        self.last_stats = stats
        logger.info(
            "Run complete: %s, %d steps (%s) in %.1fms",
            lang.value,
            stats.step_count,
            stats.strategy,
            stats.total_time * 1000,
        )
        return list(steps)

    async def _execute(
        self, code: str, lang: constants.Language, tree, stats: RunStats
    ) -> tuple[list[ExecutionStep], bool]:
        if lang == constants.DYNAMIC_LANGUAGE:
            stats.strategy = constants.STRATEGY_VM
            steps = await self._dispatcher.run_dynamic(
                code,
                time_limit=self.config.vm_time_limit,
                memory_limit=self.config.vm_memory_limit,
            )
            stats.executed_in_worker = self._dispatcher.last_run_in_worker
            return steps, False

        stats.strategy = self.config.heuristic_strategy
        cached = self.cache.get(lang.value, code)
        if cached is not None:
            stats.cache_hit = True
            return cached, True

        if self.config.heuristic_strategy == constants.STRATEGY_AST:
            # Node steps hold live tree nodes, so this strategy stays in-process.
            steps = finalize_steps(
                build_ast_timeline(tree, lang.value), terminal_node=tree.root_node
            )
        else:
            steps = await self._dispatcher.run_heuristic(code, lang.value)
            stats.executed_in_worker = self._dispatcher.last_run_in_worker
        return steps, False

    def _notify_success(self, lang: constants.Language, steps: list[ExecutionStep]):
        name = constants.LANGUAGE_DISPLAY_NAMES[lang]
        log = step_scope(steps[-1]).get(constants.LOG_KEY) if steps else None
        if log:
            self._notifier.success(
                f"{name} execution completed!\nOutput: {_format_log_entry(log[-1])}"
            )
        else:
            self._notifier.success(f"{name} execution completed!")

    # ── history ──────────────────────────────────────────────────

    def get_run_history(self) -> tuple[RunHistoryEntry, ...]:
        return self.history.entries

    def restore(self, entry_id: str) -> RunHistoryEntry | None:
        """Make a past run the active one. Returns ``None`` for unknown ids."""
        entry = self.history.restore(entry_id)
        if entry is None:
            return None
        self.code = entry.code
        self.language = entry.language
        self._clear_parse_error()
        self.timeline.load(entry.execution_steps, index=entry.current_step_index)
        logger.info("Restored run %s (%s)", entry.id, entry.language)
        return entry

    def clear_history(self) -> None:
        self.history.clear()

    # ── timeline ─────────────────────────────────────────────────

    def get_timeline_state(self) -> TimelineState:
        return self.timeline.state()

    def close(self) -> None:
        self.timeline.close()
        self._dispatcher.close()
