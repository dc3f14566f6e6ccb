"""Run pipeline data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class EngineConfig:
    """Groups session configuration."""

    use_workers: bool = True
    max_workers: int = 1
    heuristic_strategy: str = constants.STRATEGY_LINES
    vm_time_limit: float = 5.0  # seconds, 0 disables
    vm_memory_limit: int = 64 * 1024 * 1024  # bytes, 0 disables
    history_limit: int = constants.HISTORY_LIMIT
    history_storage_key: str = constants.HISTORY_STORAGE_KEY
    base_tick_ms: int = constants.BASE_TICK_MS
    min_tick_ms: int = constants.MIN_TICK_MS


@dataclass
class RunStats:
    """Timing and size statistics for one run."""

    language: str = ""
    source_bytes: int = 0
    source_lines: int = 0
    strategy: str = ""

    # Stage timings (seconds)
    parse_time: float = 0.0
    lint_time: float = 0.0
    execution_time: float = 0.0
    total_time: float = 0.0

    step_count: int = 0
    issue_count: int = 0
    cache_hit: bool = False
    executed_in_worker: bool = False

    def report(self) -> str:
        where = "worker" if self.executed_in_worker else "in-process"
        if self.cache_hit:
            where = "cache"
        lines = [
            "═══ Run Statistics ═══",
            f"  Source: {self.source_lines} lines, {self.source_bytes} bytes ({self.language}, {self.strategy})",
            "",
            f"  {'Stage':<20} {'Time':>10}  {'Output':>30}",
            f"  {'─' * 20} {'─' * 10}  {'─' * 30}",
        ]
        stages = [
            ("Parse", self.parse_time, ""),
            ("Lint", self.lint_time, f"{self.issue_count} issues"),
            ("Execute", self.execution_time, f"{self.step_count} steps ({where})"),
        ]
        for name, t, output in stages:
            time_str = f"{t * 1000:>8.1f}ms"
            lines.append(f"  {name:<20} {time_str:>10}  {output:>30}")

        lines.append(f"  {'─' * 20} {'─' * 10}  {'─' * 30}")
        lines.append(f"  {'Total':<20} {self.total_time * 1000:>8.1f}ms")
        return "\n".join(lines)
