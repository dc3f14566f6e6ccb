"""Timeline controller: the scrubbable cursor over a run's steps."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Sequence

from . import constants
from .trace_types import ExecutionStep, TimelineState

logger = logging.getLogger(__name__)


class TimelineController:
    """Owns ``steps`` and ``current_index``; the only writer of the cursor.

    ``current_index`` is ``-1`` when nothing is loaded and otherwise stays in
    ``[0, len(steps) - 1]``.  Playback is an asyncio task that advances one
    step per tick and stops itself on the last step.
    """

    def __init__(
        self,
        base_tick_ms: int = constants.BASE_TICK_MS,
        min_tick_ms: int = constants.MIN_TICK_MS,
    ):
        self._base_tick_ms = base_tick_ms
        self._min_tick_ms = min_tick_ms
        self._steps: tuple[ExecutionStep, ...] = ()
        self._index = constants.NOT_RUN_INDEX
        self._task: asyncio.Task | None = None

    # ── accessors ────────────────────────────────────────────────

    @property
    def steps(self) -> tuple[ExecutionStep, ...]:
        return self._steps

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def is_playing(self) -> bool:
        return self._task is not None and not self._task.done()

    def current_step(self) -> ExecutionStep | None:
        return self._steps[self._index] if self._index >= 0 else None

    def state(self) -> TimelineState:
        return TimelineState(
            steps=self._steps, current_index=self._index, is_playing=self.is_playing
        )

    def interval_ms(self, speed: float | None = 1.0) -> int:
        """Tick length for *speed*; a zero or missing speed counts as 1."""
        effective = speed or 1
        return max(self._min_tick_ms, math.floor(self._base_tick_ms / effective + 0.5))

    # ── mutators ─────────────────────────────────────────────────

    def load(self, steps: Sequence[ExecutionStep], index: int | None = None) -> None:
        self._cancel_playback()
        self._steps = tuple(steps)
        if not self._steps:
            self._index = constants.NOT_RUN_INDEX
        elif index is None:
            self._index = 0
        else:
            self._index = self._clamp(index)
        logger.debug("Timeline loaded %d steps at %d", len(self._steps), self._index)

    def reset(self) -> None:
        self._cancel_playback()
        self._steps = ()
        self._index = constants.NOT_RUN_INDEX

    def _clamp(self, index: int) -> int:
        if not self._steps:
            return constants.NOT_RUN_INDEX
        return min(max(index, 0), len(self._steps) - 1)

    def set_index(self, index: int) -> None:
        self._index = self._clamp(index)

    def step_forward(self) -> None:
        self._index = self._clamp(self._index + 1)

    def step_backward(self) -> None:
        self._index = self._clamp(self._index - 1)

    def jump_to_start(self) -> None:
        self._index = self._clamp(0)

    def jump_to_end(self) -> None:
        self._index = self._clamp(len(self._steps) - 1)

    # ── playback ─────────────────────────────────────────────────

    def play(self, speed: float | None = 1.0) -> asyncio.Task | None:
        """Start playback on the running loop. Returns the task, if any."""
        self._cancel_playback()
        if len(self._steps) < 2 or self._index >= len(self._steps) - 1:
            return None
        interval = self.interval_ms(speed) / 1000
        self._task = asyncio.get_running_loop().create_task(self._advance(interval))
        return self._task

    async def _advance(self, interval: float) -> None:
        while self._index < len(self._steps) - 1:
            await asyncio.sleep(interval)
            self.step_forward()
        logger.debug("Playback reached step %d", self._index)

    def pause(self) -> None:
        self._cancel_playback()

    def close(self) -> None:
        self._cancel_playback()

    def _cancel_playback(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Block until playback finishes or is cancelled."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
