"""Unit tests for the timeline controller (cursor, navigation, playback)."""

import asyncio

import pytest

from lemma.timeline import TimelineController
from lemma.trace_types import LineStep


def _steps(n: int):
    return [LineStep(step=i, line=i + 1, scope={"__log": []}) for i in range(n)]


def _loaded(n: int = 5, **kwargs) -> TimelineController:
    timeline = TimelineController(**kwargs)
    timeline.load(_steps(n))
    return timeline


class TestLoad:
    def test_starts_at_first_step(self):
        timeline = _loaded()
        assert timeline.current_index == 0
        assert timeline.current_step().step == 0

    def test_empty_load_is_not_run(self):
        timeline = TimelineController()
        timeline.load([])
        assert timeline.current_index == -1
        assert timeline.current_step() is None

    def test_explicit_index_is_clamped(self):
        timeline = TimelineController()
        timeline.load(_steps(3), index=10)
        assert timeline.current_index == 2

    def test_reset(self):
        timeline = _loaded()
        timeline.reset()
        assert timeline.steps == ()
        assert timeline.current_index == -1

    def test_state_snapshot(self):
        state = _loaded(3).state()
        assert len(state.steps) == 3
        assert state.current_index == 0
        assert state.is_playing is False


class TestNavigation:
    def test_set_index_clamps(self):
        timeline = _loaded()
        timeline.set_index(10)
        assert timeline.current_index == 4
        timeline.set_index(-3)
        assert timeline.current_index == 0

    def test_step_forward_at_end_is_noop(self):
        timeline = _loaded()
        timeline.jump_to_end()
        timeline.step_forward()
        assert timeline.current_index == 4

    def test_step_backward_at_start_is_noop(self):
        timeline = _loaded()
        timeline.step_backward()
        assert timeline.current_index == 0

    def test_forward_and_back(self):
        timeline = _loaded()
        timeline.step_forward()
        timeline.step_forward()
        timeline.step_backward()
        assert timeline.current_index == 1
        timeline.jump_to_start()
        assert timeline.current_index == 0

    def test_navigation_without_steps_stays_not_run(self):
        timeline = TimelineController()
        timeline.step_forward()
        timeline.set_index(3)
        assert timeline.current_index == -1


class TestInterval:
    @pytest.mark.parametrize(
        "speed,expected",
        [(1, 200), (2, 100), (0.5, 400), (3, 67), (100, 20), (0, 200), (None, 200)],
    )
    def test_interval_ms(self, speed, expected):
        assert TimelineController().interval_ms(speed) == expected


class TestPlayback:
    def test_play_runs_to_last_step(self):
        async def scenario():
            timeline = _loaded(4, base_tick_ms=1, min_tick_ms=1)
            task = timeline.play(1.0)
            assert task is not None
            assert timeline.is_playing
            await timeline.wait()
            return timeline

        timeline = asyncio.run(scenario())
        assert timeline.current_index == 3
        assert not timeline.is_playing

    @pytest.mark.parametrize("speed", [0.5, 1.0, 4.0])
    def test_play_terminates_at_any_speed(self, speed):
        async def scenario():
            timeline = _loaded(3, base_tick_ms=2, min_tick_ms=1)
            timeline.play(speed)
            await asyncio.wait_for(timeline.wait(), timeout=5)
            return timeline.current_index

        assert asyncio.run(scenario()) == 2

    def test_play_at_end_does_nothing(self):
        async def scenario():
            timeline = _loaded(3)
            timeline.jump_to_end()
            return timeline.play()

        assert asyncio.run(scenario()) is None

    def test_single_step_does_not_play(self):
        async def scenario():
            return _loaded(1).play()

        assert asyncio.run(scenario()) is None

    def test_pause_stops_advancing(self):
        async def scenario():
            timeline = _loaded(5, base_tick_ms=50, min_tick_ms=50)
            timeline.play()
            timeline.pause()
            await asyncio.sleep(0.12)
            return timeline

        timeline = asyncio.run(scenario())
        assert timeline.current_index == 0
        assert not timeline.is_playing

    def test_load_cancels_playback(self):
        async def scenario():
            timeline = _loaded(5, base_tick_ms=50, min_tick_ms=50)
            timeline.play()
            timeline.load(_steps(2))
            await asyncio.sleep(0.12)
            return timeline

        timeline = asyncio.run(scenario())
        assert timeline.current_index == 0
        assert not timeline.is_playing

    def test_play_requires_running_loop(self):
        with pytest.raises(RuntimeError):
            _loaded(3).play()
