"""Unit tests for the heuristic execution cache."""

from lemma.cache import ExecutionCache
from lemma.trace_types import LineStep


def _steps():
    return [LineStep(step=0, line=1, scope={"a": 1, "__log": [], "__finalOutput": ""})]


class TestExecutionCache:
    def test_key_format(self):
        assert ExecutionCache.make_key("python", "a = 1") == "python::a = 1"

    def test_hit_returns_same_object(self):
        cache = ExecutionCache()
        steps = _steps()
        cache.set("python", "a = 1", steps)
        assert cache.get("python", "a = 1") is steps
        assert cache.get("python", "a = 1") is cache.get("python", "a = 1")

    def test_single_character_change_misses(self):
        cache = ExecutionCache()
        cache.set("python", "a = 1", _steps())
        assert cache.get("python", "a = 2") is None
        assert cache.get("python", "a = 1 ") is None

    def test_language_is_part_of_key(self):
        cache = ExecutionCache()
        cache.set("go", "x", _steps())
        assert cache.get("rust", "x") is None
        assert "go::x" in cache

    def test_clear(self):
        cache = ExecutionCache()
        cache.set("python", "a", _steps())
        cache.set("python", "b", _steps())
        assert len(cache) == 2
        cache.clear()
        assert len(cache) == 0
