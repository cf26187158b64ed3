"""Tests for the per-run PipelineContext cache."""

import threading

from lore_bootstrap.pipeline_context import PipelineContext


def test_cache_result_round_trip():
    ctx = PipelineContext()
    ctx.cache_result("architecture", "layers", {"n": 3})
    assert ctx.has_cached_result("architecture", "layers")
    assert ctx.get_cached_result("architecture", "layers") == {"n": 3}
    assert ctx.get_cached_result("architecture", "other", "dflt") == "dflt"
    assert not ctx.has_cached_result("code-pattern", "layers")


def test_last_write_wins():
    ctx = PipelineContext()
    ctx.cache_result("a", "b", 1)
    ctx.cache_result("a", "b", 2)
    assert ctx.get_cached_result("a", "b") == 2


def test_cached_none_is_present():
    ctx = PipelineContext()
    ctx.cache_result("a", "b", None)
    assert ctx.has_cached_result("a", "b")


def test_get_or_compute_runs_once():
    ctx = PipelineContext()
    calls = []

    def compute():
        calls.append(1)
        return ["x"]

    assert ctx.get_or_compute("deps", compute) == ["x"]
    assert ctx.get_or_compute("deps", compute) == ["x"]
    assert len(calls) == 1
    assert ctx.get_computed("deps") == ["x"]


def test_get_or_compute_caches_falsy_values():
    ctx = PipelineContext()
    calls = []
    ctx.get_or_compute("empty", lambda: calls.append(1) or 0)
    ctx.get_or_compute("empty", lambda: calls.append(1) or 0)
    assert len(calls) == 1


def test_get_or_compute_concurrent():
    ctx = PipelineContext()
    calls = []
    start = threading.Barrier(4)

    def compute():
        calls.append(1)
        return 7

    def worker():
        start.wait()
        ctx.get_or_compute("k", compute)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(calls) == 1


def test_clear():
    ctx = PipelineContext()
    ctx.cache_result("a", "b", 1)
    ctx.set_computed("k", 2)
    assert len(ctx) == 2
    ctx.clear()
    assert len(ctx) == 0
    assert ctx.get_computed("k") is None
