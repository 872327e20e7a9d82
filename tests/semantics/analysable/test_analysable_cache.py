"""
Semantic test: analysable cache.

Invariant:
The context builds each course analysable once and reuses it until
reset() drops every cached instance.
"""

from __future__ import annotations

from analytics_fixtures import make_context, make_course


def test_cache_reuses_instances_until_reset(tmp_path) -> None:
    context = make_context(tmp_path, courses=[make_course(1, "a1"), make_course(2, "b1")])
    cache = context.analysables

    first = cache.get(1)
    assert cache.get(1) is first
    assert 1 in cache
    assert 2 not in cache
    assert len(cache) == 1

    cache.reset()

    assert len(cache) == 0
    assert cache.get(1) is not first
