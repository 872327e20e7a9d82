"""
Semantic test: claim release.

Invariant:
A claim taken through DatasetManager.claim() is released on every exit
path, including exceptions raised while analysing. A claim that was not
obtained never releases somebody else's lease.
"""

from __future__ import annotations

import pytest

from analytics_fixtures import NOW, OutOfBoundsIndicator, make_context, make_course
from learning_analytics.core.domain.errors import IndicatorValueError
from learning_analytics.core.ports.clock import FixedClock
from learning_analytics.dataset.lease import FileLeaseStore
from learning_analytics.dataset.manager import DatasetStore
from learning_analytics.io.local_files import LocalFileStore
from learning_analytics.model.model import Model


def _manager(store: DatasetStore):
    return store.manager(
        model_id=1,
        analysable_id=1,
        time_splitting="single_range",
        evaluation=False,
        include_target=False,
    )


@pytest.fixture
def store(tmp_path) -> DatasetStore:
    clock = FixedClock(NOW)
    return DatasetStore(
        file_store=LocalFileStore(tmp_path / "files"),
        lease_store=FileLeaseStore(tmp_path / "leases", clock=clock),
        clock=clock,
    )


def test_claim_released_after_normal_exit(store) -> None:
    manager = _manager(store)

    with manager.claim() as acquired:
        assert acquired
        assert store.lease_store.current(manager.key.lease_name) is not None

    assert not manager.is_claimed
    assert store.lease_store.current(manager.key.lease_name) is None


def test_claim_released_after_exception(store) -> None:
    manager = _manager(store)

    with pytest.raises(RuntimeError):
        with manager.claim():
            raise RuntimeError("analysis failed")

    assert store.lease_store.current(manager.key.lease_name) is None
    assert _manager(store).init_process()


def test_failed_claim_keeps_the_holder_lease(store) -> None:
    holder, other = _manager(store), _manager(store)
    assert holder.init_process()

    with other.claim() as acquired:
        assert not acquired

    assert holder.is_claimed
    assert store.lease_store.current(holder.key.lease_name) is not None


def test_indicator_error_does_not_leak_leases(tmp_path) -> None:
    context = make_context(tmp_path, courses=[make_course(1, "a1")])
    model = Model.create("test_perfect_target", [OutOfBoundsIndicator.id], context=context)
    model.enable("single_range")

    with pytest.raises(IndicatorValueError):
        model.get_analyser().get_labelled_data()

    assert list((tmp_path / "leases").glob("*.lease")) == []
