from tracking import t
from datetime import timedelta

import pytest

from infrastructure.constants import RESERVATIONS_KEY, SUSPENSIONS_KEY
from reservations.errors import SuspendedError, ValidationError
from reservations.models import ReservationStatus
from tests.helpers import NOW, FixedClock, make_engine, make_reservation


def test_suspension_blocks_until_expiry_then_allows_join():
    t('tests.unit.test_suspension_manager.test_suspension_blocks_until_expiry_then_allows_join')
    clock = FixedClock()
    engine = make_engine(make_reservation(1, joined=2), clock=clock)
    engine.suspensions.suspend("u1", 2, "no-show")

    with pytest.raises(SuspendedError):
        engine.roster.join_game(1, "u1", "U1")

    clock.advance(days=2)

    assert engine.roster.join_game(1, "u1", "U1") is True
    assert engine.store.get_suspension("u1") is None


def test_expired_suspension_is_purged_lazily_and_persisted():
    t('tests.unit.test_suspension_manager.test_expired_suspension_is_purged_lazily_and_persisted')
    clock = FixedClock()
    engine = make_engine(clock=clock)
    engine.suspensions.suspend("u1", 1, "late")
    engine.store.repository.saves.clear()

    assert engine.suspensions.is_suspended("u1", NOW + timedelta(days=1)) is False

    assert engine.store.list_suspensions() == []
    assert engine.store.repository.saved_keys() == [SUSPENSIONS_KEY]


def test_new_suspension_replaces_previous_one():
    t('tests.unit.test_suspension_manager.test_new_suspension_replaces_previous_one')
    engine = make_engine()
    engine.suspensions.suspend("u1", 7, "first")
    engine.suspensions.suspend("u1", 1, "second")

    suspensions = engine.store.list_suspensions()
    assert len(suspensions) == 1
    assert suspensions[0].reason == "second"
    assert suspensions[0].until == NOW + timedelta(days=1)


def test_suspend_purges_user_from_active_games_and_reopens():
    t('tests.unit.test_suspension_manager.test_suspend_purges_user_from_active_games_and_reopens')
    full = make_reservation(1, joined=10, waiting_list=["w"])
    queued = make_reservation(2, joined=10, waiting_list=["r1-p1", "x"])
    finished = make_reservation(3, joined=4, status=ReservationStatus.COMPLETED)
    finished.lineup[0] = full.lineup[0]
    engine = make_engine(full, queued, finished)

    affected = engine.suspensions.suspend("r1-p1", 3, "abuse")

    assert affected == [1, 2]
    first = engine.store.get_reservation(1)
    assert not first.has_joined("r1-p1")
    assert first.status is ReservationStatus.OPEN
    assert first.waiting_list == ["w"]
    assert engine.store.get_reservation(2).waiting_list == ["x"]
    assert engine.store.get_reservation(3).has_joined("r1-p1")
    assert set(engine.store.repository.saved_keys()) == {SUSPENSIONS_KEY, RESERVATIONS_KEY}


def test_suspended_error_carries_until():
    t('tests.unit.test_suspension_manager.test_suspended_error_carries_until')
    engine = make_engine()
    engine.suspensions.suspend("u1", 5, "rude")

    with pytest.raises(SuspendedError) as info:
        engine.suspensions.ensure_not_suspended("u1")

    assert info.value.until == NOW + timedelta(days=5)
    assert info.value.reason == "rude"
    assert "suspended until" in info.value.message


def test_invalid_duration_is_rejected():
    t('tests.unit.test_suspension_manager.test_invalid_duration_is_rejected')
    engine = make_engine()

    with pytest.raises(ValidationError):
        engine.suspensions.suspend("u1", 0, "nothing")


def test_lift_removes_suspension():
    t('tests.unit.test_suspension_manager.test_lift_removes_suspension')
    engine = make_engine()
    engine.suspensions.suspend("u1", 5, "rude")

    assert engine.suspensions.lift("u1") is True
    assert engine.suspensions.lift("u1") is False
    assert engine.suspensions.is_suspended("u1") is False


def test_active_suspensions_excludes_expired():
    t('tests.unit.test_suspension_manager.test_active_suspensions_excludes_expired')
    clock = FixedClock()
    engine = make_engine(clock=clock)
    engine.suspensions.suspend("short", 1, "a")
    engine.suspensions.suspend("long", 10, "b")

    clock.advance(days=2)

    assert [s.user_id for s in engine.suspensions.active_suspensions()] == ["long"]
