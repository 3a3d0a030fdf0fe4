from tracking import t
import pytest

from reservations.errors import SuspendedError, ValidationError
from reservations.models import ReservationStatus
from tests.helpers import RecordingNotifier, make_engine, make_reservation


def test_join_appends_in_fifo_order():
    t('tests.unit.test_waitlist_manager.test_join_appends_in_fifo_order')
    engine = make_engine(make_reservation(1, joined=10))

    assert engine.waitlist.join_waiting_list(1, "a") == 1
    assert engine.waitlist.join_waiting_list(1, "b") == 2
    assert engine.waitlist.join_waiting_list(1, "c") == 3

    assert engine.store.get_reservation(1).waiting_list == ["a", "b", "c"]
    assert engine.waitlist.next_in_line(1) == "a"
    assert engine.waitlist.position_of(1, "c") == 3


def test_fourth_request_is_rejected_and_list_unchanged():
    t('tests.unit.test_waitlist_manager.test_fourth_request_is_rejected_and_list_unchanged')
    engine = make_engine(make_reservation(1, joined=10, waiting_list=["a", "b", "c"]))

    with pytest.raises(ValidationError) as info:
        engine.waitlist.join_waiting_list(1, "d")

    assert info.value.code == "waitlist_full"
    assert engine.store.get_reservation(1).waiting_list == ["a", "b", "c"]


def test_join_requires_full_game():
    t('tests.unit.test_waitlist_manager.test_join_requires_full_game')
    engine = make_engine(make_reservation(1, joined=9))

    with pytest.raises(ValidationError) as info:
        engine.waitlist.join_waiting_list(1, "a")

    assert info.value.code == "game_not_full"


@pytest.mark.parametrize("user_id, code", [("r1-p1", "already_joined"), ("q", "already_queued")])
def test_join_rejects_players_already_involved(user_id, code):
    t('tests.unit.test_waitlist_manager.test_join_rejects_players_already_involved')
    engine = make_engine(make_reservation(1, joined=10, waiting_list=["q"]))

    with pytest.raises(ValidationError) as info:
        engine.waitlist.join_waiting_list(1, user_id)

    assert info.value.code == code
    assert engine.store.get_reservation(1).waiting_list == ["q"]


def test_join_rejects_suspended_user():
    t('tests.unit.test_waitlist_manager.test_join_rejects_suspended_user')
    engine = make_engine(make_reservation(1, joined=10))
    engine.suspensions.suspend("bad", 1, "abuse")

    with pytest.raises(SuspendedError):
        engine.waitlist.join_waiting_list(1, "bad")


def test_leave_is_noop_when_absent():
    t('tests.unit.test_waitlist_manager.test_leave_is_noop_when_absent')
    engine = make_engine(make_reservation(1, joined=10, waiting_list=["a", "b"]))

    assert engine.waitlist.leave_waiting_list(1, "zzz") is False
    assert engine.waitlist.leave_waiting_list(1, "a") is True
    assert engine.store.get_reservation(1).waiting_list == ["b"]


@pytest.mark.asyncio
async def test_notify_reaches_every_queued_user_without_changing_membership():
    t('tests.unit.test_waitlist_manager.test_notify_reaches_every_queued_user_without_changing_membership')
    notifier = RecordingNotifier()
    engine = make_engine(make_reservation(1, joined=10, waiting_list=["a", "b"]), notifier=notifier)

    notified = await engine.waitlist.notify_waiting_list(1)

    assert notified == ["a", "b"]
    assert notifier.recipients() == ["a", "b"]
    assert all(subject.startswith("Spot Available") for _, _, subject, _ in notifier.sent)
    assert engine.store.get_reservation(1).waiting_list == ["a", "b"]


@pytest.mark.asyncio
async def test_notifier_failures_are_swallowed():
    t('tests.unit.test_waitlist_manager.test_notifier_failures_are_swallowed')
    engine = make_engine(
        make_reservation(1, joined=10, waiting_list=["a"]),
        notifier=RecordingNotifier(raise_error=True),
    )

    assert await engine.waitlist.notify_waiting_list(1) == []
    assert engine.store.get_reservation(1).status is ReservationStatus.FULL
