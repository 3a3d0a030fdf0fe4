from tracking import t
from datetime import timedelta

from infrastructure.constants import PITCHES_KEY, RESERVATIONS_KEY, SUSPENSIONS_KEY
from reservations.errors import ReservationNotFound
from reservations.models import LineupPlayer, LineupStatus, ReservationStatus, Suspension
from reservations.store.record_codec import RecordCodec
from reservations.store.reservation_store import ReservationStore
from tests.helpers import NOW, TZ, FixedClock, InMemorySnapshotRepository, make_reservation

import pytest


def _store(repository):
    return ReservationStore(repository, codec=RecordCodec(TZ), clock=FixedClock())


def test_load_seeds_and_persists_missing_collections():
    t('tests.unit.test_reservation_store.test_load_seeds_and_persists_missing_collections')
    repository = InMemorySnapshotRepository()
    store = _store(repository)

    store.load()

    assert len(store.list_pitches()) == 5
    assert len(store.list_reservations()) == 7
    assert store.list_suspensions() == []
    assert set(repository.saved_keys()) == {PITCHES_KEY, RESERVATIONS_KEY, SUSPENSIONS_KEY}


def test_seeded_reservations_respect_status_invariant():
    t('tests.unit.test_reservation_store.test_seeded_reservations_respect_status_invariant')
    store = _store(InMemorySnapshotRepository())
    store.load()

    for reservation in store.list_reservations():
        joined = len(reservation.joined_players())
        if reservation.status.is_active:
            assert (reservation.status is ReservationStatus.FULL) == (joined >= reservation.max_players)
        assert len(reservation.waiting_list) <= 3


def test_corrupt_snapshot_falls_back_to_seed_without_crashing():
    t('tests.unit.test_reservation_store.test_corrupt_snapshot_falls_back_to_seed_without_crashing')
    repository = InMemorySnapshotRepository({
        RESERVATIONS_KEY: [{"id": 1, "bogus": True}],
        PITCHES_KEY: {"not": "a list"},
        SUSPENSIONS_KEY: [],
    })
    store = _store(repository)

    store.load()

    assert len(store.list_reservations()) == 7
    assert len(store.list_pitches()) == 5


def test_round_trip_preserves_waiting_list_order():
    t('tests.unit.test_reservation_store.test_round_trip_preserves_waiting_list_order')
    repository = InMemorySnapshotRepository({SUSPENSIONS_KEY: [], RESERVATIONS_KEY: []})
    store = _store(repository)
    store.load()
    store.add_reservation(make_reservation(1, joined=10, waiting_list=["c", "a", "b"]))

    reloaded = _store(InMemorySnapshotRepository(repository.data))
    reloaded.load()

    assert reloaded.get_reservation(1).waiting_list == ["c", "a", "b"]
    assert reloaded.get_reservation(1).status is ReservationStatus.FULL


def test_load_drops_expired_suspensions_and_writes_back():
    t('tests.unit.test_reservation_store.test_load_drops_expired_suspensions_and_writes_back')
    codec = RecordCodec(TZ)
    expired = Suspension(user_id="old", until=NOW - timedelta(days=1), reason="late")
    active = Suspension(user_id="new", until=NOW + timedelta(days=1), reason="no-show")
    repository = InMemorySnapshotRepository({
        SUSPENSIONS_KEY: [codec.suspension_to_storage(expired), codec.suspension_to_storage(active)],
        RESERVATIONS_KEY: [],
    })
    store = _store(repository)

    store.load()

    assert [s.user_id for s in store.list_suspensions()] == ["new"]
    assert [entry["user_id"] for entry in repository.data[SUSPENSIONS_KEY]] == ["new"]


def test_load_repairs_inconsistent_status():
    t('tests.unit.test_reservation_store.test_load_repairs_inconsistent_status')
    codec = RecordCodec(TZ)
    stale = make_reservation(1, joined=10, max_players=10)
    stale.status = ReservationStatus.OPEN
    repository = InMemorySnapshotRepository({
        RESERVATIONS_KEY: [codec.reservation_to_storage(stale)],
        SUSPENSIONS_KEY: [],
    })
    store = _store(repository)

    store.load()

    assert store.get_reservation(1).status is ReservationStatus.FULL
    assert repository.data[RESERVATIONS_KEY][0]["status"] == "full"


def test_load_trims_waiting_list_to_limit_in_arrival_order():
    t('tests.unit.test_reservation_store.test_load_trims_waiting_list_to_limit_in_arrival_order')
    codec = RecordCodec(TZ)
    crowded = make_reservation(1, joined=10, max_players=10, waiting_list=["a", "b", "c", "d", "e"])
    repository = InMemorySnapshotRepository({
        RESERVATIONS_KEY: [codec.reservation_to_storage(crowded)],
        SUSPENSIONS_KEY: [],
    })
    store = _store(repository)

    store.load()

    assert store.get_reservation(1).waiting_list == ["a", "b", "c"]
    assert repository.data[RESERVATIONS_KEY][0]["waiting_list"] == ["a", "b", "c"]


def test_load_merges_duplicate_lineup_entries():
    t('tests.unit.test_reservation_store.test_load_merges_duplicate_lineup_entries')
    codec = RecordCodec(TZ)
    doubled = make_reservation(1, joined=3, max_players=4)
    doubled.lineup.insert(0, LineupPlayer(user_id="r1-p2", player_name="Player 2", status=LineupStatus.LEFT))
    doubled.lineup.append(doubled.lineup[1])
    repository = InMemorySnapshotRepository({
        RESERVATIONS_KEY: [codec.reservation_to_storage(doubled)],
        SUSPENSIONS_KEY: [],
    })
    store = _store(repository)

    store.load()

    loaded = store.get_reservation(1)
    assert [p.user_id for p in loaded.lineup] == ["r1-p2", "r1-p1", "r1-p3"]
    assert all(p.is_joined for p in loaded.lineup)
    assert loaded.status is ReservationStatus.OPEN
    assert len(repository.data[RESERVATIONS_KEY][0]["lineup"]) == 3


def test_load_keeps_roster_above_buffer_but_reports_it(caplog):
    t('tests.unit.test_reservation_store.test_load_keeps_roster_above_buffer_but_reports_it')
    codec = RecordCodec(TZ)
    overbooked = make_reservation(1, joined=13, max_players=10)
    repository = InMemorySnapshotRepository({
        RESERVATIONS_KEY: [codec.reservation_to_storage(overbooked)],
        SUSPENSIONS_KEY: [],
    })
    store = _store(repository)

    with caplog.at_level("WARNING", logger="ReservationStore"):
        store.load()

    assert len(store.get_reservation(1).lineup) == 13
    assert "above the limit of 12" in caplog.text


def test_reads_return_copies():
    t('tests.unit.test_reservation_store.test_reads_return_copies')
    store = _store(InMemorySnapshotRepository({SUSPENSIONS_KEY: [], RESERVATIONS_KEY: []}))
    store.load()
    store.add_reservation(make_reservation(1, joined=2))

    copy = store.get_reservation(1)
    copy.waiting_list.append("intruder")
    copy.lineup.clear()

    fresh = store.get_reservation(1)
    assert fresh.waiting_list == []
    assert len(fresh.lineup) == 2


def test_write_failure_is_recorded_and_memory_kept():
    t('tests.unit.test_reservation_store.test_write_failure_is_recorded_and_memory_kept')
    repository = InMemorySnapshotRepository({SUSPENSIONS_KEY: [], RESERVATIONS_KEY: []})
    store = _store(repository)
    store.load()
    repository.fail_writes = True

    created = store.add_reservation(make_reservation(0, joined=1))

    assert store.get_reservation(created.id) is not None
    assert len(store.persistence_warnings) == 1
    assert store.persistence_warnings[0].key == RESERVATIONS_KEY


def test_replace_all_swaps_collection_and_persists():
    t('tests.unit.test_reservation_store.test_replace_all_swaps_collection_and_persists')
    repository = InMemorySnapshotRepository({SUSPENSIONS_KEY: [], RESERVATIONS_KEY: []})
    store = _store(repository)
    store.load()
    store.add_reservation(make_reservation(1))
    repository.saves.clear()

    store.replace_all(RESERVATIONS_KEY, [make_reservation(5, joined=3), make_reservation(6)])

    assert [r.id for r in store.list_reservations()] == [5, 6]
    assert repository.saved_keys() == [RESERVATIONS_KEY]


def test_replace_all_rejects_wrong_types_without_touching_state():
    t('tests.unit.test_reservation_store.test_replace_all_rejects_wrong_types_without_touching_state')
    store = _store(InMemorySnapshotRepository({SUSPENSIONS_KEY: [], RESERVATIONS_KEY: []}))
    store.load()
    store.add_reservation(make_reservation(1))

    with pytest.raises(TypeError):
        store.replace_all(RESERVATIONS_KEY, [make_reservation(2), "nope"])

    assert [r.id for r in store.list_reservations()] == [1]


def test_add_reservation_assigns_fresh_ids():
    t('tests.unit.test_reservation_store.test_add_reservation_assigns_fresh_ids')
    store = _store(InMemorySnapshotRepository({SUSPENSIONS_KEY: [], RESERVATIONS_KEY: []}))
    store.load()

    first = store.add_reservation(make_reservation(0))
    second = store.add_reservation(make_reservation(first.id))

    assert first.id == 1
    assert second.id == 2


def test_missing_reservation_raises_not_found():
    t('tests.unit.test_reservation_store.test_missing_reservation_raises_not_found')
    store = _store(InMemorySnapshotRepository({SUSPENSIONS_KEY: [], RESERVATIONS_KEY: []}))
    store.load()

    with pytest.raises(ReservationNotFound):
        store.live_reservation(42)
    with pytest.raises(ReservationNotFound):
        store.remove_reservation(42)
    assert store.get_reservation(42) is None


def test_find_by_remote_ref_matches_backend_and_local_ids():
    t('tests.unit.test_reservation_store.test_find_by_remote_ref_matches_backend_and_local_ids')
    store = _store(InMemorySnapshotRepository({SUSPENSIONS_KEY: [], RESERVATIONS_KEY: []}))
    store.load()
    store.add_reservation(make_reservation(3, backend_id="abc123"))
    store.add_reservation(make_reservation(4))

    assert store.find_by_remote_ref("abc123").id == 3
    assert store.find_by_remote_ref("4").id == 4
    assert store.find_by_remote_ref("3") is None
    assert store.find_by_remote_ref("missing") is None
