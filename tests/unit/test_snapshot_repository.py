import pytest

from reservations.store.snapshot_repository import JsonSnapshotRepository
from tests.helpers import DummyLogger


def test_repository_round_trip(tmp_path):
    logger = DummyLogger()
    repository = JsonSnapshotRepository(str(tmp_path / "data"), logger=logger)

    data = [
        {"id": 1, "status": "open", "waiting_list": ["b", "a"]},
        {"id": 2, "status": "full", "waiting_list": []},
    ]

    repository.save("reservations", data)
    assert repository.path_for("reservations").exists()

    reloaded = JsonSnapshotRepository(str(tmp_path / "data"), logger=DummyLogger()).load("reservations")
    assert reloaded == data


def test_missing_key_returns_none(tmp_path):
    repository = JsonSnapshotRepository(str(tmp_path), logger=DummyLogger())

    assert repository.load("pitches") is None


def test_corrupt_file_is_logged_and_treated_as_absent(tmp_path):
    logger = DummyLogger()
    repository = JsonSnapshotRepository(str(tmp_path), logger=logger)
    repository.path_for("pitches").write_text("{not json", encoding="utf-8")

    assert repository.load("pitches") is None
    assert any(level == "error" for level, _ in logger.messages)


def test_save_leaves_no_temporary_file(tmp_path):
    repository = JsonSnapshotRepository(str(tmp_path), logger=DummyLogger())

    repository.save("suspendedPlayers", [])

    assert sorted(p.name for p in tmp_path.iterdir()) == ["suspendedPlayers.json"]


def test_write_errors_propagate(tmp_path):
    blocker = tmp_path / "blocked"
    blocker.write_text("file, not a directory", encoding="utf-8")
    repository = JsonSnapshotRepository(str(blocker), logger=DummyLogger())

    with pytest.raises(OSError):
        repository.save("reservations", [])
