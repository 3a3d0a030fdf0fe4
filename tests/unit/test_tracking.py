from tracking import call_counts, flush_counts, reset_counts, restore_counts, t


def test_counts_accumulate_per_name(monkeypatch):
    monkeypatch.delenv("PITCHBOOK_TRACKING_FILE", raising=False)
    reset_counts()

    t('tests.unit.test_tracking.sample')
    t('tests.unit.test_tracking.sample')
    t('')

    assert call_counts() == {'tests.unit.test_tracking.sample': 2}


def test_counts_are_written_to_tracking_file(monkeypatch, tmp_path):
    target = tmp_path / "calls.json"
    monkeypatch.setenv("PITCHBOOK_TRACKING_FILE", str(target))
    reset_counts()

    t('tests.unit.test_tracking.persisted')

    assert '"tests.unit.test_tracking.persisted": 1' in target.read_text(encoding="utf-8")


def test_flush_is_a_no_op_without_tracking_file(monkeypatch):
    monkeypatch.delenv("PITCHBOOK_TRACKING_FILE", raising=False)

    assert flush_counts() is None


def test_restore_merges_saved_counts_and_skips_bad_entries(tmp_path):
    saved = tmp_path / "calls.json"
    saved.write_text('{"reservations.a": 4, "reservations.b": "x", "": 2, "reservations.c": -1}', encoding="utf-8")
    reset_counts()

    assert restore_counts(saved) == 2
    assert call_counts() == {"reservations.a": 4, "reservations.c": 0}


def test_restore_ignores_unreadable_file(tmp_path):
    broken = tmp_path / "calls.json"
    broken.write_text("not json", encoding="utf-8")
    reset_counts()

    assert restore_counts(broken) == 0
    assert restore_counts(tmp_path / "missing.json") == 0
    assert call_counts() == {}
