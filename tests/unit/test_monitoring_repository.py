import json
from datetime import datetime, timedelta

import pytest

from monitoring.repository import JsonMonitoringRepository
from tests.helpers import NOW, DummyLogger, local, make_monitoring


def _repository(tmp_path):
    return JsonMonitoringRepository(str(tmp_path / "monitorings.json"), logger=DummyLogger())


def test_save_assigns_ids_and_created(tmp_path):
    repository = _repository(tmp_path)

    first = repository.save_monitoring(make_monitoring())
    second = repository.save_monitoring(make_monitoring())

    assert (first.record_id, second.record_id) == (1, 2)
    assert first.created is not None
    assert first.created.tzinfo is not None


def test_records_survive_reload(tmp_path):
    repository = _repository(tmp_path)
    saved = repository.save_monitoring(
        make_monitoring(doctor_id=3, doctor_name="Anna Nowak", autobook=True)
    )

    reloaded = _repository(tmp_path).find_monitoring(saved.account_id, saved.record_id)

    assert reloaded == saved
    assert _repository(tmp_path).save_monitoring(make_monitoring()).record_id == 2


def test_find_monitoring_checks_account(tmp_path):
    repository = _repository(tmp_path)
    saved = repository.save_monitoring(make_monitoring(account_id=1))

    assert repository.find_monitoring(2, saved.record_id) is None
    assert repository.find_monitoring(1, 99) is None


def test_returned_records_are_copies(tmp_path):
    repository = _repository(tmp_path)
    saved = repository.save_monitoring(make_monitoring())

    loaded = repository.find_monitoring(saved.account_id, saved.record_id)
    loaded.active = False

    assert repository.get_active_monitorings_count(saved.account_id) == 1


def test_active_queries_and_counts(tmp_path):
    repository = _repository(tmp_path)
    repository.save_monitoring(make_monitoring(account_id=1))
    repository.save_monitoring(make_monitoring(account_id=1, active=False))
    repository.save_monitoring(make_monitoring(account_id=2))

    assert [m.record_id for m in repository.get_active_monitorings()] == [1, 3]
    assert [m.record_id for m in repository.get_active_monitorings(1)] == [1]
    assert repository.get_active_monitorings_count(1) == 1
    assert repository.get_all_monitorings_count(1) == 2
    assert repository.get_all_monitorings_count(3) == 0


def test_active_since_is_strictly_after_checkpoint(tmp_path):
    repository = _repository(tmp_path)
    repository.save_monitoring(make_monitoring(created=NOW - timedelta(minutes=5)))
    repository.save_monitoring(make_monitoring(created=NOW))
    repository.save_monitoring(make_monitoring(created=NOW + timedelta(seconds=1)))
    repository.save_monitoring(
        make_monitoring(created=NOW + timedelta(seconds=2), active=False)
    )

    found = repository.get_active_monitorings_since(NOW)

    assert [m.record_id for m in found] == [3]


def test_monitorings_page_is_newest_first(tmp_path):
    repository = _repository(tmp_path)
    for minutes in range(5):
        repository.save_monitoring(
            make_monitoring(created=NOW + timedelta(minutes=minutes))
        )
    repository.save_monitoring(make_monitoring(account_id=2))

    page = repository.get_monitorings_page(1, 1, 2)

    assert [m.record_id for m in page] == [4, 3]
    assert repository.get_monitorings_page(1, 4, 10)[0].record_id == 1
    assert repository.get_monitorings_page(1, 5, 10) == []


def test_invalid_file_is_rejected(tmp_path):
    path = tmp_path / "monitorings.json"
    path.write_text(json.dumps({"not": "a list"}), encoding="utf-8")

    with pytest.raises(ValueError):
        JsonMonitoringRepository(str(path), logger=DummyLogger())


def test_naive_dates_in_file_are_loaded_as_local_time(tmp_path):
    path = tmp_path / "monitorings.json"
    payload = make_monitoring(
        record_id=1,
        date_from=datetime(2024, 5, 1),
        date_to=datetime(2024, 6, 30, 23, 59),
        created=datetime(2024, 4, 1, 12, 0),
    ).to_payload()
    path.write_text(json.dumps([payload]), encoding="utf-8")

    loaded = _repository(tmp_path).find_monitoring(1, 1)

    assert loaded.date_from == local(2024, 5, 1)
    assert loaded.date_to == local(2024, 6, 30, 23, 59)
    assert loaded.created == local(2024, 4, 1, 12, 0)
    assert loaded.is_expired(NOW) is False


def test_save_localizes_naive_dates(tmp_path):
    repository = _repository(tmp_path)

    saved = repository.save_monitoring(make_monitoring(date_to=datetime(2024, 5, 9, 18, 0)))

    assert saved.date_to == local(2024, 5, 9, 18, 0)
    stored = repository.find_monitoring(1, saved.record_id)
    assert stored.date_to.tzinfo is not None
    assert stored.is_expired(NOW)


def test_failed_write_leaves_memory_untouched(tmp_path):
    repository = _repository(tmp_path)
    saved = repository.save_monitoring(make_monitoring())
    path = tmp_path / "monitorings.json"
    path.unlink()
    path.mkdir()

    with pytest.raises(OSError):
        repository.save_monitoring(saved.copy(active=False))
    fresh = make_monitoring()
    with pytest.raises(OSError):
        repository.save_monitoring(fresh)

    assert repository.find_monitoring(1, saved.record_id).active
    assert fresh.record_id is None
    assert fresh.created is None
    assert repository.get_all_monitorings_count(1) == 1
