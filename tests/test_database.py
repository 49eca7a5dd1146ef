"""
Tests for the SQLite job store.
"""
from datetime import datetime

import pytest

from audit import RUN_COMPLETED, RUN_STARTED, AuditLogger
from database import JobStore
from models import RunLog
from normalizer import normalize_record


@pytest.fixture
def store(tmp_path):
    return JobStore(tmp_path / "jobs.db")


def test_upsert_assigns_id_and_round_trips(store, make_raw):
    record = normalize_record(make_raw(
        title="Senior Python Developer",
        salary_text="R 40,000 - R 55,000",
        summary_text="Django and AWS, remote friendly.",
    ))
    record.quality_score = 80
    stored = store.upsert(record)

    assert stored.id is not None
    found = store.find_by_natural_key("senior python developer", "ACME HOLDINGS", "cape town")
    assert found is not None
    assert found.id == stored.id
    assert found.salary_range == record.salary_range
    assert found.skills == record.skills
    assert found.categories == record.categories
    assert found.posted_at == record.posted_at
    assert found.quality_score == 80
    assert found.is_active is True


def test_upsert_same_natural_key_updates_in_place(store, make_raw):
    first = store.upsert(normalize_record(make_raw(summary_text="old")))
    second = normalize_record(make_raw(summary_text="new"))
    second.quality_score = 55
    second = store.upsert(second)

    assert second.id == first.id
    assert store.count_active() == 1
    found = store.find_by_natural_key("Software Developer", "Acme Holdings", "Cape Town")
    assert found.description == "new"
    assert found.quality_score == 55


def test_find_missing_returns_none(store):
    assert store.find_by_natural_key("Nobody", "Nowhere", "Atlantis") is None


def test_mark_filled(store, make_raw):
    stored = store.upsert(normalize_record(make_raw()))

    assert store.mark_filled(stored.id) is True
    assert store.mark_filled(9999) is False
    assert store.count_active() == 0
    found = store.find_by_natural_key("Software Developer", "Acme Holdings", "Cape Town")
    assert found.is_active is False


def test_run_log(store):
    assert store.get_last_run() is None

    store.log_run(RunLog(run_date="2026-10-01T09:00:00", keyword="nurse", location="Durban", listings_found=3))
    store.log_run(RunLog(
        run_date=datetime(2026, 10, 2, 9).isoformat(),
        keyword="developer",
        location="Cape Town",
        listings_found=12,
        listings_unique=10,
        listings_processed=9,
        errors=["indeed: timed out"],
        duration_seconds=41.5,
    ))

    last = store.get_last_run()
    assert last["keyword"] == "developer"
    assert last["listings_processed"] == 9
    assert last["errors"] == ["indeed: timed out"]


def test_audit_logger_writes_to_store(store):
    audit = AuditLogger(store)
    audit.log(RUN_STARTED, metadata={"keyword": "nurse", "sites": ["indeed", "pnet"]})
    audit.log(RUN_COMPLETED, metadata={"processed": 4})

    events = store.get_audit_events()
    assert [e["action"] for e in events] == [RUN_STARTED, RUN_COMPLETED]
    assert events[0]["resource"] == "scraping"
    assert events[0]["metadata"]["sites"] == ["indeed", "pnet"]
    assert store.get_audit_events(RUN_COMPLETED)[0]["metadata"] == {"processed": 4}


def test_audit_logger_without_store_only_logs():
    AuditLogger().log(RUN_STARTED, metadata={"keyword": "nurse"})
