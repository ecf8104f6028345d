import json
from datetime import UTC, datetime, timedelta

import pytest

from leadboard.core.context import SessionContext
from leadboard.core.errors import LeadNotFoundError, UpdateError
from leadboard.db.base import Base
from leadboard.db.session import SessionLocal, engine
from leadboard.models.lead import LeadRecord
from leadboard.models.tracking import LeadTracking, LeadTrackingHistory
from leadboard.schemas.lead import InteractionType, LeadStatus
from leadboard.services import lifecycle
from leadboard.services.lead_repository import LeadRepository
from leadboard.services.patch_builder import build_patch, ensure_stage_change

NOW = datetime(2024, 6, 1, 12, tzinfo=UTC)
CTX = SessionContext(user_id=1, now=NOW)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def insert_lead(db, **fields) -> str:
    record = LeadRecord(**fields)
    db.add(record)
    db.commit()
    return record.id


def save(repository, before, after, note=None):
    after = ensure_stage_change(before, after, note, at=NOW)
    repository.apply_patch(CTX, before, after, build_patch(before, after, note))
    return after


def test_list_leads_newest_first_and_time_filtered(db):
    insert_lead(db, id="old", name="Old", created_at=NOW - timedelta(days=10))
    insert_lead(db, id="mid", name="Mid", created_at=NOW - timedelta(hours=20))
    insert_lead(db, id="new", name="New", created_at=NOW - timedelta(hours=1))
    repository = LeadRepository(db)

    assert [lead.id for lead in repository.list_leads(CTX)] == ["new", "mid", "old"]
    assert [lead.id for lead in repository.list_leads(CTX, since=NOW - timedelta(hours=24))] == ["new", "mid"]


def test_get_lead_missing_raises(db):
    with pytest.raises(LeadNotFoundError):
        LeadRepository(db).get_lead(CTX, "missing")


def test_row_mode_round_trip(db):
    insert_lead(
        db,
        id="lead-1",
        name="Asha",
        status="New",
        next_followup_date="2024-06-10",
        tracking_custom_fields={"source_campaign": "spring"},
    )
    repository = LeadRepository(db)
    before = repository.get_lead(CTX, "lead-1")

    after = lifecycle.change_status(before, LeadStatus.CONTACTED, "First call", at=NOW)
    after = lifecycle.set_checklist(after, {"initial_call": True})
    after = lifecycle.apply_edits(after, {"next_followup_date": ""})
    save(repository, before, after)

    db.expire_all()
    record = db.get(LeadRecord, "lead-1")
    assert record.status == "Contacted"
    assert record.next_followup_date is None
    assert record.tracking_custom_fields["source_campaign"] == "spring"
    assert record.tracking_custom_fields["activity_checklist"]["initial_call"] is True
    assert json.loads(record.interactions)[0]["type"] == "StageChange"

    reread = repository.get_lead(CTX, "lead-1")
    assert reread.status == LeadStatus.CONTACTED
    assert reread.interactions[0].summary == "Changed from New to Contacted"
    assert reread.interactions[0].notes == "First call"


def test_update_of_missing_lead_raises_update_error(db):
    insert_lead(db, id="lead-1", status="New")
    repository = LeadRepository(db)
    before = repository.get_lead(CTX, "lead-1")
    after = lifecycle.apply_edits(before, {"priority": "High"})
    db.query(LeadRecord).delete()
    db.commit()
    with pytest.raises(UpdateError):
        save(repository, before, after)


def test_joined_mode_writes_tracking_row_and_history(db):
    insert_lead(db, id="lead-1", name="Chen", status="New", expected_value=100.0)
    repository = LeadRepository(db, tracking_mode="joined")
    before = repository.get_lead(CTX, "lead-1")

    after = lifecycle.change_status(before, LeadStatus.QUALIFIED, "Budget approved", at=NOW)
    after = lifecycle.apply_edits(after, {"tracking_notes": "Met CFO", "expected_value": 900.0})
    after = lifecycle.set_checklist(after, {"demo_completed": True})
    save(repository, before, after)

    db.expire_all()
    record = db.get(LeadRecord, "lead-1")
    assert record.status == "New"
    assert record.expected_value == 900.0
    assert json.loads(record.interactions) == []

    tracking = db.query(LeadTracking).filter(LeadTracking.lead_id == "lead-1").one()
    assert tracking.user_id == 1
    assert tracking.status == "Qualified"
    assert tracking.notes == "Met CFO"
    assert tracking.custom_fields["activity_checklist"]["demo_completed"] is True

    history = db.query(LeadTrackingHistory).filter(LeadTrackingHistory.lead_id == "lead-1").one()
    assert history.previous_values == {"status": "New"}
    assert history.new_values["status"] == "Qualified"
    assert history.new_values["note"] == "Budget approved"

    reread = repository.get_lead(CTX, "lead-1")
    assert reread.shape == "joined"
    assert reread.status == LeadStatus.QUALIFIED
    assert reread.tracking_notes == "Met CFO"
    assert len(reread.interactions) == 1
    assert reread.interactions[0].type == InteractionType.STAGE_CHANGE
    assert reread.interactions[0].summary == "Changed from New to Qualified"
    assert reread.interactions[0].notes == "Budget approved"


def test_joined_mode_tracking_is_per_user(db):
    insert_lead(db, id="lead-1", status="New")
    repository = LeadRepository(db, tracking_mode="joined")
    before = repository.get_lead(CTX, "lead-1")
    save(repository, before, lifecycle.change_status(before, LeadStatus.WON, at=NOW))

    other_user = SessionContext(user_id=2, now=NOW)
    assert repository.get_lead(other_user, "lead-1").status == LeadStatus.NEW
    assert repository.get_lead(CTX, "lead-1").status == LeadStatus.WON


def test_joined_mode_keeps_appending_history(db):
    insert_lead(db, id="lead-1", status="New")
    repository = LeadRepository(db, tracking_mode="joined")
    first = repository.get_lead(CTX, "lead-1")
    save(repository, first, lifecycle.change_status(first, LeadStatus.CONTACTED, at=NOW))
    second = repository.get_lead(CTX, "lead-1")
    later = NOW + timedelta(hours=1)
    save(repository, second, lifecycle.change_status(second, LeadStatus.PROPOSAL, at=later))

    reread = repository.get_lead(CTX, "lead-1")
    assert [item.summary for item in reread.interactions] == [
        "Changed from New to Contacted",
        "Changed from Contacted to Proposal",
    ]
    assert db.query(LeadTracking).count() == 1


def test_check_connection(db):
    assert LeadRepository(db).check_connection() is True
