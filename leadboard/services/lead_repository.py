"""SQLAlchemy-backed data source for leads and their tracking rows."""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from leadboard.core.context import SessionContext
from leadboard.core.errors import FetchError, LeadNotFoundError, UpdateError
from leadboard.models.lead import LeadRecord
from leadboard.models.tracking import LeadTracking, LeadTrackingHistory
from leadboard.schemas.lead import InteractionType, Lead
from leadboard.services.normalizer import normalize
from leadboard.services.patch_builder import (
    LeadPatch,
    appended_interactions,
    to_row_update,
    to_tracking_payload,
)

logger = logging.getLogger("leadboard.repository")


def record_to_row(record) -> Dict:
    """Plain column mapping for an ORM row, as the hosted backend would return it."""
    return {attr.key: getattr(record, attr.key) for attr in sa_inspect(record).mapper.column_attrs}


class LeadRepository:
    def __init__(self, db: Session, tracking_mode: str = "row"):
        self.db = db
        self.tracking_mode = tracking_mode

    def _lead_query(self, since: Optional[datetime] = None):
        query = self.db.query(LeadRecord)
        if since is not None:
            query = query.filter(LeadRecord.created_at >= since)
        return query.order_by(LeadRecord.created_at.desc(), LeadRecord.id.desc())

    def _tracking_rows(self, ctx: SessionContext, lead_ids: List[str]):
        if self.tracking_mode != "joined" or not lead_ids:
            return {}, {}
        trackings = (
            self.db.query(LeadTracking)
            .filter(LeadTracking.user_id == ctx.user_id, LeadTracking.lead_id.in_(lead_ids))
            .all()
        )
        history = (
            self.db.query(LeadTrackingHistory)
            .filter(LeadTrackingHistory.user_id == ctx.user_id, LeadTrackingHistory.lead_id.in_(lead_ids))
            .order_by(LeadTrackingHistory.changed_at.asc(), LeadTrackingHistory.id.asc())
            .all()
        )
        tracking_by_lead = {tracking.lead_id: record_to_row(tracking) for tracking in trackings}
        history_by_lead = defaultdict(list)
        for record in history:
            history_by_lead[record.lead_id].append(record_to_row(record))
        return tracking_by_lead, history_by_lead

    def _normalize_all(self, ctx: SessionContext, records) -> List[Lead]:
        tracking_by_lead, history_by_lead = self._tracking_rows(ctx, [record.id for record in records])
        return [
            normalize(record_to_row(record), tracking_by_lead.get(record.id), history_by_lead.get(record.id))
            for record in records
        ]

    def list_leads(self, ctx: SessionContext, since: Optional[datetime] = None) -> List[Lead]:
        """Leads created at or after ``since`` (all when None), newest first."""
        logger.debug("repository: list leads user=%s since=%s mode=%s", ctx.user_id, since, self.tracking_mode)
        try:
            leads = self._normalize_all(ctx, self._lead_query(since).all())
        except SQLAlchemyError as exc:
            logger.exception("repository: list leads failed user=%s", ctx.user_id)
            raise FetchError("Could not load leads") from exc
        logger.debug("repository: loaded %d leads", len(leads))
        return leads

    def get_lead(self, ctx: SessionContext, lead_id: str) -> Lead:
        logger.debug("repository: get lead id=%s user=%s", lead_id, ctx.user_id)
        try:
            record = self.db.query(LeadRecord).filter(LeadRecord.id == lead_id).first()
            if record is None:
                raise LeadNotFoundError(lead_id)
            return self._normalize_all(ctx, [record])[0]
        except SQLAlchemyError as exc:
            logger.exception("repository: get lead failed id=%s", lead_id)
            raise FetchError(f"Could not load lead {lead_id}") from exc

    def apply_patch(self, ctx: SessionContext, before: Lead, after: Lead, patch: LeadPatch) -> None:
        """Write a patch in one transaction; ``after`` must already carry its StageChange entry."""
        row_update = to_row_update(patch, self.tracking_mode)
        logger.debug("repository: update lead id=%s columns=%s", before.id, sorted(patch))
        try:
            if self.db.get(LeadRecord, before.id) is None:
                raise LeadNotFoundError(before.id)
            if row_update:
                self.db.query(LeadRecord).filter(LeadRecord.id == before.id).update(
                    row_update, synchronize_session=False
                )
            if self.tracking_mode == "joined":
                self._write_tracking(ctx, before, after, to_tracking_payload(patch))
            self.db.commit()
        except LeadNotFoundError as exc:
            self.db.rollback()
            raise UpdateError(str(exc)) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise UpdateError(f"Could not save lead {before.id}") from exc

    def _write_tracking(self, ctx: SessionContext, before: Lead, after: Lead, payload: Dict) -> None:
        if not payload:
            return
        tracking = (
            self.db.query(LeadTracking)
            .filter(LeadTracking.lead_id == before.id, LeadTracking.user_id == ctx.user_id)
            .first()
        )
        if tracking is None:
            tracking = LeadTracking(lead_id=before.id, user_id=ctx.user_id)
            self.db.add(tracking)
        for column, value in payload.items():
            setattr(tracking, column, value)

        if "status" not in payload:
            return
        self.db.flush()
        stage = next(
            (item for item in appended_interactions(before, after) if item.type == InteractionType.STAGE_CHANGE),
            None,
        )
        self.db.add(
            LeadTrackingHistory(
                tracking_id=tracking.id,
                lead_id=before.id,
                user_id=ctx.user_id,
                previous_values={"status": before.status.value},
                new_values={"status": after.status.value, "note": stage.notes if stage else None},
                changed_at=stage.date if stage else ctx.now,
            )
        )

    def check_connection(self) -> bool:
        try:
            self.db.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("repository: database connection check failed")
            return False
        return True
