"""Saving lead edits as a two-phase write.

An edit is first applied to a local copy of the lead, then persisted as a
minimal patch. If persisting fails the local copy is dropped and the lead is
re-read from the backend, so callers only ever display real backend state after
an error. Only one save per lead may be in flight at a time.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from leadboard.core.context import SessionContext
from leadboard.core.errors import EditInProgressError, LeadboardError, UpdateError
from leadboard.schemas.lead import Interaction, InteractionType, Lead, LeadStatus
from leadboard.services import lifecycle
from leadboard.services.patch_builder import build_patch, ensure_stage_change

logger = logging.getLogger("leadboard.editor")

_saves_in_flight: set[str] = set()
_saves_lock = threading.Lock()


@contextmanager
def claim_lead(lead_id: str):
    """Hold the save slot for a lead; a second claim fails until the first is released."""
    with _saves_lock:
        if lead_id in _saves_in_flight:
            raise EditInProgressError(lead_id)
        _saves_in_flight.add(lead_id)
    try:
        yield
    finally:
        with _saves_lock:
            _saves_in_flight.discard(lead_id)


class LeadEditor:
    def __init__(self, repository):
        self.repository = repository

    def save(self, ctx: SessionContext, before: Lead, after: Lead, operator_note: Optional[str] = None) -> Lead:
        """Persist ``after`` over ``before`` and return the saved local state.

        Raises UpdateError carrying the re-read lead when the write fails.
        """
        with claim_lead(before.id):
            return self._save_claimed(ctx, before, after, operator_note)

    def _save_claimed(self, ctx: SessionContext, before: Lead, after: Lead, operator_note: Optional[str] = None) -> Lead:
        after = ensure_stage_change(before, after, operator_note, at=ctx.now)
        patch = build_patch(before, after, operator_note)
        if not patch:
            return after
        try:
            self.repository.apply_patch(ctx, before, after, patch)
        except UpdateError as exc:
            logger.exception("editor: save failed lead=%s user=%s", before.id, ctx.user_id)
            raise UpdateError(str(exc), reconciled=self._reconcile(ctx, before.id)) from exc
        logger.info("editor: saved lead=%s user=%s columns=%s", before.id, ctx.user_id, sorted(patch))
        return after

    def _reconcile(self, ctx: SessionContext, lead_id: str) -> Optional[Lead]:
        try:
            return self.repository.get_lead(ctx, lead_id)
        except LeadboardError:
            logger.exception("editor: re-read after failed save failed lead=%s", lead_id)
            return None

    def _edit(
        self,
        ctx: SessionContext,
        lead_id: str,
        edit: Callable[[Lead], Lead],
        operator_note: Optional[str] = None,
    ) -> Lead:
        # read and write under one claim
        with claim_lead(lead_id):
            before = self.repository.get_lead(ctx, lead_id)
            return self._save_claimed(ctx, before, edit(before), operator_note)

    def change_status(self, ctx: SessionContext, lead_id: str, status: LeadStatus, note: Optional[str] = None) -> Lead:
        return self._edit(ctx, lead_id, lambda lead: lifecycle.change_status(lead, status, note, at=ctx.now), note)

    def add_interaction(
        self,
        ctx: SessionContext,
        lead_id: str,
        type: str,
        summary: str,
        notes: Optional[str] = None,
        action_items=None,
        date: Optional[datetime] = None,
    ) -> Lead:
        interaction = Interaction(
            date=date or ctx.now,
            type=InteractionType(type),
            summary=summary,
            notes=notes,
            action_items=list(action_items or []),
        )
        return self._edit(ctx, lead_id, lambda lead: lifecycle.record_interaction(lead, interaction))

    def update_fields(
        self,
        ctx: SessionContext,
        lead_id: str,
        changes: Mapping[str, Any],
        checklist: Optional[Mapping[str, bool]] = None,
    ) -> Lead:
        def edit(lead: Lead) -> Lead:
            lead = lifecycle.apply_edits(lead, changes)
            if checklist:
                lead = lifecycle.set_checklist(lead, checklist)
            return lead

        return self._edit(ctx, lead_id, edit)
