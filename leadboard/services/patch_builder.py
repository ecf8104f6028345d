"""Minimal persisted patches for lead edits.

``build_patch`` diffs two canonical leads into the set of ``leads`` columns that
changed. ``to_row_update`` and ``to_tracking_payload`` turn that patch into the
write payload for the row-based and the joined tracking storage respectively.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from leadboard.core.errors import InteractionHistoryError
from leadboard.schemas.lead import Interaction, InteractionType, Lead
from leadboard.services.lifecycle import record_interaction, stage_change_interaction

LeadPatch = Dict[str, Any]

# canonical field -> leads column
ROW_COLUMNS = {
    "status": "status",
    "priority": "priority",
    "interest_level": "interest_level",
    "assigned_to": "assigned_to",
    "last_contact_date": "last_contact",
    "next_followup_date": "next_followup_date",
    "expected_value": "expected_value",
    "probability": "probability",
    "tracking_notes": "tracking_notes",
    "next_steps": "next_steps",
    "requirements": "requirements",
    "objections": "objections",
}

# leads column -> leads_tracking column
TRACKING_COLUMNS = {
    "status": "status",
    "priority": "priority",
    "last_contact": "last_contact_date",
    "next_followup_date": "next_follow_up",
    "tracking_notes": "notes",
    "tracking_custom_fields": "custom_fields",
}

TIMESTAMP_FIELDS = {"last_contact_date", "next_followup_date"}


def clean_timestamp(value: Any) -> Optional[str]:
    """Blank timestamp input means "no date"; it is never stored as an empty string."""
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def _persisted(field: str, value: Any) -> Any:
    if field in TIMESTAMP_FIELDS:
        return clean_timestamp(value)
    if isinstance(value, Enum):
        return value.value
    return value


def appended_interactions(before: Lead, after: Lead) -> List[Interaction]:
    return list(after.interactions[len(before.interactions):])


def ensure_stage_change(before: Lead, after: Lead, operator_note: str | None = None, *, at=None) -> Lead:
    """Return ``after`` with a StageChange entry for its status change, adding one if missing."""
    if after.status == before.status:
        return after
    if any(item.type == InteractionType.STAGE_CHANGE for item in appended_interactions(before, after)):
        return after
    return record_interaction(after, stage_change_interaction(before.status, after.status, operator_note, at=at))


def check_append_only(before: List[Interaction], after: List[Interaction]) -> None:
    if len(after) < len(before) or list(after[: len(before)]) != list(before):
        raise InteractionHistoryError("Existing interactions cannot be changed or removed")


def custom_fields_payload(lead: Lead) -> Dict[str, Any]:
    """Full custom-fields object: unknown fields kept, checklist written whole."""
    return {**lead.custom_fields, "activity_checklist": lead.activity_checklist.model_dump()}


def build_patch(before: Lead, after: Lead, operator_note: str | None = None) -> LeadPatch:
    """Diff two versions of a lead into the columns that need writing.

    A status change without a matching StageChange entry gets one appended
    first, so the persisted status and its audit entry travel together.
    Raises InteractionHistoryError if ``after`` rewrites earlier interactions.
    """
    if before.id != after.id:
        raise ValueError("Cannot diff two different leads")
    after = ensure_stage_change(before, after, operator_note)
    check_append_only(before.interactions, after.interactions)

    patch: LeadPatch = {}
    for field, column in ROW_COLUMNS.items():
        old = _persisted(field, getattr(before, field))
        new = _persisted(field, getattr(after, field))
        if old != new:
            patch[column] = new

    if before.activity_checklist != after.activity_checklist or before.custom_fields != after.custom_fields:
        patch["tracking_custom_fields"] = custom_fields_payload(after)

    if len(after.interactions) != len(before.interactions):
        patch["interactions"] = [item.model_dump(mode="json") for item in after.interactions]
    return patch


def to_row_update(patch: LeadPatch, tracking_mode: str = "row") -> Dict[str, Any]:
    """Column values for a single ``leads`` row update.

    In joined mode the tracking columns live in ``leads_tracking`` and stage
    changes in its history table, so both are left out of the row update.
    """
    update = dict(patch)
    if tracking_mode == "joined":
        for column in TRACKING_COLUMNS:
            update.pop(column, None)
        if "interactions" in update:
            update["interactions"] = [
                item for item in update["interactions"] if item["type"] != InteractionType.STAGE_CHANGE.value
            ]
    if "interactions" in update:
        update["interactions"] = json.dumps(update["interactions"])
    return update


def to_tracking_payload(patch: LeadPatch) -> Dict[str, Any]:
    """Values for the per-user ``leads_tracking`` row, in its own column names."""
    return {TRACKING_COLUMNS[column]: value for column, value in patch.items() if column in TRACKING_COLUMNS}
