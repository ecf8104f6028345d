"""Lead lifecycle rules: status parsing, stage changes and local edits.

Every helper here returns a new Lead; the lead passed in is left untouched so a
failed save can fall back to it.
"""

from datetime import datetime
from typing import Any, Mapping

from leadboard.core.time import utc_now
from leadboard.schemas.lead import (
    CHECKLIST_KEYS,
    Interaction,
    InteractionType,
    Lead,
    LeadStatus,
)

STAGE_CHANGE_SUMMARY = "Changed from {from_status} to {to_status}"

# Older revisions used a different status set; each legacy value maps to its closest current stage.
LEGACY_STATUSES = {
    "follow-up": LeadStatus.CONTACTED,
    "follow up": LeadStatus.CONTACTED,
    "followup": LeadStatus.CONTACTED,
    "in progress": LeadStatus.CONTACTED,
    "pending followup": LeadStatus.CONTACTED,
    "pending follow-up": LeadStatus.CONTACTED,
    "interested": LeadStatus.QUALIFIED,
    "converted": LeadStatus.WON,
    "not interested": LeadStatus.LOST,
}

EDITABLE_FIELDS = {
    "priority",
    "interest_level",
    "assigned_to",
    "last_contact_date",
    "next_followup_date",
    "expected_value",
    "probability",
    "tracking_notes",
    "next_steps",
    "requirements",
    "objections",
}


def parse_status(value: Any) -> LeadStatus:
    """Map a stored status onto the current lifecycle, defaulting to New."""
    if isinstance(value, LeadStatus):
        return value
    if not isinstance(value, str):
        return LeadStatus.NEW
    key = value.strip().lower()
    for status in LeadStatus:
        if status.value.lower() == key:
            return status
    return LEGACY_STATUSES.get(key, LeadStatus.NEW)


def status_label(value: Any) -> str:
    if isinstance(value, LeadStatus):
        return value.value
    return str(value)


def stage_change_interaction(from_status, to_status, note: str | None = None, *, at: datetime | None = None) -> Interaction:
    return Interaction(
        date=at or utc_now(),
        type=InteractionType.STAGE_CHANGE,
        summary=STAGE_CHANGE_SUMMARY.format(from_status=status_label(from_status), to_status=status_label(to_status)),
        notes=note or None,
    )


def change_status(lead: Lead, new_status: LeadStatus | str, note: str | None = None, *, at: datetime | None = None) -> Lead:
    """Move a lead to a new status and record the transition in its history.

    Any transition is allowed; the lifecycle order is a convention for operators,
    not a constraint.
    """
    target = LeadStatus(new_status)
    if target == lead.status:
        return lead
    interaction = stage_change_interaction(lead.status, target, note, at=at)
    return lead.model_copy(update={"status": target, "interactions": [*lead.interactions, interaction]})


def record_interaction(lead: Lead, interaction: Interaction) -> Lead:
    return lead.model_copy(update={"interactions": [*lead.interactions, interaction]})


def set_checklist(lead: Lead, updates: Mapping[str, bool]) -> Lead:
    unknown = set(updates) - set(CHECKLIST_KEYS)
    if unknown:
        raise ValueError(f"Unknown checklist items: {', '.join(sorted(unknown))}")
    checklist = lead.activity_checklist.model_copy(update={key: bool(value) for key, value in updates.items()})
    return lead.model_copy(update={"activity_checklist": checklist})


def apply_edits(lead: Lead, changes: Mapping[str, Any]) -> Lead:
    """Apply operator edits to tracking fields. Status goes through change_status."""
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")
    update = dict(changes)
    for field in ("requirements", "objections"):
        if field in update and update[field] is None:
            update[field] = []
    for field in ("last_contact_date", "next_followup_date"):
        if isinstance(update.get(field), str) and not update[field].strip():
            update[field] = None
    return lead.model_copy(update=update)
