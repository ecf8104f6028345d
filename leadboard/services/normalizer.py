"""Normalization of stored lead rows into the canonical Lead shape.

The same lead has been stored three ways over the life of the dashboard:

* flat: tracking fields sit directly on the ``leads`` row (``status``,
  ``comments``, a ``notes`` list);
* nested: the checklist and extra fields sit under ``tracking_custom_fields``
  and ``interactions`` is kept as JSON text;
* joined: status, priority, notes and checklist come from the current user's
  ``leads_tracking`` row, and every ``leads_tracking_history`` record becomes a
  StageChange interaction.

When a field is available from more than one layer it resolves as: tracking
row, then nested custom field, then flat row field, then the field default.
Blank strings count as absent. Nothing in here raises for missing or malformed
optional data; undecodable payloads are logged and replaced by defaults.
"""

import json
import logging
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from leadboard.core.errors import DecodeError
from leadboard.core.time import EPOCH, parse_timestamp
from leadboard.schemas.lead import (
    CHECKLIST_KEYS,
    ActivityChecklist,
    Interaction,
    InteractionType,
    Lead,
    LeadStatus,
)
from leadboard.schemas.rows import FlatRow, JoinedRow, NestedRow, SourceRow
from leadboard.services.lifecycle import STAGE_CHANGE_SUMMARY, parse_status

logger = logging.getLogger("leadboard.normalizer")

# canonical field: (tracking row key, custom field key, leads row key)
TRACKING_SOURCES = {
    "status": ("status", "status", "status"),
    "priority": ("priority", "priority", "priority"),
    "tracking_notes": ("notes", "tracking_notes", "tracking_notes"),
    "last_contact_date": ("last_contact_date", "last_contact_date", "last_contact"),
    "next_followup_date": ("next_follow_up", "next_followup_date", "next_followup_date"),
    "assigned_to": ("assigned_to", "assigned_to", "assigned_to"),
    "expected_value": ("expected_value", "expected_value", "expected_value"),
    "probability": ("probability", "probability", "probability"),
    "interest_level": (None, "interest_level", "interest_level"),
    "next_steps": (None, "next_steps", "next_steps"),
    "initial_contact_date": (None, "initial_contact_date", "initial_contact_date"),
    "requirements": (None, "requirements", "requirements"),
    "objections": (None, "objections", "objections"),
}

PRIORITIES = ("Low", "Medium", "High", "Urgent")
INTEREST_LEVELS = ("High", "Medium", "Low")
TRUE_STRINGS = {"true", "1", "yes", "y", "on"}


def decode_json_field(value: Any, expected: type, field: str):
    """Return ``value`` as ``expected``, decoding JSON text when needed.

    None, empty text and JSON ``null`` come back as None. Raises DecodeError for
    anything else that is not of the expected type.
    """
    if value is None:
        return None
    if isinstance(value, expected):
        return value
    if isinstance(value, (str, bytes)):
        if not value.strip():
            return None
        try:
            decoded = json.loads(value)
        except ValueError as exc:
            raise DecodeError(field, str(exc)) from exc
        if decoded is None or isinstance(decoded, expected):
            return decoded
        raise DecodeError(field, f"expected {expected.__name__}, got {type(decoded).__name__}")
    raise DecodeError(field, f"expected {expected.__name__}, got {type(value).__name__}")


def _decode_soft(value: Any, expected: type, field: str, default=None):
    try:
        decoded = decode_json_field(value, expected, field)
    except DecodeError as exc:
        logger.warning("normalizer: %s, using default", exc)
        return default
    return default if decoded is None else decoded


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _pick(layers, keys):
    for layer, key in zip(layers, keys):
        if key is None or not layer:
            continue
        value = layer.get(key)
        if not _is_blank(value):
            return value
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _as_int(value: Any) -> Optional[int]:
    number = _as_float(value)
    return int(number) if number is not None else None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def _as_choice(value: Any, choices) -> Optional[str]:
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    return next((choice for choice in choices if choice.lower() == lowered), None)


def _as_text_list(value: Any, field: str) -> List[str]:
    if isinstance(value, str) and not value.strip().startswith("["):
        return [value.strip()] if value.strip() else []
    items = _decode_soft(value, list, field, default=[])
    return [str(item) for item in items if not _is_blank(item)]


def _interaction_type(value: Any) -> InteractionType:
    if isinstance(value, InteractionType):
        return value
    key = str(value or "").replace(" ", "").replace("_", "").lower()
    return next((kind for kind in InteractionType if kind.value.lower() == key), InteractionType.OTHER)


def _coerce_interaction(item: Any, fallback_date: datetime) -> Interaction:
    if isinstance(item, Interaction):
        return item
    if not isinstance(item, dict):
        return Interaction(date=fallback_date, type=InteractionType.OTHER, summary=str(item))
    return Interaction(
        date=parse_timestamp(item.get("date")) or fallback_date,
        type=_interaction_type(item.get("type")),
        summary=_as_text(item.get("summary")) or "",
        notes=_as_text(item.get("notes")),
        action_items=_as_text_list(item.get("action_items", item.get("actionItems")), "action_items"),
    )


def decode_interactions(value: Any, fallback_date: datetime = EPOCH) -> List[Interaction]:
    """Decode a stored interaction history; malformed payloads yield an empty list."""
    items = _decode_soft(value, list, "interactions", default=[])
    return [_coerce_interaction(item, fallback_date) for item in items]


def _interactions_from_notes(value: Any, fallback_date: datetime) -> List[Interaction]:
    if isinstance(value, str) and not value.strip().startswith("["):
        notes = [value.strip()]
    else:
        notes = _decode_soft(value, list, "notes", default=[])
    return [_coerce_interaction(note, fallback_date) for note in notes if not _is_blank(note)]


def history_interactions(history: Iterable[Dict[str, Any]]) -> List[Interaction]:
    """Turn tracking history records into StageChange interactions, oldest first."""
    entries = []
    for record in history:
        previous = _decode_soft(record.get("previous_values"), dict, "previous_values", default={})
        new = _decode_soft(record.get("new_values"), dict, "new_values", default={})
        if "status" in new:
            summary = STAGE_CHANGE_SUMMARY.format(
                from_status=previous.get("status") or LeadStatus.NEW.value,
                to_status=new.get("status") or previous.get("status"),
            )
        else:
            changed = sorted(key for key in new if key != "note")
            summary = f"Updated {', '.join(changed)}" if changed else "Tracking updated"
        entries.append(
            Interaction(
                date=parse_timestamp(record.get("changed_at")) or EPOCH,
                type=InteractionType.STAGE_CHANGE,
                summary=summary,
                notes=_as_text(new.get("note")),
            )
        )
    return sorted(entries, key=lambda interaction: interaction.date)


def _checklist(candidates) -> ActivityChecklist:
    for field, candidate in candidates:
        decoded = _decode_soft(candidate, dict, field)
        if decoded:
            return ActivityChecklist(**{key: _as_bool(decoded.get(key)) for key in CHECKLIST_KEYS})
    return ActivityChecklist()


def _without_checklist(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if key != "activity_checklist"}


def classify_row(raw: Dict[str, Any], tracking: Optional[Dict[str, Any]] = None, history=None) -> SourceRow:
    """Tag a raw backend row with the storage shape it was written in."""
    row = dict(raw)
    custom = _decode_soft(row.get("tracking_custom_fields"), dict, "tracking_custom_fields", default={})
    if tracking is not None or history:
        return JoinedRow(
            row=row,
            custom_fields=custom,
            tracking=dict(tracking) if tracking is not None else None,
            history=[dict(record) for record in history or []],
        )
    if custom or not _is_blank(row.get("interactions")):
        return NestedRow(row=row, custom_fields=custom)
    return FlatRow(row=row)


def _stored_interactions(row: Dict[str, Any], fallback_date: datetime) -> List[Interaction]:
    if not _is_blank(row.get("interactions")):
        return decode_interactions(row.get("interactions"), fallback_date)
    return _interactions_from_notes(row.get("notes"), fallback_date)


def normalize(raw, tracking: Optional[Dict[str, Any]] = None, history=None) -> Lead:
    """Build the canonical Lead from a raw row, optionally joined with tracking rows.

    ``raw`` may be a plain row mapping or an already classified FlatRow,
    NestedRow or JoinedRow.
    """
    source = raw if isinstance(raw, (FlatRow, NestedRow, JoinedRow)) else classify_row(raw, tracking, history)
    row = source.row
    custom = source.custom_fields if isinstance(source, (NestedRow, JoinedRow)) else {}
    tracking_row = (source.tracking or {}) if isinstance(source, JoinedRow) else {}
    tracking_custom = _decode_soft(tracking_row.get("custom_fields"), dict, "custom_fields", default={})

    layers = (tracking_row, custom, row)
    values = {field: _pick(layers, keys) for field, keys in TRACKING_SOURCES.items()}

    created_at = parse_timestamp(row.get("created_at"))
    fallback_date = created_at or EPOCH

    if isinstance(source, FlatRow):
        interactions = _interactions_from_notes(row.get("notes"), fallback_date)
    elif isinstance(source, NestedRow):
        interactions = _stored_interactions(row, fallback_date)
    else:
        stored = [
            item
            for item in _stored_interactions(row, fallback_date)
            if item.type != InteractionType.STAGE_CHANGE
        ]
        interactions = sorted(stored + history_interactions(source.history), key=lambda item: item.date)

    checklist = _checklist(
        [
            ("custom_fields.activity_checklist", tracking_custom.get("activity_checklist")),
            ("tracking_custom_fields.activity_checklist", custom.get("activity_checklist")),
            ("activity_checklist", row.get("activity_checklist")),
        ]
    )

    return Lead(
        id="" if row.get("id") is None else str(row["id"]),
        name=_as_text(row.get("name")),
        phone=_as_text(row.get("phone")),
        email=_as_text(row.get("email")),
        city=_as_text(row.get("city")),
        lead_type=_as_text(row.get("lead_type")),
        lead_source=_as_text(row.get("lead_source")),
        created_at=created_at,
        url_slugs=_as_text_list(row.get("url_slugs"), "url_slugs"),
        device_info=_decode_soft(row.get("device_info"), dict, "device_info"),
        location_info=_decode_soft(row.get("location_info"), dict, "location_info"),
        comments=_as_text(row.get("comments")),
        status=parse_status(values["status"]),
        priority=_as_choice(values["priority"], PRIORITIES),
        interest_level=_as_choice(values["interest_level"], INTEREST_LEVELS),
        activity_checklist=checklist,
        interactions=interactions,
        tracking_notes=_as_text(values["tracking_notes"]),
        initial_contact_date=_as_text(values["initial_contact_date"]),
        last_contact_date=_as_text(values["last_contact_date"]),
        next_followup_date=_as_text(values["next_followup_date"]),
        expected_value=_as_float(values["expected_value"]),
        probability=_as_int(values["probability"]),
        assigned_to=_as_text(values["assigned_to"]),
        next_steps=_as_text(values["next_steps"]),
        requirements=_as_text_list(values["requirements"], "requirements"),
        objections=_as_text_list(values["objections"], "objections"),
        custom_fields={**_without_checklist(custom), **_without_checklist(tracking_custom)},
        shape=source.shape,
    )
