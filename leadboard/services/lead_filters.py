"""List filters for the leads dashboard: time range, search, type and board grouping."""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from leadboard.schemas.lead import BoardColumn, Lead, LeadStatus

TIME_RANGES = {
    "12h": timedelta(hours=12),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}
ALL = "all"
UNKNOWN_TYPE = "Unknown"


def resolve_time_range(time_range: str | None, now: datetime) -> Optional[datetime]:
    """Return the earliest ``created_at`` included by a time range, None for "all"."""
    if not time_range or time_range == ALL:
        return None
    if time_range not in TIME_RANGES:
        raise ValueError(f"Unsupported time range: {time_range}")
    return now - TIME_RANGES[time_range]


def matches_search(lead: Lead, search: str | None) -> bool:
    if not search:
        return True
    term = search.lower()
    return (
        term in (lead.name or "").lower()
        or term in (lead.email or "").lower()
        or search in (lead.phone or "")
        or term in (lead.city or "").lower()
    )


def matches_type(lead: Lead, lead_type: str | None) -> bool:
    if not lead_type or lead_type.lower() == ALL:
        return True
    return (lead.lead_type or "").lower() == lead_type.lower()


def filter_leads(leads: Iterable[Lead], search: str | None = None, lead_type: str | None = None) -> List[Lead]:
    return [lead for lead in leads if matches_search(lead, search) and matches_type(lead, lead_type)]


def lead_types(leads: Iterable[Lead]) -> List[str]:
    """Distinct lead types in first-seen order; leads without a type show as Unknown."""
    seen: List[str] = []
    for lead in leads:
        value = lead.lead_type or UNKNOWN_TYPE
        if value not in seen:
            seen.append(value)
    return seen


def group_by_status(leads: Iterable[Lead]) -> List[BoardColumn]:
    """One board column per lifecycle status, in lifecycle order, empty ones included."""
    columns = {status: [] for status in LeadStatus}
    for lead in leads:
        columns[lead.status].append(lead)
    return [BoardColumn(status=status, count=len(items), leads=items) for status, items in columns.items()]
