"""Dashboard stat cards derived from canonical leads."""

from collections import Counter
from typing import Iterable

from leadboard.schemas.lead import Lead, LeadStatus
from leadboard.schemas.stats import LeadStats

# stat card -> statuses counted in it
STAT_BUCKETS = {
    "new": (LeadStatus.NEW,),
    "follow_up": (LeadStatus.CONTACTED,),
    "converted": (LeadStatus.WON,),
    "not_interested": (LeadStatus.LOST,),
}


def _status_value(status) -> str | None:
    if isinstance(status, LeadStatus):
        return status.value
    return status if isinstance(status, str) else None


def aggregate(leads: Iterable[Lead]) -> LeadStats:
    """Count leads in total, per stat card and per status.

    A lead whose status is not part of the current lifecycle only counts
    towards ``total``.
    """
    counts: Counter = Counter()
    total = 0
    for lead in leads:
        total += 1
        counts[_status_value(lead.status)] += 1

    buckets = {
        name: sum(counts[status.value] for status in statuses)
        for name, statuses in STAT_BUCKETS.items()
    }
    by_status = {status.value: counts[status.value] for status in LeadStatus}
    return LeadStats(total=total, by_status=by_status, **buckets)
