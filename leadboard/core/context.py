"""Explicit per-request session context passed into the lead core."""

from dataclasses import dataclass, field
from datetime import datetime

from leadboard.core.time import utc_now


@dataclass(frozen=True)
class SessionContext:
    user_id: int
    now: datetime = field(default_factory=utc_now)
