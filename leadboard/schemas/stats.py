"""Dashboard stat schemas."""

from typing import Dict

from pydantic import BaseModel, Field


class LeadStats(BaseModel):
    total: int = 0
    new: int = 0
    follow_up: int = 0
    converted: int = 0
    not_interested: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
