"""Canonical lead schemas shared by the reconciler and the API."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from leadboard.schemas.stats import LeadStats


class LeadStatus(str, Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    QUALIFIED = "Qualified"
    PROPOSAL = "Proposal"
    NEGOTIATION = "Negotiation"
    WON = "Won"
    LOST = "Lost"


class InteractionType(str, Enum):
    CALL = "Call"
    EMAIL = "Email"
    MEETING = "Meeting"
    STAGE_CHANGE = "StageChange"
    OTHER = "Other"


AllowedPriority = Literal["Low", "Medium", "High", "Urgent"]
AllowedInterestLevel = Literal["High", "Medium", "Low"]
RowShape = Literal["flat", "nested", "joined"]

CHECKLIST_KEYS = (
    "initial_call",
    "catalogue_sent",
    "demo_completed",
    "pricing_discussed",
    "proposal_sent",
)


class ActivityChecklist(BaseModel):
    initial_call: bool = False
    catalogue_sent: bool = False
    demo_completed: bool = False
    pricing_discussed: bool = False
    proposal_sent: bool = False

    model_config = ConfigDict(frozen=True)


class Interaction(BaseModel):
    """One entry of a lead's interaction history. Never changed once recorded."""

    date: datetime
    type: InteractionType
    summary: str
    notes: Optional[str] = None
    action_items: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class Lead(BaseModel):
    """Canonical in-memory lead, whatever shape it was stored in."""

    id: str
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    lead_type: Optional[str] = None
    lead_source: Optional[str] = None
    created_at: Optional[datetime] = None
    url_slugs: List[str] = Field(default_factory=list)
    device_info: Optional[Dict[str, Any]] = None
    location_info: Optional[Dict[str, Any]] = None
    comments: Optional[str] = None

    status: LeadStatus = LeadStatus.NEW
    priority: Optional[AllowedPriority] = None
    interest_level: Optional[AllowedInterestLevel] = None
    activity_checklist: ActivityChecklist = Field(default_factory=ActivityChecklist)
    interactions: List[Interaction] = Field(default_factory=list)

    tracking_notes: Optional[str] = None
    initial_contact_date: Optional[str] = None
    last_contact_date: Optional[str] = None
    next_followup_date: Optional[str] = None
    expected_value: Optional[float] = None
    probability: Optional[int] = None
    assigned_to: Optional[str] = None
    next_steps: Optional[str] = None
    requirements: List[str] = Field(default_factory=list)
    objections: List[str] = Field(default_factory=list)
    custom_fields: Dict[str, Any] = Field(default_factory=dict)

    shape: RowShape = "flat"


class LeadUpdate(BaseModel):
    """Partial edit of a lead's tracking fields; only fields sent are applied."""

    priority: Optional[AllowedPriority] = None
    interest_level: Optional[AllowedInterestLevel] = None
    assigned_to: Optional[str] = None
    last_contact_date: Optional[str] = None
    next_followup_date: Optional[str] = None
    expected_value: Optional[float] = None
    probability: Optional[int] = Field(default=None, ge=0, le=100)
    tracking_notes: Optional[str] = None
    next_steps: Optional[str] = None
    requirements: Optional[List[str]] = None
    objections: Optional[List[str]] = None
    activity_checklist: Optional[Dict[str, bool]] = None


class StatusChange(BaseModel):
    status: LeadStatus
    note: Optional[str] = None


class InteractionCreate(BaseModel):
    type: Literal["Call", "Email", "Meeting", "Other"]
    summary: str = Field(min_length=1)
    notes: Optional[str] = None
    action_items: List[str] = Field(default_factory=list)
    date: Optional[datetime] = None


class LeadListResponse(BaseModel):
    leads: List[Lead]
    stats: LeadStats
    lead_types: List[str]


class BoardColumn(BaseModel):
    status: LeadStatus
    count: int
    leads: List[Lead]
