"""Lead row model for the hosted leads table.

One table serves both the flat and the nested storage shapes: flat rows carry
``status``, ``comments`` and a ``notes`` list directly, nested rows keep the
checklist and extra fields in ``tracking_custom_fields`` and the interaction
history as JSON text in ``interactions``.
"""

import uuid

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text

from leadboard.db.base_class import Base
from leadboard.core.time import utc_now


class LeadRecord(Base):
    __tablename__ = "leads"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    city = Column(String, nullable=True)
    lead_type = Column(String, nullable=True)
    lead_source = Column(String, nullable=True)
    url_slugs = Column(JSON, nullable=True)
    device_info = Column(JSON, nullable=True)
    location_info = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)

    status = Column(String, nullable=True)
    comments = Column(Text, nullable=True)
    notes = Column(JSON, nullable=True)
    priority = Column(String, nullable=True)
    assigned_to = Column(String, nullable=True)
    interest_level = Column(String, nullable=True)
    initial_contact_date = Column(String, nullable=True)
    last_contact = Column(String, nullable=True)
    next_followup_date = Column(String, nullable=True)
    expected_value = Column(Float, nullable=True)
    probability = Column(Integer, nullable=True)
    tracking_notes = Column(Text, nullable=True)
    next_steps = Column(Text, nullable=True)
    requirements = Column(JSON, nullable=True)
    objections = Column(JSON, nullable=True)
    tracking_custom_fields = Column(JSON, nullable=True)
    interactions = Column(Text, nullable=True)
