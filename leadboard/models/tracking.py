"""Per-user tracking tables for the joined storage shape."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from leadboard.db.base_class import Base
from leadboard.core.time import utc_now


class LeadTracking(Base):
    __tablename__ = "leads_tracking"
    __table_args__ = (UniqueConstraint("lead_id", "user_id", name="uq_leads_tracking_lead_user"),)

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(String, ForeignKey("leads.id"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    status = Column(String, nullable=True)
    priority = Column(String, nullable=True)
    last_contact_date = Column(String, nullable=True)
    next_follow_up = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    custom_fields = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    history = relationship("LeadTrackingHistory", back_populates="tracking", cascade="all, delete-orphan")


class LeadTrackingHistory(Base):
    __tablename__ = "leads_tracking_history"

    id = Column(Integer, primary_key=True, index=True)
    tracking_id = Column(Integer, ForeignKey("leads_tracking.id"), nullable=False, index=True)
    lead_id = Column(String, ForeignKey("leads.id"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False)
    previous_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    tracking = relationship("LeadTracking", back_populates="history")
