"""
SQLAlchemy ORM models for the lead qualification bot.

Leads and conversation sessions are stored as whole JSON documents with
a few columns lifted out for filtering and ordering.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, JSON, Index,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class LeadRecord(Base):
    __tablename__ = "leads"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False)
    source = Column(String(64), default="Unknown")
    status = Column(String(20), default="Active")  # Active, Completed, Escalated
    classification = Column(String(10), default="Pending")  # Pending, Hot, Warm, Cold, Invalid
    score = Column(Integer, nullable=True)
    document_json = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    events = relationship("LeadEvent", back_populates="lead", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_lead_classification", "classification"),
        Index("ix_lead_created", "created_at"),
    )


class ConversationRecord(Base):
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True)  # same as the lead id
    status = Column(String(12), default="active")  # active, complete, escalated
    current_step = Column(Integer, default=0)
    document_json = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class LeadEvent(Base):
    __tablename__ = "lead_events"

    id = Column(String(36), primary_key=True, default=_uuid)
    lead_id = Column(String(36), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    event_type = Column(String(30), nullable=False)  # created, classified, updated
    details_json = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    lead = relationship("LeadRecord", back_populates="events")
