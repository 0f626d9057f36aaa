"""
Repository classes for the lead qualification data access layer.

Each repository encapsulates CRUD operations for a specific model.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ConversationRecord, LeadRecord, LeadEvent

logger = logging.getLogger(__name__)


class ConversationRepository:
    """Data access for conversation sessions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, conversation_id: str) -> Optional[ConversationRecord]:
        result = await self.session.execute(
            select(ConversationRecord).where(ConversationRecord.id == conversation_id)
        )
        return result.scalar_one_or_none()

    async def upsert(self, conversation_id: str, document: Dict[str, Any]) -> ConversationRecord:
        record = await self.get_by_id(conversation_id)
        if record is None:
            record = ConversationRecord(id=conversation_id)
            self.session.add(record)
        record.status = document.get("status", "active")
        record.current_step = document.get("currentStep", 0)
        record.document_json = document
        await self.session.flush()
        return record


class LeadRepository:
    """Data access for leads and lead events."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, lead_id: str) -> Optional[LeadRecord]:
        result = await self.session.execute(
            select(LeadRecord).where(LeadRecord.id == lead_id)
        )
        return result.scalar_one_or_none()

    async def upsert(self, document: Dict[str, Any]) -> LeadRecord:
        """Create or replace a lead, recording a lifecycle event."""
        record = await self.get_by_id(document["id"])
        if record is None:
            record = LeadRecord(id=document["id"])
            self.session.add(record)
            event_type = "created"
        elif record.classification != document.get("classification"):
            event_type = "classified"
        else:
            event_type = "updated"

        record.name = document.get("name", "")
        record.phone = document.get("phone", "")
        record.source = document.get("source", "Unknown")
        record.status = document.get("status", "Active")
        record.classification = document.get("classification", "Pending")
        record.score = document.get("score")
        record.document_json = document
        await self.session.flush()

        self.session.add(LeadEvent(
            lead_id=record.id,
            event_type=event_type,
            details_json={"classification": record.classification, "score": record.score},
        ))
        await self.session.flush()
        return record

    async def list_all(self, limit: int = 500, offset: int = 0) -> List[LeadRecord]:
        result = await self.session.execute(
            select(LeadRecord)
            .order_by(LeadRecord.created_at.asc())
            .offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    async def list_events(self, lead_id: str) -> List[LeadEvent]:
        result = await self.session.execute(
            select(LeadEvent)
            .where(LeadEvent.lead_id == lead_id)
            .order_by(LeadEvent.created_at.asc())
        )
        return list(result.scalars().all())

