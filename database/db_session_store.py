"""
Database-backed SessionStore for the lead qualification bot.

Implements the SessionStore protocol using the repository layer. Each
save runs in one transaction, so a session and its lead are written
together or not at all.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lead_scoring.conversation import ConversationSession, Lead

from .repositories import ConversationRepository, LeadRepository
from .session import session_scope
from .session_store import SessionStoreError, _KeyedLocks

logger = logging.getLogger(__name__)


class DbSessionStore(_KeyedLocks):
    """Persistent session store backed by PostgreSQL or SQLite."""

    PAGE_SIZE = 500

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__()
        self._factory = session_factory

    async def load(self, session_id: str) -> Optional[ConversationSession]:
        try:
            async with session_scope(self._factory) as db:
                record = await ConversationRepository(db).get_by_id(session_id)
                document = dict(record.document_json) if record else None
        except SQLAlchemyError as e:
            raise SessionStoreError(f"Cannot load session {session_id}: {e}") from e
        return ConversationSession.from_dict(document) if document else None

    async def save(
        self,
        session_id: str,
        session: ConversationSession,
        lead: Optional[Lead] = None,
    ) -> None:
        try:
            async with session_scope(self._factory) as db:
                await ConversationRepository(db).upsert(session_id, session.to_dict())
                if lead is not None:
                    await LeadRepository(db).upsert(lead.to_dict())
        except SQLAlchemyError as e:
            raise SessionStoreError(f"Cannot save session {session_id}: {e}") from e

    async def load_lead(self, lead_id: str) -> Optional[Lead]:
        try:
            async with session_scope(self._factory) as db:
                record = await LeadRepository(db).get_by_id(lead_id)
                document = dict(record.document_json) if record else None
        except SQLAlchemyError as e:
            raise SessionStoreError(f"Cannot load lead {lead_id}: {e}") from e
        return Lead.from_dict(document) if document else None

    async def list_leads(self) -> List[Lead]:
        documents = []
        try:
            async with session_scope(self._factory) as db:
                repo = LeadRepository(db)
                while True:
                    records = await repo.list_all(limit=self.PAGE_SIZE, offset=len(documents))
                    documents.extend(dict(r.document_json) for r in records)
                    if len(records) < self.PAGE_SIZE:
                        break
        except SQLAlchemyError as e:
            raise SessionStoreError(f"Cannot list leads: {e}") from e
        return [Lead.from_dict(d) for d in documents]
