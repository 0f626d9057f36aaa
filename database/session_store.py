"""
Session store protocol and file/in-memory implementations.

The conversation engine reads a session, runs one turn, and writes the
session (and, when classified, the lead) back wholesale. Stores hand out
one asyncio.Lock per session id so turns for the same lead never
interleave.
"""

import asyncio
import copy
import json
import logging
import os
import threading
import weakref
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Union, runtime_checkable

from lead_scoring.conversation import ConversationSession, Lead

logger = logging.getLogger(__name__)


class SessionStoreError(Exception):
    """Raised when the store cannot be read or written."""


@runtime_checkable
class SessionStore(Protocol):
    """Protocol for lead and conversation session persistence."""

    async def load(self, session_id: str) -> Optional[ConversationSession]:
        """Load a session, or None if unknown."""
        ...

    async def save(
        self,
        session_id: str,
        session: ConversationSession,
        lead: Optional[Lead] = None,
    ) -> None:
        """Persist a session, and the lead with it when given."""
        ...

    async def load_lead(self, lead_id: str) -> Optional[Lead]:
        ...

    async def list_leads(self) -> List[Lead]:
        ...

    def lock(self, session_id: str) -> asyncio.Lock:
        """Per-session lock serialising read-modify-write turns."""
        ...


class _KeyedLocks:
    def __init__(self):
        # Entries vanish once no turn holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock


class InMemorySessionStore(_KeyedLocks):
    """Dict-backed store; documents are copied in and out."""

    def __init__(self):
        super().__init__()
        self._sessions: Dict[str, Dict[str, Any]] = {}
        self._leads: Dict[str, Dict[str, Any]] = {}

    async def load(self, session_id: str) -> Optional[ConversationSession]:
        data = self._sessions.get(session_id)
        return ConversationSession.from_dict(copy.deepcopy(data)) if data else None

    async def save(
        self,
        session_id: str,
        session: ConversationSession,
        lead: Optional[Lead] = None,
    ) -> None:
        self._sessions[session_id] = copy.deepcopy(session.to_dict())
        if lead is not None:
            self._leads[lead.id] = copy.deepcopy(lead.to_dict())

    async def load_lead(self, lead_id: str) -> Optional[Lead]:
        data = self._leads.get(lead_id)
        return Lead.from_dict(copy.deepcopy(data)) if data else None

    async def list_leads(self) -> List[Lead]:
        return [Lead.from_dict(copy.deepcopy(d)) for d in self._leads.values()]


class JsonFileSessionStore(_KeyedLocks):
    """
    Single JSON document holding leads and chats.

    Layout: {"leads": {lead_id: lead}, "chats": {lead_id: session}}.
    Every write replaces the file atomically, so a failed write leaves
    the previous state intact.
    """

    FILENAME = "leads_store.json"

    def __init__(self, data_directory: Union[str, Path]):
        super().__init__()
        self.directory = Path(data_directory)
        self.path = self.directory / self.FILENAME
        self._file_lock = threading.Lock()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SessionStoreError(f"Cannot create data directory {self.directory}: {e}") from e
        logger.info(f"JSON session store at {self.path}")

    def _read(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {"leads": {}, "chats": {}}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = f.read()
            document = json.loads(content) if content.strip() else {}
        except (OSError, json.JSONDecodeError) as e:
            raise SessionStoreError(f"Cannot read {self.path}: {e}") from e
        document.setdefault("leads", {})
        document.setdefault("chats", {})
        return document

    def _update(self, mutate: Callable[[Dict[str, Dict[str, Any]]], None]) -> None:
        with self._file_lock:
            document = self._read()
            mutate(document)
            tmp_path = self.path.with_suffix(".tmp")
            try:
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except OSError as e:
                raise SessionStoreError(f"Cannot write {self.path}: {e}") from e

    async def _read_async(self) -> Dict[str, Dict[str, Any]]:
        return await asyncio.to_thread(self._read)

    async def load(self, session_id: str) -> Optional[ConversationSession]:
        data = (await self._read_async())["chats"].get(session_id)
        return ConversationSession.from_dict(data) if data else None

    async def save(
        self,
        session_id: str,
        session: ConversationSession,
        lead: Optional[Lead] = None,
    ) -> None:
        def mutate(document):
            document["chats"][session_id] = session.to_dict()
            if lead is not None:
                document["leads"][lead.id] = lead.to_dict()

        await asyncio.to_thread(self._update, mutate)

    async def load_lead(self, lead_id: str) -> Optional[Lead]:
        data = (await self._read_async())["leads"].get(lead_id)
        return Lead.from_dict(data) if data else None

    async def list_leads(self) -> List[Lead]:
        return [Lead.from_dict(d) for d in (await self._read_async())["leads"].values()]
