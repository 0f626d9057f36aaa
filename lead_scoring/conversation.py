"""
Lead and conversation session records.

These are the documents the session store persists. Field names in
to_dict() are the interchange names used by the dashboard and exports.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .entity_extractor import LeadProfile
from .response_validator import ValidationOutcome


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class LeadClassification(str, Enum):
    """Final qualitative bucket for a lead."""
    PENDING = "Pending"
    HOT = "Hot"
    WARM = "Warm"
    COLD = "Cold"
    INVALID = "Invalid"


class SessionStatus(str, Enum):
    """Conversation state; complete and escalated are terminal."""
    ACTIVE = "active"
    COMPLETE = "complete"
    ESCALATED = "escalated"


@dataclass
class ChatMessage:
    """One exchanged message."""
    sender: str  # bot / user
    message: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sender": self.sender,
            "message": self.message,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        return cls(
            sender=data["sender"],
            message=data["message"],
            id=data.get("id") or uuid.uuid4().hex,
            timestamp=data.get("timestamp") or utc_now_iso(),
        )


@dataclass
class ValidationRecord:
    """Outcome of validating one reply."""
    step: int
    raw_reply: str
    outcome: ValidationOutcome
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "rawReply": self.raw_reply,
            "validationOutcome": self.outcome.to_dict(),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationRecord":
        return cls(
            step=int(data["step"]),
            raw_reply=data.get("rawReply", ""),
            outcome=ValidationOutcome.from_dict(data.get("validationOutcome") or {}),
            timestamp=data.get("timestamp") or utc_now_iso(),
        )


@dataclass
class ConversationSession:
    """Per-lead conversation state: step, profile and history."""

    lead_id: str
    messages: List[ChatMessage] = field(default_factory=list)
    current_step: int = 0
    profile: LeadProfile = field(default_factory=LeadProfile)
    invalid_reply_count: int = 0
    validation_history: List[ValidationRecord] = field(default_factory=list)
    status: SessionStatus = SessionStatus.ACTIVE
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.status != SessionStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "leadId": self.lead_id,
            "messages": [m.to_dict() for m in self.messages],
            "currentStep": self.current_step,
            "profile": self.profile.to_dict(),
            "invalidReplyCount": self.invalid_reply_count,
            "validationHistory": [v.to_dict() for v in self.validation_history],
            "status": self.status.value,
            "isComplete": self.is_complete,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationSession":
        return cls(
            lead_id=data["leadId"],
            messages=[ChatMessage.from_dict(m) for m in data.get("messages", [])],
            current_step=int(data.get("currentStep", 0)),
            profile=LeadProfile.from_dict(data.get("profile")),
            invalid_reply_count=int(data.get("invalidReplyCount", 0)),
            validation_history=[
                ValidationRecord.from_dict(v) for v in data.get("validationHistory", [])
            ],
            status=SessionStatus(data.get("status", SessionStatus.ACTIVE.value)),
            created_at=data.get("createdAt") or utc_now_iso(),
            updated_at=data.get("updatedAt"),
        )

    def copy(self) -> "ConversationSession":
        """Independent copy for a read-modify-write turn."""
        return ConversationSession.from_dict(self.to_dict())


@dataclass
class Lead:
    """Prospective customer record and its qualification outcome."""

    id: str
    name: str
    phone: str
    source: str = "Unknown"
    initial_message: str = ""
    status: str = "Active"
    classification: LeadClassification = LeadClassification.PENDING
    score: Optional[int] = 0
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "source": self.source,
            "initialMessage": self.initial_message,
            "status": self.status,
            "classification": self.classification.value,
            "score": self.score,
            "metadata": self.metadata,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Lead":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            phone=data.get("phone", ""),
            source=data.get("source") or "Unknown",
            initial_message=data.get("initialMessage", ""),
            status=data.get("status", "Active"),
            classification=LeadClassification(data.get("classification", "Pending")),
            score=data.get("score"),
            metadata=dict(data.get("metadata") or {}),
            created_at=data.get("createdAt") or utc_now_iso(),
            updated_at=data.get("updatedAt"),
        )

    def copy(self) -> "Lead":
        return Lead.from_dict(self.to_dict())
