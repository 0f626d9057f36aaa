"""
Chat API Routes for the lead qualification bot.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ..services import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request / Response Models ─────────────────────────────────────

class MessageRequest(BaseModel):
    # Emptiness is checked by the engine so it gets its own error
    message: Optional[str] = Field(default=None, max_length=2000)


class MessageResponse(BaseModel):
    success: bool = True
    messages: List[str]
    isComplete: bool
    currentStep: int
    status: str
    validationResult: Dict[str, Any]
    classification: Optional[Dict[str, Any]] = None


# ── Endpoints ─────────────────────────────────────────────────────

@router.post("/chat/{lead_id}/message", response_model=MessageResponse)
async def send_message(lead_id: str, request: MessageRequest):
    """
    Process one reply in a qualification conversation.

    1. Validate the reply for the current step  2. Extract profile fields
    3. Pick the next prompt  4. Classify when the script ends
    """
    engine = get_services().engine
    result = await engine.advance_conversation(lead_id, request.message)
    return MessageResponse(**result.to_dict())


@router.get("/chat/{lead_id}")
async def get_chat(lead_id: str):
    """Get the full conversation session."""
    session = await get_services().engine.get_session(lead_id)
    return session.to_dict()
