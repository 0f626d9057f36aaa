"""
Lead Management API Routes for the lead qualification bot.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from lead_scoring.conversation import LeadClassification
from lead_scoring.export import leads_to_csv
from ..services import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


# Models
class LeadCreate(BaseModel):
    """Lead creation request."""
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=32)
    source: Optional[str] = None
    message: Optional[str] = Field(default=None, max_length=2000)


class LeadCreated(BaseModel):
    success: bool = True
    leadId: str
    lead: Dict[str, Any]
    initialMessages: List[str]


class LeadList(BaseModel):
    """Lead list, newest first."""
    leads: List[Dict[str, Any]]
    total: int


class LeadStats(BaseModel):
    """Lead statistics."""
    total: int
    by_classification: Dict[str, int]
    by_status: Dict[str, int]
    average_score: float


@router.post("/leads", response_model=LeadCreated)
async def create_lead(request: LeadCreate):
    """
    Create a new lead and start its qualification conversation.

    Returns the greeting and the first scripted question.
    """
    engine = get_services().engine
    lead, _, initial_messages = await engine.start_conversation(
        name=request.name,
        phone=request.phone,
        source=request.source,
        message=request.message,
    )
    return LeadCreated(leadId=lead.id, lead=lead.to_dict(), initialMessages=initial_messages)


@router.get("/leads", response_model=LeadList)
async def list_leads(
    classification: Optional[LeadClassification] = None,
    source: Optional[str] = None,
    min_score: Optional[int] = Query(None, ge=0),
):
    """List leads with optional filtering."""
    leads = await get_services().engine.list_leads()

    if classification:
        leads = [l for l in leads if l.classification == classification]
    if source:
        leads = [l for l in leads if l.source == source]
    if min_score is not None:
        leads = [l for l in leads if (l.score or 0) >= min_score]

    leads.sort(key=lambda l: l.created_at, reverse=True)
    return LeadList(leads=[l.to_dict() for l in leads], total=len(leads))


@router.get("/leads/export")
async def export_leads():
    """Export all leads as CSV."""
    leads = await get_services().engine.list_leads()
    content = leads_to_csv(leads)
    logger.info(f"Exported {len(leads)} leads")
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=leads.csv"},
    )


@router.get("/leads/stats/summary", response_model=LeadStats)
async def get_lead_stats():
    """Get lead statistics summary."""
    leads = await get_services().engine.list_leads()
    scored = [l.score for l in leads if l.score is not None]

    return LeadStats(
        total=len(leads),
        by_classification=dict(Counter(l.classification.value for l in leads)),
        by_status=dict(Counter(l.status for l in leads)),
        average_score=round(sum(scored) / len(scored), 2) if scored else 0.0,
    )


@router.get("/leads/{lead_id}")
async def get_lead(lead_id: str):
    """Get a specific lead."""
    lead = await get_services().engine.get_lead(lead_id)
    return lead.to_dict()


@router.post("/leads/{lead_id}/reclassify")
async def reclassify_lead(lead_id: str):
    """Classify a finished conversation again."""
    lead = await get_services().engine.reclassify(lead_id)
    return {"success": True, "lead": lead.to_dict()}
