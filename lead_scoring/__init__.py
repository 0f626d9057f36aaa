"""
Lead Scoring Module for the lead qualification bot.

This module provides the qualification core:
- Pattern library and reply validation
- Entity extraction (location, property type, intent, budget, timeline)
- Rule-based lead scoring (Hot / Warm / Cold / Invalid)
- Assisted classification with rule-based fallback
"""

from .patterns import FieldKind
from .response_validator import ResponseValidator, ValidationOutcome, InvalidReason
from .entity_extractor import EntityExtractor, LeadProfile, ExtractionResult
from .conversation import (
    ChatMessage,
    ConversationSession,
    Lead,
    LeadClassification,
    SessionStatus,
    ValidationRecord,
)
from .scoring_model import LeadScorer, ScoreBreakdown, ClassificationResult
from .classifier import AssistedClassifier, Classifier, TextGenerator

__all__ = [
    "FieldKind",
    "ResponseValidator",
    "ValidationOutcome",
    "InvalidReason",
    "EntityExtractor",
    "LeadProfile",
    "ExtractionResult",
    "ChatMessage",
    "ConversationSession",
    "Lead",
    "LeadClassification",
    "SessionStatus",
    "ValidationRecord",
    "LeadScorer",
    "ScoreBreakdown",
    "ClassificationResult",
    "AssistedClassifier",
    "Classifier",
    "TextGenerator",
]
