"""
Lead Scoring Model for lead qualification.

Deterministic rule-based scoring over the extracted profile and the
validation history. Always available; also the fallback for the
assisted classifier.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from . import patterns
from .conversation import ChatMessage, LeadClassification, ValidationRecord, utc_now_iso
from .entity_extractor import LeadProfile

logger = logging.getLogger(__name__)

METHOD_RULE_BASED = "rule-based"
METHOD_ASSISTED = "assisted"

POOR_QUALITY_RATIONALE = "poor response quality"


@dataclass
class ScoreBreakdown:
    """Per-category contributions; they sum to the total score."""
    intent: int = 0
    budget: int = 0
    timeline: int = 0
    location: int = 0
    engagement: int = 0
    response_quality: int = 0

    @property
    def total(self) -> int:
        return (
            self.intent + self.budget + self.timeline
            + self.location + self.engagement + self.response_quality
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "intent": self.intent,
            "budget": self.budget,
            "timeline": self.timeline,
            "location": self.location,
            "engagement": self.engagement,
            "responseQuality": self.response_quality,
        }

    def describe(self) -> str:
        parts = [f"{k}={v}" for k, v in self.to_dict().items()]
        return ", ".join(parts) + f" (total {self.total})"


@dataclass
class ClassificationResult:
    """Final classification of a lead."""
    classification: LeadClassification
    score: Optional[int]
    rationale: str
    method: str = METHOD_RULE_BASED
    confidence: Optional[float] = None
    breakdown: Optional[ScoreBreakdown] = None
    response_quality: float = 0.0
    validation_summary: Dict[str, int] = field(default_factory=dict)
    fallback_reason: Optional[str] = None
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "classification": self.classification.value,
            "score": self.score,
            "rationale": self.rationale,
            "method": self.method,
            "confidence": self.confidence,
            "scoreBreakdown": self.breakdown.to_dict() if self.breakdown else None,
            "responseQuality": round(self.response_quality * 100),
            "validationSummary": self.validation_summary,
            "fallbackReason": self.fallback_reason,
            "timestamp": self.timestamp,
        }


class LeadScorer:
    """
    Scores a finished qualification conversation.

    Scoring Rules (max 16):
    - Intent: buy +4, investment +3, rent +2, browsing 0
    - Budget: >= 1 Cr +4, >= 50L +3, >= 20L +2, other amount +1, browsing 0
    - Timeline: urgent +3, soon +2, flexible +1
    - Location: locality keyword and > 10 chars +2, > 5 chars +1
    - Engagement: high +2, medium +1
    - Response quality: >= 80% valid replies +1

    Thresholds:
    - Score >= 10, or buy + budget >= 20L + urgent/soon + high engagement: Hot
    - Score >= 6: Warm
    - Otherwise: Cold
    - 3+ invalid replies or any gibberish message: Invalid (no score)
    """

    SCORING_RULES = {
        "intent_buy": 4,
        "intent_investment": 3,
        "intent_rent": 2,
        "intent_personal": 0,
        "intent_browsing": 0,

        "budget_premium": 4,   # 1 Cr+
        "budget_high": 3,      # 50L+
        "budget_mid": 2,       # 20L+
        "budget_base": 1,
        "budget_browsing": 0,

        "timeline_urgent": 3,
        "timeline_soon": 2,
        "timeline_flexible": 1,

        "location_specific": 2,
        "location_named": 1,

        "engagement_high": 2,
        "engagement_medium": 1,

        "response_quality": 1,
    }

    PREMIUM_BUDGET = 10_000_000
    HIGH_BUDGET = 5_000_000
    MID_BUDGET = 2_000_000

    HOT_THRESHOLD = 10
    WARM_THRESHOLD = 6
    INVALID_REPLY_LIMIT = 3
    RESPONSE_QUALITY_RATIO = 0.8

    def __init__(
        self,
        custom_rules: Optional[Dict[str, int]] = None,
        hot_threshold: Optional[int] = None,
        warm_threshold: Optional[int] = None,
    ):
        """
        Initialize the lead scorer.

        Args:
            custom_rules: Optional scoring rules overriding the defaults
            hot_threshold: Optional Hot threshold override
            warm_threshold: Optional Warm threshold override
        """
        self.rules = self.SCORING_RULES.copy()
        if custom_rules:
            self.rules.update(custom_rules)
        self.hot_threshold = hot_threshold if hot_threshold is not None else self.HOT_THRESHOLD
        self.warm_threshold = warm_threshold if warm_threshold is not None else self.WARM_THRESHOLD

    async def classify(
        self,
        profile: LeadProfile,
        validation_history: Sequence[ValidationRecord],
        messages: Sequence[ChatMessage],
    ) -> ClassificationResult:
        return self.score(profile, validation_history, messages)

    def score(
        self,
        profile: LeadProfile,
        validation_history: Sequence[ValidationRecord],
        messages: Sequence[ChatMessage] = (),
    ) -> ClassificationResult:
        """
        Classify a lead from its profile and conversation history.

        Pure function of its inputs: the same profile and history always
        yield the same score and classification.

        Args:
            profile: Extracted profile
            validation_history: Validation outcome of every reply
            messages: Full message transcript

        Returns:
            ClassificationResult
        """
        total = len(validation_history)
        valid = sum(1 for v in validation_history if v.outcome.is_valid)
        invalid = total - valid
        quality = valid / total if total else 0.0
        summary = {
            "totalResponses": total,
            "validResponses": valid,
            "invalidResponses": invalid,
        }

        if invalid >= self.INVALID_REPLY_LIMIT or self._has_gibberish(messages):
            return ClassificationResult(
                classification=LeadClassification.INVALID,
                score=None,
                rationale=POOR_QUALITY_RATIONALE,
                response_quality=quality,
                validation_summary=summary,
            )

        breakdown = ScoreBreakdown(
            intent=self._score_intent(profile),
            budget=self._score_budget(profile),
            timeline=self.rules.get(f"timeline_{profile.timeline}", 0),
            location=self._score_location(profile.location),
            engagement=self.rules.get(f"engagement_{profile.engagement}", 0),
            response_quality=(
                self.rules["response_quality"]
                if quality >= self.RESPONSE_QUALITY_RATIO else 0
            ),
        )
        score = breakdown.total

        if score >= self.hot_threshold or self._is_fast_track(profile):
            classification = LeadClassification.HOT
        elif score >= self.warm_threshold:
            classification = LeadClassification.WARM
        else:
            classification = LeadClassification.COLD

        return ClassificationResult(
            classification=classification,
            score=score,
            rationale=breakdown.describe(),
            breakdown=breakdown,
            response_quality=quality,
            validation_summary=summary,
        )

    def _score_intent(self, profile: LeadProfile) -> int:
        if not profile.intent:
            return 0
        return self.rules.get(f"intent_{profile.intent}", 0)

    def _score_budget(self, profile: LeadProfile) -> int:
        amount = profile.budget_amount
        if amount:
            if amount >= self.PREMIUM_BUDGET:
                return self.rules["budget_premium"]
            if amount >= self.HIGH_BUDGET:
                return self.rules["budget_high"]
            if amount >= self.MID_BUDGET:
                return self.rules["budget_mid"]
            return self.rules["budget_base"]
        if profile.is_browsing:
            return self.rules["budget_browsing"]
        return 0

    def _score_location(self, location: Optional[str]) -> int:
        if not location:
            return 0
        if len(location) > 10 and patterns.LOCATION_SPECIFIC.search(location):
            return self.rules["location_specific"]
        if len(location) > 5:
            return self.rules["location_named"]
        return 0

    def _is_fast_track(self, profile: LeadProfile) -> bool:
        """Buy intent with a real budget, near-term timeline and high engagement."""
        return (
            profile.intent == "buy"
            and (profile.budget_amount or 0) >= self.MID_BUDGET
            and profile.timeline in ("urgent", "soon")
            and profile.engagement == "high"
        )

    def _has_gibberish(self, messages: Sequence[ChatMessage]) -> bool:
        return any(
            patterns.is_gibberish(m.message.strip().lower())
            for m in messages
            if m.sender == "user" and m.message and m.message.strip()
        )


def validation_summary_metadata(result: ClassificationResult) -> Dict[str, Any]:
    """Lead metadata fields recorded for any classification."""
    return {
        "classificationMethod": result.method,
        "rationale": result.rationale,
        "confidence": result.confidence,
        "fallbackReason": result.fallback_reason,
        "responseQuality": round(result.response_quality * 100),
        "validationSummary": result.validation_summary,
    }

