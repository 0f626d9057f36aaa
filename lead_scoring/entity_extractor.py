"""
Entity Extraction for lead qualification.

Pulls typed values out of validated replies:
- Location (verbatim)
- Property type and purchase intent
- Budget (display string + normalized rupee amount)
- Timeline
- Engagement level

The accumulated profile is immutable; every extraction returns a new
profile plus the diff of fields it set.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from . import patterns
from .patterns import FieldKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeadProfile:
    """Structured attributes accumulated from a lead's replies."""

    location: Optional[str] = None
    property_type: Optional[str] = None   # flat / villa / plot / commercial
    intent: Optional[str] = None          # buy / rent / investment / personal / browsing
    budget: Optional[str] = None          # "₹75L", "₹1.5 crore" or "browsing"
    budget_amount: Optional[int] = None   # rupees
    timeline: Optional[str] = None        # urgent / soon / flexible
    engagement: Optional[str] = None      # high / medium / low

    # attribute -> persisted field name
    FIELD_NAMES = {
        "location": "location",
        "property_type": "propertyType",
        "intent": "intent",
        "budget": "budget",
        "budget_amount": "budgetAmount",
        "timeline": "timeline",
        "engagement": "engagement",
    }

    @property
    def is_browsing(self) -> bool:
        return self.budget == "browsing"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, omitting unset fields."""
        return {
            name: getattr(self, attr)
            for attr, name in self.FIELD_NAMES.items()
            if getattr(self, attr) is not None
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "LeadProfile":
        data = data or {}
        values = {attr: data.get(name) for attr, name in cls.FIELD_NAMES.items()}
        if values["budget_amount"] is not None:
            values["budget_amount"] = int(values["budget_amount"])
        return cls(**values)


@dataclass(frozen=True)
class ExtractionResult:
    """New profile plus the fields this reply set (for logging)."""
    profile: LeadProfile
    diff: Dict[str, Any] = field(default_factory=dict)


def format_amount(value: float) -> str:
    """1.5 -> '1.5', 80.0 -> '80'."""
    return str(int(value)) if float(value).is_integer() else str(value)


class EntityExtractor:
    """
    Extracts profile fields from a validated reply.

    Extraction never fails a turn: a reply with no recognizable
    structure leaves the corresponding field unset.
    """

    def extract(
        self,
        profile: LeadProfile,
        raw_reply: str,
        field_kind: FieldKind,
    ) -> ExtractionResult:
        """
        Extract entities for the field the current step asked about.

        Args:
            profile: Profile accumulated so far (not modified)
            raw_reply: Reply text
            field_kind: Field the step asked for

        Returns:
            ExtractionResult with the updated profile and the diff
        """
        if not raw_reply or not raw_reply.strip():
            return ExtractionResult(profile=profile)

        text = raw_reply.strip().lower()
        updates: Dict[str, Any] = {}

        if field_kind == FieldKind.LOCATION:
            updates["location"] = raw_reply.strip()

        elif field_kind == FieldKind.PROPERTY_TYPE:
            property_type = patterns.first_category(patterns.PROPERTY_TYPE_KEYWORDS, text)
            if property_type:
                updates["property_type"] = property_type

            intent = patterns.first_category(patterns.INTENT_KEYWORDS, text)
            if intent:
                updates["intent"] = intent

            timeline = self._extract_timeline(text)
            if timeline:
                updates["timeline"] = timeline

        elif field_kind == FieldKind.BUDGET:
            updates.update(self._extract_budget(text))

            if not profile.timeline:
                timeline = self._extract_timeline(text)
                if timeline:
                    updates["timeline"] = timeline

        elif field_kind == FieldKind.TIMELINE:
            timeline = self._extract_timeline(text)
            if timeline:
                updates["timeline"] = timeline

        elif field_kind == FieldKind.ENGAGEMENT:
            updates["engagement"] = self._extract_engagement(text)

        if not updates:
            return ExtractionResult(profile=profile)

        new_profile = replace(profile, **updates)
        diff = {LeadProfile.FIELD_NAMES[k]: v for k, v in updates.items()}
        logger.debug(f"Extracted {diff} for field {field_kind.value}")
        return ExtractionResult(profile=new_profile, diff=diff)

    def _extract_budget(self, text: str) -> Dict[str, Any]:
        """
        Extract budget information from a reply.

        Crore amounts take precedence over lakh amounts. A reply with no
        amount that reads as "still browsing" sets budget and intent to
        "browsing", replacing any intent extracted earlier.
        """
        match = patterns.CRORE_AMOUNT.search(text)
        if match:
            amount = float(match.group(1))
            return {
                "budget": f"₹{format_amount(amount)} crore",
                "budget_amount": int(round(amount * patterns.CRORE)),
            }

        match = patterns.LAKH_AMOUNT.search(text)
        if match:
            amount = float(match.group(1))
            return {
                "budget": f"₹{format_amount(amount)}L",
                "budget_amount": int(round(amount * patterns.LAKH)),
            }

        if (
            patterns.matches_any(patterns.BROWSING_REPLIES, text)
            or patterns.matches_any(patterns.BROWSING_HINTS, text)
        ):
            return {"budget": "browsing", "intent": "browsing"}

        return {}

    def _extract_timeline(self, text: str) -> Optional[str]:
        return patterns.first_keyword_category(patterns.TIMELINE_KEYWORDS, text)

    def _extract_engagement(self, text: str) -> str:
        if patterns.ENGAGEMENT_HIGH.search(text):
            return "high"
        if patterns.ENGAGEMENT_MEDIUM.search(text):
            return "medium"
        return "low"
