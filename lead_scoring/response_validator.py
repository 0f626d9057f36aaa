"""
Response validation for lead qualification.

Decides whether a raw reply has the semantic shape expected at the
current step of the script. Validation failures are not errors: they
drive the clarification/retry branch of the conversation engine.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from . import patterns
from .patterns import FieldKind

logger = logging.getLogger(__name__)


class InvalidReason(str, Enum):
    """Why a reply was rejected."""
    EMPTY = "empty"
    GIBBERISH = "gibberish"
    VAGUE_LOCATION = "vague-location"
    UNCLEAR_PROPERTY_TYPE = "unclear-property-type"
    UNCLEAR_BUDGET = "unclear-budget"
    TOO_SHORT = "too-short"


@dataclass(frozen=True)
class ValidationOutcome:
    """Tagged validation result: valid, or invalid with a reason."""
    is_valid: bool
    reason: Optional[InvalidReason] = None
    is_browsing: bool = False

    @classmethod
    def valid(cls, is_browsing: bool = False) -> "ValidationOutcome":
        return cls(is_valid=True, is_browsing=is_browsing)

    @classmethod
    def invalid(cls, reason: InvalidReason) -> "ValidationOutcome":
        return cls(is_valid=False, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"isValid": self.is_valid}
        if self.reason is not None:
            data["reason"] = self.reason.value
        if self.is_browsing:
            data["isBrowsing"] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationOutcome":
        reason = data.get("reason")
        return cls(
            is_valid=bool(data.get("isValid")),
            reason=InvalidReason(reason) if reason else None,
            is_browsing=bool(data.get("isBrowsing", False)),
        )


class ResponseValidator:
    """
    Validates replies against the field expected at a step.

    Order of checks:
    1. Empty / whitespace-only reply
    2. Gibberish signatures (any field)
    3. Field-specific rules
    """

    def validate(self, raw_reply: Optional[str], expected: FieldKind) -> ValidationOutcome:
        """
        Classify a reply as valid or invalid for the expected field.

        Args:
            raw_reply: Reply text as typed by the lead
            expected: Field kind the current step asks for

        Returns:
            ValidationOutcome
        """
        if raw_reply is None or not raw_reply.strip():
            return ValidationOutcome.invalid(InvalidReason.EMPTY)

        cleaned = raw_reply.strip().lower()

        if patterns.is_gibberish(cleaned):
            return ValidationOutcome.invalid(InvalidReason.GIBBERISH)

        if expected == FieldKind.LOCATION:
            return self._validate_location(cleaned)
        if expected == FieldKind.PROPERTY_TYPE:
            return self._validate_property_type(cleaned)
        if expected == FieldKind.BUDGET:
            return self._validate_budget(cleaned)
        if expected == FieldKind.TIMELINE:
            return self._validate_timeline(cleaned)

        return ValidationOutcome.valid()

    def _validate_location(self, reply: str) -> ValidationOutcome:
        if patterns.matches_any(patterns.LOCATION_NON_ANSWERS, reply):
            return ValidationOutcome.invalid(InvalidReason.VAGUE_LOCATION)

        if patterns.matches_any(patterns.LOCATION_VALID, reply):
            return ValidationOutcome.valid()

        if len(reply) < 3:
            return ValidationOutcome.invalid(InvalidReason.TOO_SHORT)
        return ValidationOutcome.invalid(InvalidReason.VAGUE_LOCATION)

    def _validate_property_type(self, reply: str) -> ValidationOutcome:
        if patterns.PROPERTY_TYPE_VALID.search(reply):
            return ValidationOutcome.valid()
        return ValidationOutcome.invalid(InvalidReason.UNCLEAR_PROPERTY_TYPE)

    def _validate_budget(self, reply: str) -> ValidationOutcome:
        if patterns.matches_any(patterns.BUDGET_VALID, reply):
            return ValidationOutcome.valid()

        if patterns.matches_any(patterns.BROWSING_REPLIES, reply):
            return ValidationOutcome.valid(is_browsing=True)

        return ValidationOutcome.invalid(InvalidReason.UNCLEAR_BUDGET)

    def _validate_timeline(self, reply: str) -> ValidationOutcome:
        if patterns.first_keyword_category(patterns.TIMELINE_KEYWORDS, reply):
            return ValidationOutcome.valid()

        # Permissive fallback: anything longer than a word or two passes
        if len(reply) > 5:
            return ValidationOutcome.valid()
        return ValidationOutcome.invalid(InvalidReason.TOO_SHORT)
