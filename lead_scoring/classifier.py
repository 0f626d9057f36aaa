"""
Lead classification strategies.

Two interchangeable strategies share one contract:
- LeadScorer (scoring_model): deterministic, rule-based, always available
- AssistedClassifier: asks a text-generation service for a verdict and
  resolves every failure through the rule-based scorer
"""

import asyncio
import json
import logging
from dataclasses import replace
from typing import Literal, Optional, Protocol, Sequence, Tuple, runtime_checkable

from pydantic import BaseModel, Field, ValidationError, field_validator

from llm.prompt_templates import PromptTemplates, PromptType

from .conversation import ChatMessage, LeadClassification, ValidationRecord
from .entity_extractor import LeadProfile
from .scoring_model import METHOD_ASSISTED, ClassificationResult, LeadScorer

logger = logging.getLogger(__name__)


@runtime_checkable
class Classifier(Protocol):
    """Turns a finished conversation into a classification."""

    async def classify(
        self,
        profile: LeadProfile,
        validation_history: Sequence[ValidationRecord],
        messages: Sequence[ChatMessage],
    ) -> ClassificationResult:
        ...


@runtime_checkable
class TextGenerator(Protocol):
    """External text-generation collaborator."""

    async def agenerate(self, prompt: str, system: Optional[str] = None) -> str:
        ...


class AssistedVerdict(BaseModel):
    """Strict schema for the text-generation service's answer."""

    classification: Literal["HOT", "COLD", "INVALID"]
    confidence: float = Field(..., ge=0, le=100)
    reason: str = ""

    @field_validator("classification", mode="before")
    @classmethod
    def _normalize_label(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("confidence", mode="before")
    @classmethod
    def _strip_percent(cls, value):
        if isinstance(value, str):
            return value.strip().rstrip("%").strip()
        return value


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced {...} substring of text, or None.

    Braces inside JSON strings are ignored.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        start = text.find("{", start + 1)
    return None


def parse_verdict(text: Optional[str]) -> Tuple[Optional[AssistedVerdict], Optional[str]]:
    """
    Parse a raw service response defensively.

    Returns:
        (verdict, None) on success, (None, reason) otherwise
    """
    if not text or not text.strip():
        return None, "empty response"

    candidate = extract_json_object(text)
    if candidate is None:
        return None, "no JSON object in response"

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        return None, f"malformed JSON: {e.msg}"

    try:
        return AssistedVerdict.model_validate(data), None
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        return None, f"unexpected verdict ({fields or 'schema mismatch'})"


class AssistedClassifier:
    """
    Classifier backed by an external text-generation service.

    The rule-based scorer always runs first; its result supplies the
    numeric score and is returned unchanged (method "rule-based", with
    the reason noted) whenever the service times out, errors, or answers
    outside the HOT / COLD / INVALID contract.
    """

    VERDICT_MAP = {
        "HOT": LeadClassification.HOT,
        "COLD": LeadClassification.COLD,
        "INVALID": LeadClassification.INVALID,
    }

    def __init__(
        self,
        provider: TextGenerator,
        fallback: Optional[LeadScorer] = None,
        templates: Optional[PromptTemplates] = None,
        timeout: float = 15.0,
    ):
        """
        Initialize the assisted classifier.

        Args:
            provider: Text-generation service
            fallback: Rule-based scorer used for the score and on any failure
            templates: Prompt templates
            timeout: Upper bound in seconds for the service call
        """
        self.provider = provider
        self.fallback = fallback or LeadScorer()
        self.templates = templates or PromptTemplates()
        self.timeout = timeout

    async def classify(
        self,
        profile: LeadProfile,
        validation_history: Sequence[ValidationRecord],
        messages: Sequence[ChatMessage],
    ) -> ClassificationResult:
        baseline = self.fallback.score(profile, validation_history, messages)
        if baseline.classification == LeadClassification.INVALID:
            return baseline

        system = self.templates.get_system_prompt(PromptType.LEAD_CLASSIFICATION)
        prompt = self.templates.build_classification_prompt(messages, profile.to_dict())

        try:
            raw = await asyncio.wait_for(
                self.provider.agenerate(prompt, system=system),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            return self._fall_back(baseline, f"assisted classification timed out after {self.timeout}s")
        except Exception as e:
            return self._fall_back(baseline, f"text generation failed: {e}")

        verdict, error = parse_verdict(raw)
        if verdict is None:
            return self._fall_back(baseline, error)

        classification = self.VERDICT_MAP[verdict.classification]
        logger.info(
            f"Assisted classification: {classification.value} "
            f"({verdict.confidence:.0f}% confidence)"
        )
        return ClassificationResult(
            classification=classification,
            score=None if classification == LeadClassification.INVALID else baseline.score,
            rationale=verdict.reason or baseline.rationale,
            method=METHOD_ASSISTED,
            confidence=verdict.confidence,
            breakdown=baseline.breakdown,
            response_quality=baseline.response_quality,
            validation_summary=baseline.validation_summary,
        )

    def _fall_back(self, baseline: ClassificationResult, reason: str) -> ClassificationResult:
        logger.warning(f"Falling back to rule-based classification: {reason}")
        return replace(baseline, fallback_reason=reason)
