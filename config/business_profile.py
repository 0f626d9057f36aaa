"""
Business profile loader.

A business profile is the per-industry qualification script: the ordered
questions, greeting templates, closing messages and scoring overrides.
It is loaded once at startup and shared read-only across sessions.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class BusinessProfileError(Exception):
    """Raised when the business profile file is missing or malformed."""


@dataclass(frozen=True)
class BusinessProfile:
    """Read-only qualification script for one industry."""

    industry: str
    business_name: str
    questions: Tuple[str, ...]
    greeting_templates: Tuple[str, ...]
    fields: Tuple[str, ...] = ()
    closing_messages: Tuple[str, ...] = ()
    scoring_rules: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    hot_threshold: Optional[int] = None
    warm_threshold: Optional[int] = None

    @property
    def step_count(self) -> int:
        return len(self.questions)

    @classmethod
    def from_dict(cls, industry: str, data: Dict[str, Any]) -> "BusinessProfile":
        questions = data.get("questions") or []
        if not questions:
            raise BusinessProfileError(f"Profile '{industry}' has no questions")

        greetings = data.get("greetingTemplates") or []
        if not greetings:
            raise BusinessProfileError(f"Profile '{industry}' has no greeting templates")

        scoring = data.get("scoring") or {}
        rules = {str(k): int(v) for k, v in (scoring.get("rules") or {}).items()}

        return cls(
            industry=industry,
            business_name=data.get("businessName", industry),
            questions=tuple(questions),
            greeting_templates=tuple(greetings),
            fields=tuple(data.get("fields") or ()),
            closing_messages=tuple(data.get("closingMessages") or ()),
            scoring_rules=MappingProxyType(rules),
            hot_threshold=scoring.get("hotThreshold"),
            warm_threshold=scoring.get("warmThreshold"),
        )


def load_business_profile(path: Union[str, Path], industry: str) -> BusinessProfile:
    """
    Load the profile for one industry from a JSON file.

    Args:
        path: Path to the profiles file (industry -> profile)
        industry: Industry key, e.g. "realEstate"

    Returns:
        BusinessProfile

    Raises:
        BusinessProfileError: If the file cannot be read or the industry is missing
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            profiles = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise BusinessProfileError(f"Could not load business profiles from {path}: {e}") from e

    data = profiles.get(industry)
    if not data:
        raise BusinessProfileError(f"Configuration for industry '{industry}' not found")

    profile = BusinessProfile.from_dict(industry, data)
    logger.info(f"Loaded {profile.step_count} questions for industry '{industry}'")
    return profile
