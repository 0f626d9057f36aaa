"""
Prompt Templates for assisted lead classification.
"""

import json
from enum import Enum
from typing import Any, Dict, Optional, Sequence


class PromptType(Enum):
    """Types of prompts."""
    LEAD_CLASSIFICATION = "lead_classification"


class PromptTemplates:
    """
    Manages prompt templates sent to the text-generation service.

    The classification prompt pins the output to a single JSON object so
    the response can be parsed and checked before it is trusted.
    """

    SYSTEM_PROMPTS = {
        PromptType.LEAD_CLASSIFICATION: """You are a lead qualification analyst for {business_name}.

You read a short qualification chat between our assistant and a prospective
property buyer, together with the details already extracted from it, and
decide how sales-ready the lead is.

Classify the lead as exactly one of:
- HOT: clear purchase or investment intent, a concrete budget, and willingness to engage soon
- COLD: genuine but vague, early-stage or low-commitment interest
- INVALID: spam, gibberish, test entries, or no meaningful answers

Output ONLY a single JSON object, no markdown and no extra text:
{{"classification": "HOT", "confidence": 85, "reason": "one short sentence"}}

"confidence" is a percentage between 0 and 100.""",
    }

    USER_TEMPLATES = {
        PromptType.LEAD_CLASSIFICATION: """Conversation transcript:
{transcript}

Extracted details:
{profile}

Return the JSON object now.""",
    }

    def __init__(self, business_name: str = "our company"):
        self.business_name = business_name

    def get_system_prompt(self, prompt_type: PromptType) -> str:
        return self.SYSTEM_PROMPTS[prompt_type].format(business_name=self.business_name)

    def build_classification_prompt(
        self,
        messages: Sequence[Any],
        profile: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Build the user prompt for lead classification.

        Args:
            messages: Transcript entries with sender and message attributes
            profile: Extracted profile as a dictionary

        Returns:
            Formatted prompt
        """
        lines = []
        for msg in messages:
            speaker = "Assistant" if msg.sender == "bot" else "Lead"
            lines.append(f"{speaker}: {msg.message}")

        return self.USER_TEMPLATES[PromptType.LEAD_CLASSIFICATION].format(
            transcript="\n".join(lines) or "(empty)",
            profile=json.dumps(profile or {}, ensure_ascii=False, indent=2),
        )
