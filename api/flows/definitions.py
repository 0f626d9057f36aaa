"""
Qualification script definitions.

Each scripted question becomes a FlowStep tagged with the field kind its
reply is validated and extracted as, plus a prompt builder that may
rephrase the question from the profile gathered so far.
"""

import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from config.business_profile import BusinessProfile
from lead_scoring.entity_extractor import LeadProfile
from lead_scoring.patterns import FieldKind
from lead_scoring.response_validator import InvalidReason

PromptBuilder = Callable[[LeadProfile, str], str]

DEFAULT_FIELDS = (
    FieldKind.LOCATION,
    FieldKind.PROPERTY_TYPE,
    FieldKind.BUDGET,
    FieldKind.ENGAGEMENT,
)

CLARIFICATION_MESSAGES: Dict[InvalidReason, str] = {
    InvalidReason.GIBBERISH: "I didn't understand that. Could you please provide a clear response?",
    InvalidReason.EMPTY: "Please provide a response to help me assist you better.",
    InvalidReason.VAGUE_LOCATION: (
        "Could you please specify the city or area you're interested in? "
        "(e.g., Pune, Mumbai, Bangalore)"
    ),
    InvalidReason.UNCLEAR_PROPERTY_TYPE: (
        "What type of property are you looking for? (Flat, Villa, Plot, or Commercial)"
    ),
    InvalidReason.UNCLEAR_BUDGET: (
        "What's your budget range? (e.g., 50L-80L, 1-2 Cr, or let me know if you're still browsing)"
    ),
    InvalidReason.TOO_SHORT: "Could you provide more details about your requirements?",
}
DEFAULT_CLARIFICATION = "Could you please clarify your response?"

ESCALATION_MESSAGE = (
    "I'm having trouble understanding your requirements. "
    "Our team will contact you directly to assist better. Thank you!"
)

DEFAULT_CLOSING_MESSAGE = (
    "Thanks for the details! Our team will analyze your requirements "
    "and get back to you shortly."
)


def property_prompt(profile: LeadProfile, question: str) -> str:
    return question


def budget_prompt(profile: LeadProfile, question: str) -> str:
    """Budget question, phrased by intent and urgency."""
    if profile.intent == "buy" and profile.timeline == "urgent":
        return "Excellent! Since you're looking to buy urgently, what's your budget range? (e.g., 50L–80L)"
    if profile.intent == "investment":
        return "Perfect for investment! What's your budget range and expected timeline?"
    return f"Got it! {question}"


def engagement_prompt(profile: LeadProfile, question: str) -> str:
    """Follow-up offer, phrased by budget tier."""
    amount = profile.budget_amount or 0
    if profile.is_browsing:
        return "No problem! I'll share some trending properties. Are you open to a quick call to discuss options?"
    if not amount:
        return question
    if amount >= 5_000_000:
        return "Excellent budget! Would you like to schedule a site visit this week? We have premium options ready."
    if amount >= 2_000_000:
        return "Perfect! When would be convenient for you to visit properties? We have good options in your range."
    return "Thanks! Let me find suitable options. Would you prefer ready-to-move or under-construction properties?"


def scripted_prompt(profile: LeadProfile, question: str) -> str:
    return question


PROMPT_BUILDERS: Dict[FieldKind, PromptBuilder] = {
    FieldKind.PROPERTY_TYPE: property_prompt,
    FieldKind.BUDGET: budget_prompt,
    FieldKind.ENGAGEMENT: engagement_prompt,
}


@dataclass(frozen=True)
class FlowStep:
    """A single step of the qualification script."""
    index: int
    field: FieldKind
    question: str
    prompt_builder: PromptBuilder = scripted_prompt

    @property
    def id(self) -> str:
        return f"{self.index}:{self.field.value}"

    def prompt(self, profile: LeadProfile) -> str:
        return self.prompt_builder(profile, self.question)


def build_script(profile: BusinessProfile) -> List[FlowStep]:
    """
    Build the step descriptors for a business profile.

    The profile's "fields" list names the field kind of each question;
    without it the first four questions follow the default order and any
    further ones are free-form.
    """
    if profile.fields:
        kinds = [FieldKind.parse(name) for name in profile.fields]
    else:
        kinds = list(DEFAULT_FIELDS)

    steps = []
    for index, question in enumerate(profile.questions):
        kind = kinds[index] if index < len(kinds) else FieldKind.FREE_FORM
        # The opening question is always asked as scripted
        builder = PROMPT_BUILDERS.get(kind, scripted_prompt) if index > 0 else scripted_prompt
        steps.append(FlowStep(index=index, field=kind, question=question, prompt_builder=builder))
    return steps


def clarification_message(reason: Optional[InvalidReason]) -> str:
    return CLARIFICATION_MESSAGES.get(reason, DEFAULT_CLARIFICATION)


def greeting(profile: BusinessProfile, name: str, rng: Optional[random.Random] = None) -> str:
    """Pick a greeting template and fill in the lead's name."""
    rng = rng or random
    template = rng.choice(profile.greeting_templates)
    return template.replace("{name}", name)


def closing_message(profile: BusinessProfile, rng: Optional[random.Random] = None) -> str:
    if not profile.closing_messages:
        return DEFAULT_CLOSING_MESSAGE
    rng = rng or random
    return rng.choice(profile.closing_messages)
