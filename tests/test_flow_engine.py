"""Tests for the qualification conversation engine and script definitions."""

import asyncio
import random

import pytest

from api.flows.definitions import (
    CLARIFICATION_MESSAGES,
    ESCALATION_MESSAGE,
    budget_prompt,
    build_script,
    engagement_prompt,
    greeting,
)
from api.flows.engine import (
    ConversationClosedError,
    ConversationEngine,
    ConversationInProgressError,
    EmptyReplyError,
    InvalidLeadError,
    PersistenceError,
    SessionNotFoundError,
)
from config.business_profile import BusinessProfile, BusinessProfileError, load_business_profile
from config.settings import DEFAULT_PROFILES_PATH
from database.session_store import InMemorySessionStore, SessionStoreError
from lead_scoring.classifier import AssistedClassifier
from lead_scoring.conversation import LeadClassification, SessionStatus
from lead_scoring.entity_extractor import LeadProfile
from lead_scoring.patterns import FieldKind
from lead_scoring.response_validator import InvalidReason

from support import GIBBERISH_REPLIES, HOT_REPLIES, FakeProvider


class FlakyStore(InMemorySessionStore):
    """In-memory store whose writes can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    async def save(self, session_id, session, lead=None):
        if self.fail_writes:
            raise SessionStoreError("disk full")
        await super().save(session_id, session, lead)


def _start(engine, name="Asha", phone="9876543210"):
    return asyncio.run(engine.start_conversation(name=name, phone=phone, source="Facebook"))


def _run_replies(engine, lead_id, replies):
    async def run():
        return [await engine.advance_conversation(lead_id, r) for r in replies]
    return asyncio.run(run())


# ── Script definitions ────────────────────────────────

def test_script_field_kinds(business_profile):
    script = build_script(business_profile)
    assert [s.field for s in script] == [
        FieldKind.LOCATION, FieldKind.PROPERTY_TYPE, FieldKind.BUDGET, FieldKind.ENGAGEMENT,
    ]
    assert script[0].prompt(LeadProfile()) == business_profile.questions[0]


def test_script_without_fields_uses_defaults_then_free_form():
    profile = BusinessProfile(
        industry="test",
        business_name="Test",
        questions=("Where?", "What?", "Budget?", "Visit?", "Anything else?"),
        greeting_templates=("Hi {name}",),
    )
    script = build_script(profile)
    assert script[3].field == FieldKind.ENGAGEMENT
    assert script[4].field == FieldKind.FREE_FORM
    assert script[4].prompt(LeadProfile()) == "Anything else?"


@pytest.mark.parametrize("profile,start", [
    (LeadProfile(intent="buy", timeline="urgent"), "Excellent! Since you're looking to buy urgently"),
    (LeadProfile(intent="investment"), "Perfect for investment!"),
    (LeadProfile(intent="rent"), "Got it!"),
])
def test_budget_prompt_branches(profile, start):
    assert budget_prompt(profile, "").startswith(start)


@pytest.mark.parametrize("profile,start", [
    (LeadProfile(budget="browsing", intent="browsing"), "No problem!"),
    (LeadProfile(budget_amount=8_000_000), "Excellent budget!"),
    (LeadProfile(budget_amount=3_000_000), "Perfect! When would be convenient"),
    (LeadProfile(budget_amount=1_000_000), "Thanks! Let me find suitable options."),
])
def test_engagement_prompt_branches(profile, start):
    assert engagement_prompt(profile, "").startswith(start)


def test_prompts_fall_back_to_configured_questions(business_profile):
    script = build_script(business_profile)
    assert script[1].prompt(LeadProfile()) == business_profile.questions[1]
    assert script[2].prompt(LeadProfile(intent="rent")) == f"Got it! {business_profile.questions[2]}"
    assert script[3].prompt(LeadProfile()) == business_profile.questions[3]


def test_greeting_fills_name(business_profile):
    text = greeting(business_profile, "Asha", random.Random(1))
    assert "Asha" in text
    assert "{name}" not in text


def test_unknown_industry(tmp_path):
    with pytest.raises(BusinessProfileError):
        load_business_profile(DEFAULT_PROFILES_PATH, "automotive")
    with pytest.raises(BusinessProfileError):
        load_business_profile(tmp_path / "missing.json", "realEstate")


# ── Conversation engine ───────────────────────────────

def test_start_conversation(engine, store, business_profile):
    lead, session, opening = _start(engine)

    assert len(opening) == 2
    assert "Asha" in opening[0]
    assert opening[1] == business_profile.questions[0]
    assert lead.classification == LeadClassification.PENDING
    assert lead.source == "Facebook"
    assert session.current_step == 0
    assert session.lead_id == lead.id

    stored = asyncio.run(store.load(lead.id))
    assert [m.message for m in stored.messages] == opening


def test_start_requires_name_and_phone(engine):
    with pytest.raises(InvalidLeadError):
        _start(engine, name="", phone="9876543210")
    with pytest.raises(InvalidLeadError):
        _start(engine, name="Asha", phone="  ")


def test_hot_conversation_end_to_end(engine, store):
    lead, _, _ = _start(engine)
    results = _run_replies(engine, lead.id, HOT_REPLIES)

    assert [r.current_step for r in results] == [1, 2, 3, 4]
    assert results[1].bot_messages[0].startswith("Perfect for investment!")
    assert results[2].bot_messages[0].startswith("Excellent budget!")
    assert all(not r.is_complete for r in results[:3])

    final = results[-1]
    assert final.is_complete
    assert final.status == SessionStatus.COMPLETE
    assert final.classification.classification == LeadClassification.HOT
    assert final.classification.score >= 10

    session = asyncio.run(store.load(lead.id))
    assert session.profile.to_dict() == {
        "location": "Koramangala, Bangalore",
        "propertyType": "flat",
        "intent": "investment",
        "budget": "₹80L",
        "budgetAmount": 8_000_000,
        "engagement": "high",
    }
    assert [v.step for v in session.validation_history] == [0, 1, 2, 3]

    saved = asyncio.run(store.load_lead(lead.id))
    assert saved.classification == LeadClassification.HOT
    assert saved.status == "Completed"
    assert saved.score == final.classification.score
    assert saved.metadata["location"] == "Koramangala, Bangalore"
    assert saved.metadata["scoreBreakdown"]["budget"] == 3
    assert saved.metadata["classificationMethod"] == "rule-based"
    assert saved.metadata["validationSummary"]["validResponses"] == 4
    assert saved.updated_at is not None


def test_gibberish_escalation(engine, store):
    lead, _, _ = _start(engine)
    results = _run_replies(engine, lead.id, GIBBERISH_REPLIES)

    assert [r.current_step for r in results] == [0, 0, 0]
    assert results[0].bot_messages == [CLARIFICATION_MESSAGES[InvalidReason.GIBBERISH]]
    assert results[-1].bot_messages == [ESCALATION_MESSAGE]
    assert results[-1].status == SessionStatus.ESCALATED

    session = asyncio.run(store.load(lead.id))
    assert session.invalid_reply_count == 3
    assert session.status == SessionStatus.ESCALATED
    assert session.current_step == 0

    saved = asyncio.run(store.load_lead(lead.id))
    assert saved.classification == LeadClassification.INVALID
    assert saved.score is None
    assert saved.status == "Escalated"
    assert saved.metadata["reason"] == "Poor response quality"
    assert saved.metadata["invalidValidations"] == 3
    assert len(saved.metadata["validationHistory"]) == 3


def test_valid_reply_resets_invalid_counter(engine, store):
    lead, _, _ = _start(engine)
    results = _run_replies(engine, lead.id, ["asdf", "old town", "Pune", "xyz", "villa"])

    session = asyncio.run(store.load(lead.id))
    assert [v.outcome.is_valid for v in session.validation_history] == [False, False, True, False, True]
    assert results[1].validation_outcome.reason == InvalidReason.VAGUE_LOCATION
    assert results[2].current_step == 1
    assert session.invalid_reply_count == 0
    assert session.status == SessionStatus.ACTIVE
    assert session.current_step == 2


def test_reply_after_completion_is_rejected(engine):
    lead, _, _ = _start(engine)
    _run_replies(engine, lead.id, GIBBERISH_REPLIES)
    with pytest.raises(ConversationClosedError):
        _run_replies(engine, lead.id, ["Pune"])


def test_unknown_session(engine):
    with pytest.raises(SessionNotFoundError):
        _run_replies(engine, "missing", ["Pune"])


@pytest.mark.parametrize("reply", [None, ""])
def test_missing_reply(engine, reply):
    lead, _, _ = _start(engine)
    with pytest.raises(EmptyReplyError):
        _run_replies(engine, lead.id, [reply])


def test_whitespace_reply_is_a_validation_failure(engine):
    lead, _, _ = _start(engine)
    result = _run_replies(engine, lead.id, ["   "])[0]
    assert result.validation_outcome.reason == InvalidReason.EMPTY
    assert result.bot_messages == [CLARIFICATION_MESSAGES[InvalidReason.EMPTY]]


def test_persistence_failure_leaves_stored_state(business_profile):
    store = FlakyStore()
    engine = ConversationEngine(profile=business_profile, store=store)
    lead, _, _ = _start(engine)

    store.fail_writes = True
    with pytest.raises(PersistenceError):
        _run_replies(engine, lead.id, ["Pune"])

    session = asyncio.run(store.load(lead.id))
    assert session.current_step == 0
    assert len(session.messages) == 2
    assert session.validation_history == []

    store.fail_writes = False
    result = _run_replies(engine, lead.id, ["Pune"])[0]
    assert result.current_step == 1


def test_assisted_fallback_recorded_on_lead(business_profile, store, scorer):
    classifier = AssistedClassifier(FakeProvider("not json at all"), fallback=scorer)
    engine = ConversationEngine(
        profile=business_profile, store=store, classifier=classifier, rule_based_scorer=scorer,
    )
    lead, _, _ = _start(engine)
    final = _run_replies(engine, lead.id, HOT_REPLIES)[-1]

    assert final.classification.method == "rule-based"
    saved = asyncio.run(store.load_lead(lead.id))
    assert saved.classification == LeadClassification.HOT
    assert saved.metadata["fallbackReason"] == "no JSON object in response"


def test_assisted_classification_recorded_on_lead(business_profile, store, scorer):
    provider = FakeProvider('{"classification": "COLD", "confidence": 64, "reason": "Investor, no urgency"}')
    engine = ConversationEngine(
        profile=business_profile,
        store=store,
        classifier=AssistedClassifier(provider, fallback=scorer),
        rule_based_scorer=scorer,
    )
    lead, _, _ = _start(engine)
    _run_replies(engine, lead.id, HOT_REPLIES)

    assert len(provider.calls) == 1
    saved = asyncio.run(store.load_lead(lead.id))
    assert saved.classification == LeadClassification.COLD
    assert saved.metadata["classificationMethod"] == "assisted"
    assert saved.metadata["confidence"] == 64.0


def test_escalation_never_calls_assisted_classifier(business_profile, store, scorer):
    provider = FakeProvider('{"classification": "HOT", "confidence": 99, "reason": "?"}')
    engine = ConversationEngine(
        profile=business_profile,
        store=store,
        classifier=AssistedClassifier(provider, fallback=scorer),
        rule_based_scorer=scorer,
    )
    lead, _, _ = _start(engine)
    _run_replies(engine, lead.id, GIBBERISH_REPLIES)
    assert provider.calls == []


def test_reclassify(engine):
    lead, _, _ = _start(engine)
    with pytest.raises(ConversationInProgressError):
        asyncio.run(engine.reclassify(lead.id))

    _run_replies(engine, lead.id, HOT_REPLIES)
    updated = asyncio.run(engine.reclassify(lead.id))
    assert updated.classification == LeadClassification.HOT
    assert updated.status == "Completed"


def test_turns_for_one_lead_are_serialised(engine, store):
    lead, _, _ = _start(engine)

    async def run():
        return await asyncio.gather(*[
            engine.advance_conversation(lead.id, reply) for reply in HOT_REPLIES
        ])

    asyncio.run(run())
    session = asyncio.run(store.load(lead.id))
    assert len(session.validation_history) == 4
    assert len(session.messages) == 2 + 2 * 4
