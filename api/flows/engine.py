"""
Conversation Engine for the lead qualification bot.

Runs the scripted qualification conversation one turn at a time:
validate the reply for the current step, extract what it says, pick the
next prompt, and classify the lead once the script ends or the lead is
escalated after repeated unclear replies.
"""

import logging
import random
import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

from config.business_profile import BusinessProfile
from database.session_store import SessionStore, SessionStoreError
from lead_scoring.classifier import Classifier
from lead_scoring.conversation import (
    ChatMessage,
    ConversationSession,
    Lead,
    LeadClassification,
    SessionStatus,
    ValidationRecord,
    utc_now_iso,
)
from lead_scoring.entity_extractor import EntityExtractor
from lead_scoring.patterns import FieldKind
from lead_scoring.response_validator import ResponseValidator, ValidationOutcome
from lead_scoring.scoring_model import (
    POOR_QUALITY_RATIONALE,
    ClassificationResult,
    LeadScorer,
    validation_summary_metadata,
)

from .definitions import (
    ESCALATION_MESSAGE,
    FlowStep,
    build_script,
    clarification_message,
    closing_message,
    greeting,
)

logger = logging.getLogger(__name__)


class ConversationError(Exception):
    """Base class for conversation errors surfaced to the caller."""


class InvalidLeadError(ConversationError):
    """Lead details missing on intake."""


class EmptyReplyError(ConversationError):
    """Reply missing from the request."""


class SessionNotFoundError(ConversationError):
    """No session or lead with this id."""


class ConversationClosedError(ConversationError):
    """Reply received after the conversation completed or was escalated."""


class ConversationInProgressError(ConversationError):
    """Operation needs a finished conversation."""


class PersistenceError(ConversationError):
    """Session store failed; nothing from the turn was written."""


LEAD_STATUS = {
    SessionStatus.ACTIVE: "Active",
    SessionStatus.COMPLETE: "Completed",
    SessionStatus.ESCALATED: "Escalated",
}


@dataclass
class TurnResult:
    """Outcome of one conversation turn."""
    bot_messages: List[str]
    is_complete: bool
    current_step: int
    status: SessionStatus
    validation_outcome: ValidationOutcome
    classification: Optional[ClassificationResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "messages": self.bot_messages,
            "isComplete": self.is_complete,
            "currentStep": self.current_step,
            "status": self.status.value,
            "validationResult": self.validation_outcome.to_dict(),
            "classification": self.classification.to_dict() if self.classification else None,
        }


class ConversationEngine:
    """
    Drives qualification conversations against a session store.

    Each turn is read-modify-write under the store's per-session lock and
    works on a copy of the stored session, so a failed save leaves the
    stored state untouched.
    """

    def __init__(
        self,
        profile: BusinessProfile,
        store: SessionStore,
        classifier: Optional[Classifier] = None,
        rule_based_scorer: Optional[LeadScorer] = None,
        validator: Optional[ResponseValidator] = None,
        extractor: Optional[EntityExtractor] = None,
        max_invalid_replies: int = 3,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the engine.

        Args:
            profile: Business profile with the question script
            store: Session store
            classifier: Strategy used when the script completes
            rule_based_scorer: Deterministic scorer, used for escalations
            validator: Reply validator
            extractor: Entity extractor
            max_invalid_replies: Consecutive unclear replies before escalation
            rng: Random source for greeting and closing message choice
        """
        self.profile = profile
        self.store = store
        self.rule_based_scorer = rule_based_scorer or LeadScorer()
        self.classifier = classifier or self.rule_based_scorer
        self.validator = validator or ResponseValidator()
        self.extractor = extractor or EntityExtractor()
        self.max_invalid_replies = max_invalid_replies
        self.rng = rng or random.Random()
        self.script: List[FlowStep] = build_script(profile)

    @property
    def step_count(self) -> int:
        return len(self.script)

    def step_at(self, index: int) -> FlowStep:
        """Step descriptor for an index; free-form outside the script."""
        if 0 <= index < len(self.script):
            return self.script[index]
        return FlowStep(index=index, field=FieldKind.FREE_FORM, question="")

    async def start_conversation(
        self,
        name: str,
        phone: str,
        source: Optional[str] = None,
        message: Optional[str] = None,
    ) -> Tuple[Lead, ConversationSession, List[str]]:
        """
        Create a lead and seed its conversation at step 0.

        Returns:
            (lead, session, initial bot messages)
        """
        name = (name or "").strip()
        phone = (phone or "").strip()
        if not name or not phone:
            raise InvalidLeadError("Name and phone are required")

        lead = Lead(
            id=str(uuid.uuid4()),
            name=name,
            phone=phone,
            source=source or "Unknown",
            initial_message=message or "",
        )
        opening = [
            greeting(self.profile, lead.name, self.rng),
            self.step_at(0).question,
        ]
        session = ConversationSession(
            lead_id=lead.id,
            messages=[ChatMessage(sender="bot", message=text) for text in opening],
            created_at=lead.created_at,
        )

        async with self.store.lock(lead.id):
            await self._save(lead.id, session, lead)

        logger.info(f"Conversation started for lead {lead.id} (source: {lead.source})")
        return lead, session, opening

    async def advance_conversation(self, session_id: str, raw_reply: Optional[str]) -> TurnResult:
        """
        Run one turn of the conversation.

        Args:
            session_id: Session (lead) id
            raw_reply: Reply text as typed by the lead

        Returns:
            TurnResult

        Raises:
            EmptyReplyError: Reply missing
            SessionNotFoundError: Unknown session
            ConversationClosedError: Conversation already finished
            PersistenceError: Turn could not be saved
        """
        if raw_reply is None or raw_reply == "":
            raise EmptyReplyError("Message is required")

        async with self.store.lock(session_id):
            stored_session, stored_lead = await self._load(session_id)
            if stored_session.is_complete:
                raise ConversationClosedError(
                    f"Conversation {session_id} is {stored_session.status.value}"
                )

            session = stored_session.copy()
            lead = stored_lead.copy()
            step = self.step_at(session.current_step)

            session.messages.append(ChatMessage(sender="user", message=raw_reply))
            outcome = self.validator.validate(raw_reply, step.field)
            session.validation_history.append(
                ValidationRecord(step=session.current_step, raw_reply=raw_reply, outcome=outcome)
            )

            if outcome.is_valid:
                reply, result = await self._accept(session, step, raw_reply)
            else:
                reply, result = self._reject(session, outcome)

            session.messages.append(ChatMessage(sender="bot", message=reply))
            session.updated_at = utc_now_iso()

            if result is not None:
                self._record_classification(lead, session, result)
                await self._save(session_id, session, lead)
            else:
                await self._save(session_id, session)

        return TurnResult(
            bot_messages=[reply],
            is_complete=session.is_complete,
            current_step=session.current_step,
            status=session.status,
            validation_outcome=outcome,
            classification=result,
        )

    async def reclassify(self, lead_id: str) -> Lead:
        """
        Classify a finished conversation again.

        Raises:
            SessionNotFoundError: Unknown lead
            ConversationInProgressError: Conversation still active
            PersistenceError: Lead could not be saved
        """
        async with self.store.lock(lead_id):
            session, stored_lead = await self._load(lead_id)
            if not session.is_complete:
                raise ConversationInProgressError(f"Conversation {lead_id} is still active")

            lead = stored_lead.copy()
            if session.status == SessionStatus.ESCALATED:
                result = self._escalation_result(session)
            else:
                result = await self.classifier.classify(
                    session.profile, session.validation_history, session.messages
                )
            self._record_classification(lead, session, result)
            await self._save(lead_id, session, lead)

        logger.info(f"Lead {lead_id} reclassified as {lead.classification.value}")
        return lead

    async def get_session(self, session_id: str) -> ConversationSession:
        session = await self._call_store(self.store.load, session_id)
        if session is None:
            raise SessionNotFoundError(f"Chat {session_id} not found")
        return session

    async def get_lead(self, lead_id: str) -> Lead:
        lead = await self._call_store(self.store.load_lead, lead_id)
        if lead is None:
            raise SessionNotFoundError(f"Lead {lead_id} not found")
        return lead

    async def list_leads(self) -> List[Lead]:
        return await self._call_store(self.store.list_leads)

    # -- turn handling --

    async def _accept(
        self, session: ConversationSession, step: FlowStep, raw_reply: str
    ) -> Tuple[str, Optional[ClassificationResult]]:
        session.invalid_reply_count = 0
        extraction = self.extractor.extract(session.profile, raw_reply, step.field)
        session.profile = extraction.profile
        if extraction.diff:
            logger.debug(f"Lead {session.lead_id} step {step.id}: {extraction.diff}")

        next_index = session.current_step + 1
        if next_index < self.step_count:
            session.current_step = next_index
            return self.step_at(next_index).prompt(session.profile), None

        session.current_step = self.step_count
        session.status = SessionStatus.COMPLETE
        result = await self.classifier.classify(
            session.profile, session.validation_history, session.messages
        )
        return closing_message(self.profile, self.rng), result

    def _reject(
        self, session: ConversationSession, outcome: ValidationOutcome
    ) -> Tuple[str, Optional[ClassificationResult]]:
        session.invalid_reply_count += 1
        reason = outcome.reason.value if outcome.reason else "unknown"
        logger.info(
            f"Lead {session.lead_id} step {session.current_step}: invalid reply ({reason}), "
            f"{session.invalid_reply_count}/{self.max_invalid_replies}"
        )

        if session.invalid_reply_count < self.max_invalid_replies:
            return clarification_message(outcome.reason), None

        logger.warning(
            f"Lead {session.lead_id} escalated after {session.invalid_reply_count} unclear replies"
        )
        session.status = SessionStatus.ESCALATED
        return ESCALATION_MESSAGE, self._escalation_result(session)

    def _escalation_result(self, session: ConversationSession) -> ClassificationResult:
        result = self.rule_based_scorer.score(
            session.profile, session.validation_history, session.messages
        )
        if result.classification != LeadClassification.INVALID:
            result = replace(
                result,
                classification=LeadClassification.INVALID,
                score=None,
                breakdown=None,
                rationale=POOR_QUALITY_RATIONALE,
            )
        return result

    def _record_classification(
        self, lead: Lead, session: ConversationSession, result: ClassificationResult
    ):
        """Write the classification and its audit trail onto the lead."""
        lead.classification = result.classification
        lead.score = result.score
        lead.status = LEAD_STATUS[session.status]
        lead.updated_at = utc_now_iso()

        metadata = dict(lead.metadata)
        metadata.update(session.profile.to_dict())
        metadata.update(validation_summary_metadata(result))
        metadata["scoreBreakdown"] = result.breakdown.to_dict() if result.breakdown else None

        if result.classification == LeadClassification.INVALID:
            metadata["reason"] = "Poor response quality"
            metadata["invalidValidations"] = result.validation_summary.get("invalidResponses", 0)
            metadata["validationHistory"] = [v.to_dict() for v in session.validation_history]
        lead.metadata = metadata

        logger.info(
            f"Lead {lead.id} classified {result.classification.value} "
            f"(score: {result.score}, method: {result.method}): {result.rationale}"
        )

    # -- store access --

    async def _load(self, session_id: str) -> Tuple[ConversationSession, Lead]:
        session = await self._call_store(self.store.load, session_id)
        lead = await self._call_store(self.store.load_lead, session_id)
        if session is None or lead is None:
            raise SessionNotFoundError(f"Chat {session_id} not found")
        return session, lead

    async def _save(self, session_id: str, session: ConversationSession, lead: Optional[Lead] = None):
        await self._call_store(self.store.save, session_id, session, lead)

    async def _call_store(self, operation, *args):
        try:
            return await operation(*args)
        except SessionStoreError as e:
            logger.error(f"Session store failure: {e}")
            raise PersistenceError(str(e)) from e
