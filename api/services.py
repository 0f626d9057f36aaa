"""
Service initialization and dependency injection for the lead qualification API.

Creates and manages all service instances used by the API and the CLI.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.business_profile import BusinessProfile, load_business_profile
from config.settings import get_settings, Settings
from database.session_store import (
    InMemorySessionStore,
    JsonFileSessionStore,
    SessionStore,
)
from lead_scoring.classifier import AssistedClassifier, Classifier
from lead_scoring.entity_extractor import EntityExtractor
from lead_scoring.response_validator import ResponseValidator
from lead_scoring.scoring_model import LeadScorer
from llm.prompt_templates import PromptTemplates
from llm.providers import build_provider
from .flows.engine import ConversationEngine

logger = logging.getLogger(__name__)


class Services:
    """Container for all application services."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.business_profile: Optional[BusinessProfile] = None
        self.store: Optional[SessionStore] = None
        self.lead_scorer: Optional[LeadScorer] = None
        self.classifier: Optional[Classifier] = None
        self.engine: Optional[ConversationEngine] = None
        self._initialized = False

    def initialize(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        """
        Initialize all services.

        Args:
            session_factory: SQLAlchemy session factory, required when the
                session store is "database"

        Raises:
            BusinessProfileError: If the business profile cannot be loaded
        """
        if self._initialized:
            return

        self.settings = get_settings()
        logger.info(
            f"Initializing services for industry '{self.settings.industry}' "
            f"with {self.settings.session_store} session store"
        )

        self._init_business_profile()
        self._init_store(session_factory)
        self._init_classification()
        self._init_engine()
        self._initialized = True
        logger.info("All services initialized successfully")

    def _init_business_profile(self):
        s = self.settings
        self.business_profile = load_business_profile(s.business_profiles_path, s.industry)

    def _init_store(self, session_factory):
        """Initialize the session store selected in settings."""
        kind = self.settings.session_store.lower()

        if kind == "database":
            if session_factory is None:
                raise ValueError("session_store=database requires an initialized database")
            from database.db_session_store import DbSessionStore
            self.store = DbSessionStore(session_factory)
        elif kind == "memory":
            self.store = InMemorySessionStore()
        else:
            self.store = JsonFileSessionStore(self.settings.data_directory)
        logger.info(f"Session store ready: {type(self.store).__name__}")

    def _init_classification(self):
        """Initialize the rule-based scorer and, if enabled, the assisted classifier."""
        profile = self.business_profile
        self.lead_scorer = LeadScorer(
            custom_rules=dict(profile.scoring_rules),
            hot_threshold=profile.hot_threshold,
            warm_threshold=profile.warm_threshold,
        )

        if not self.settings.assisted_classification:
            self.classifier = self.lead_scorer
            logger.info("Rule-based classification ready")
            return

        self.classifier = AssistedClassifier(
            provider=build_provider(self.settings),
            fallback=self.lead_scorer,
            templates=PromptTemplates(business_name=profile.business_name),
            timeout=self.settings.classification_timeout_seconds,
        )
        logger.info(
            f"Assisted classification ready: {self.settings.llm_provider} "
            f"({self.settings.llm_model_id})"
        )

    def _init_engine(self):
        self.engine = ConversationEngine(
            profile=self.business_profile,
            store=self.store,
            classifier=self.classifier,
            rule_based_scorer=self.lead_scorer,
            validator=ResponseValidator(),
            extractor=EntityExtractor(),
            max_invalid_replies=self.settings.max_invalid_replies,
        )
        logger.info(f"Conversation engine ready ({self.engine.step_count} steps)")

    @property
    def is_ready(self) -> bool:
        return self._initialized and self.engine is not None

    def health(self) -> dict:
        """Return health status of all services."""
        return {
            "initialized": self._initialized,
            "business_profile": self.business_profile is not None,
            "session_store": type(self.store).__name__ if self.store else None,
            "classifier": type(self.classifier).__name__ if self.classifier else None,
            "engine": self.engine is not None,
        }


# Singleton
_services = Services()


def get_services() -> Services:
    """Get the global services instance."""
    return _services


def initialize_services(session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
    """Initialize all services (called at startup)."""
    _services.initialize(session_factory)


def reset_services():
    """Drop the global services instance so the next startup rebuilds it."""
    global _services
    _services = Services()
