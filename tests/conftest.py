"""Shared fixtures for lead qualification bot tests."""

import os
import random

import pytest
from fastapi.testclient import TestClient

# Keep tests off any real text-generation service
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from config.business_profile import load_business_profile
from config.settings import DEFAULT_PROFILES_PATH, get_settings
from database.session_store import InMemorySessionStore
from lead_scoring.scoring_model import LeadScorer
from api.flows.engine import ConversationEngine
from api.services import reset_services

@pytest.fixture
def business_profile():
    return load_business_profile(DEFAULT_PROFILES_PATH, "realEstate")


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def scorer():
    return LeadScorer()


@pytest.fixture
def engine(business_profile, store, scorer):
    return ConversationEngine(
        profile=business_profile,
        store=store,
        rule_based_scorer=scorer,
        rng=random.Random(7),
    )


@pytest.fixture
def client(monkeypatch, tmp_path):
    """FastAPI test client over an in-memory session store."""
    monkeypatch.setenv("SESSION_STORE", "memory")
    monkeypatch.setenv("DATA_DIRECTORY", str(tmp_path))
    monkeypatch.setenv("ASSISTED_CLASSIFICATION", "false")
    get_settings.cache_clear()
    reset_services()

    from api.main import create_app
    with TestClient(create_app()) as test_client:
        yield test_client

    get_settings.cache_clear()
    reset_services()
