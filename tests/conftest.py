"""Shared fixtures for CaveatBot tests."""

import pytest

from caveatbot.naming import HeuristicNamer
from caveatbot.persistence import SessionPersistence
from caveatbot.session_lifecycle import SessionLifecycle
from caveatbot.session_store import SessionStore


@pytest.fixture
def sessions_dir(tmp_path):
    """Empty sessions directory."""
    path = tmp_path / "recording-sessions"
    path.mkdir()
    return path


@pytest.fixture
def persistence(sessions_dir):
    return SessionPersistence(sessions_dir)


@pytest.fixture
def store(persistence):
    """SessionStore with a bound lifecycle."""
    store = SessionStore(persistence, namer=HeuristicNamer())
    SessionLifecycle(store)
    return store


@pytest.fixture
def lifecycle(store):
    return store._lifecycle
