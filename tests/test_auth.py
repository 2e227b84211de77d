"""
Unit tests for token handling and the server-side session registry.
"""

from datetime import timedelta

import pytest

from uhpcms.api import auth
from uhpcms.config import TOKEN_EXPIRY_HOURS
from uhpcms.models import Identity


@pytest.fixture(autouse=True)
def empty_registry():
    auth.sessions.clear()
    yield
    auth.sessions.clear()


def make_identity(user_id="u1"):
    return Identity(user_id=user_id, email=f"{user_id}@example.org", role="super_admin")


def age(token, hours):
    auth.sessions[token]["last_activity"] = auth.utcnow() - timedelta(hours=hours)


# ── Tests: tokens ────────────────────────────────────────────────────

def test_token_round_trip():
    token = auth.generate_token(make_identity())
    payload = auth.verify_token(token)
    assert payload["sub"] == "u1"
    assert payload["role"] == "super_admin"
    assert payload["org_id"] is None


def test_tokens_are_unique_per_login():
    identity = make_identity()
    assert auth.generate_token(identity) != auth.generate_token(identity)


def test_verify_rejects_garbage():
    assert auth.verify_token("not-a-token") is None


# ── Tests: session expiry ────────────────────────────────────────────

def test_cleanup_drops_idle_sessions_and_logs_them_out(capsys):
    stale = auth.open_session(make_identity("old"))
    fresh = auth.open_session(make_identity("new"))
    stale_session = auth.sessions[stale]["session"]
    stale_session.select_organization("org-1")
    age(stale, TOKEN_EXPIRY_HOURS + 1)

    assert auth.cleanup_expired_sessions() == 1
    assert stale not in auth.sessions
    assert fresh in auth.sessions
    assert stale_session.token == ""
    assert stale_session.selected_organization_id == ""
    assert "[cleanup] Removed 1 expired sessions" in capsys.readouterr().out


def test_open_session_sweeps_expired_sessions():
    stale = auth.open_session(make_identity("old"))
    stale_session = auth.sessions[stale]["session"]
    age(stale, TOKEN_EXPIRY_HOURS + 1)

    fresh = auth.open_session(make_identity("new"))
    assert list(auth.sessions) == [fresh]
    assert stale_session.token == ""


def test_recent_sessions_survive_cleanup():
    token = auth.open_session(make_identity())
    age(token, TOKEN_EXPIRY_HOURS - 1)
    assert auth.cleanup_expired_sessions() == 0
    assert token in auth.sessions


def test_close_session_runs_logout():
    token = auth.open_session(make_identity())
    session = auth.sessions[token]["session"]
    session.select_organization("org-2")
    auth.close_session(token)
    auth.close_session(token)
    assert token not in auth.sessions
    assert session.selected_organization_id == ""
