"""
Unit tests for RBAC – loading identities, and configuration helpers.
"""

import pytest
from werkzeug.security import generate_password_hash

from uhpcms.config import get_env
from uhpcms.rbac import load_identity, password_matches


PASSWORD_HASH = generate_password_hash("secret", method="pbkdf2:sha256")


# ── Helpers / Fakes ──────────────────────────────────────────────────

class FakeResult:
    """Mimic SQLAlchemy Result with .mappings().first()."""
    def __init__(self, row_dict_or_none):
        self._row = row_dict_or_none

    def mappings(self):
        return self

    def first(self):
        return self._row


class FakeConn:
    def __init__(self, rows):
        self._rows = rows
        self.executed = []

    def execute(self, sql, params=None):
        self.executed.append((sql, params))
        return FakeResult(self._rows.pop(0) if self._rows else None)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class FakeEngine:
    """Mimic engine.connect()/begin(); each read consumes the next queued row."""
    def __init__(self, *rows):
        self._rows = list(rows)
        self.connect_calls = 0
        self.writes = []

    def connect(self):
        self.connect_calls += 1
        return FakeConn(self._rows)

    def begin(self):
        conn = FakeConn([])
        self.writes.append(conn)
        return conn

    def audit_actions(self):
        return [params["a"] for conn in self.writes for _sql, params in conn.executed]


def user_row(**overrides):
    row = {
        "id": "u1", "org_id": "org-1", "email": "dr@example.org",
        "password_hash": PASSWORD_HASH, "role_id": "role_doctor_org-1",
        "full_name": "Dr A", "role_name": "doctor",
    }
    row.update(overrides)
    return row


# ── Tests: get_env ───────────────────────────────────────────────────

def test_get_env_ok(monkeypatch):
    monkeypatch.setenv("X", "123")
    assert get_env("X") == "123"


def test_get_env_missing_exits(monkeypatch, capsys):
    monkeypatch.delenv("MISSING_ENV", raising=False)
    with pytest.raises(SystemExit) as e:
        get_env("MISSING_ENV")
    assert e.value.code == 1
    err = capsys.readouterr().err
    assert "ERROR: env var MISSING_ENV is not set" in err


# ── Tests: load_identity ─────────────────────────────────────────────

def test_load_identity_ok():
    engine = FakeEngine(user_row(), {"status": "active"})
    identity = load_identity(engine, "dr@example.org", "secret")
    assert identity.user_id == "u1"
    assert identity.role == "doctor"
    assert identity.organization_id == "org-1"
    assert identity.full_name == "Dr A"
    assert engine.connect_calls == 2


def test_load_identity_unknown_user():
    engine = FakeEngine(None)
    with pytest.raises(ValueError, match="Invalid credentials"):
        load_identity(engine, "nobody@example.org", "secret")


def test_load_identity_wrong_password():
    engine = FakeEngine(user_row())
    with pytest.raises(ValueError, match="Invalid credentials"):
        load_identity(engine, "dr@example.org", "wrong")


def test_load_identity_suspended_org():
    engine = FakeEngine(user_row(), {"status": "suspended"})
    with pytest.raises(PermissionError, match="suspended"):
        load_identity(engine, "dr@example.org", "secret")


def test_load_identity_super_admin_without_org():
    engine = FakeEngine(user_row(org_id=None, role_id="role_super_admin", role_name=None,
                                 full_name=None))
    identity = load_identity(engine, "dr@example.org", "secret")
    assert identity.organization_id is None
    assert identity.role == "super_admin"
    assert identity.full_name == "dr@example.org"
    assert engine.connect_calls == 1


# ── Tests: audit trail / hash formats ────────────────────────────────

def test_failed_login_is_audited():
    engine = FakeEngine(user_row())
    with pytest.raises(ValueError):
        load_identity(engine, "dr@example.org", "wrong")
    assert engine.audit_actions() == ["login_failed"]


def test_suspended_login_is_audited():
    engine = FakeEngine(user_row(), {"status": "suspended"})
    with pytest.raises(PermissionError):
        load_identity(engine, "dr@example.org", "secret")
    assert engine.audit_actions() == ["login_org_suspended"]


def test_successful_identity_load_writes_nothing():
    engine = FakeEngine(user_row(), {"status": "active"})
    load_identity(engine, "dr@example.org", "secret")
    assert engine.audit_actions() == []


def test_unsupported_hash_format_is_generic_failure():
    bcrypt_hash = "$2b$12$KIXQJ1rZ0k3f3y1Wc1u3XeO6Yd0nq2bWJ0mZQk9v5s8uXz6JcQe2a"
    assert password_matches(bcrypt_hash, "secret") is False
    engine = FakeEngine(user_row(password_hash=bcrypt_hash))
    with pytest.raises(ValueError) as e:
        load_identity(engine, "dr@example.org", "secret")
    assert str(e.value) == "Invalid credentials"
