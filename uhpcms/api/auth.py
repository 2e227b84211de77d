"""
JWT authentication helpers and middleware for the Flask API.
"""

import uuid
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Dict, Any, Optional

import jwt
from flask import request, jsonify

from uhpcms.config import SECRET_KEY, TOKEN_EXPIRY_HOURS
from uhpcms.models import Identity
from uhpcms.session import SessionContext

# In-memory session store (use Redis in production)
# Structure: {token: {"identity": Identity, "session": SessionContext, "created_at": datetime, ...}}
sessions: Dict[str, Dict[str, Any]] = {}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_token(identity: Identity) -> str:
    """Generate a JWT token for an authenticated user."""
    now = utcnow()
    payload = {
        "sub": identity.user_id,
        "role": identity.role,
        "org_id": identity.organization_id,
        "email": identity.email,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + timedelta(hours=TOKEN_EXPIRY_HOURS),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm="HS256")


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify a JWT token and return the decoded payload (or None)."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def open_session(identity: Identity) -> str:
    """Issue a token and register a fresh server-side session for it.

    Sessions idle longer than TOKEN_EXPIRY_HOURS are swept first.
    """
    cleanup_expired_sessions()
    token = generate_token(identity)
    sessions[token] = {
        "identity": identity,
        "session": SessionContext(token=token),
        "created_at": utcnow(),
        "last_activity": utcnow(),
    }
    return token


def close_session(token: str) -> None:
    data = sessions.pop(token, None)
    if data:
        data["session"].logout()


def token_required(f):
    """Decorator that protects endpoints with JWT authentication."""
    @wraps(f)
    def decorated(*args, **kwargs):
        token = None

        # Check Authorization header (Bearer token)
        if "Authorization" in request.headers:
            auth_header = request.headers["Authorization"]
            try:
                token = auth_header.split(" ")[1]
            except IndexError:
                return jsonify({"error": "Invalid authorization header format"}), 401

        # Fallback: check token in JSON body or query params
        if not token:
            body = request.get_json(silent=True) if request.is_json else None
            token = body.get("token") if isinstance(body, dict) else None
        if not token:
            token = request.args.get("token")

        if not token:
            return jsonify({"error": "Authentication token is missing"}), 401

        payload = verify_token(token)
        if not payload:
            return jsonify({"error": "Invalid or expired token"}), 401

        if token not in sessions:
            return jsonify({"error": "Session not found. Please login again."}), 401

        # Attach session data to the request context
        request.session_data = sessions[token]
        request.session_data["last_activity"] = utcnow()
        request.token = token

        return f(*args, **kwargs)

    return decorated


def cleanup_expired_sessions():
    """Remove sessions that have been inactive beyond TOKEN_EXPIRY_HOURS."""
    now = utcnow()
    expired = [
        tok for tok, data in sessions.items()
        if (now - data["last_activity"]).total_seconds() > TOKEN_EXPIRY_HOURS * 3600
    ]
    for tok in expired:
        close_session(tok)
    if expired:
        print(f"[cleanup] Removed {len(expired)} expired sessions")
    return len(expired)
