"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── Session storage keys ─────────────────────────────────────────────
SELECTED_ORG_KEY = "uhpcms_selected_org_id"
TOKEN_KEY = "uhpcms_token"

# ── Landing pages ────────────────────────────────────────────────────
DEFAULT_LANDING_PATH = "/dashboard"
FINANCE_LANDING_PATH = "/finance-dashboard"

# ── API server ───────────────────────────────────────────────────────
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
TOKEN_EXPIRY_HOURS = 24


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
