"""
Database engine initialisation, schema bootstrap and tenant lookups.
"""

import json
import sys
from typing import Any, Dict, List, Optional, Set

from sqlalchemy import create_engine, text

from uhpcms.config import get_env

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS organizations (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        type TEXT,
        status TEXT NOT NULL DEFAULT 'active',
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS roles (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        org_id TEXT REFERENCES organizations(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS system_users (
        id TEXT PRIMARY KEY,
        org_id TEXT REFERENCES organizations(id),
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        role_id TEXT,
        full_name TEXT,
        status TEXT NOT NULL DEFAULT 'active'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS org_modules (
        org_id TEXT NOT NULL REFERENCES organizations(id),
        module_name TEXT NOT NULL,
        enabled INTEGER NOT NULL DEFAULT 1,
        PRIMARY KEY (org_id, module_name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS audit_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT,
        org_id TEXT,
        module TEXT NOT NULL,
        action TEXT NOT NULL,
        payload TEXT,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
)


def init_engine():
    """Create a SQLAlchemy engine and verify the connection."""
    db_uri = get_env("DB_URI")
    engine = create_engine(db_uri, echo=False, future=True)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    print("[init] Connected to DB.")
    return engine


def init_schema(engine) -> None:
    """Create the tenant/identity tables if they do not exist yet."""
    with engine.begin() as conn:
        for stmt in SCHEMA_STATEMENTS:
            conn.execute(text(stmt))


def fetch_enabled_modules(engine, org_id: Optional[str]) -> Optional[Set[str]]:
    """Return the enabled module names for *org_id*.

    None means "unknown" (no organization in effect), which the navigation
    treats as fail-open.
    """
    if not org_id:
        return None
    sql = text("SELECT module_name FROM org_modules WHERE org_id = :o AND enabled = 1")
    with engine.connect() as conn:
        rows = conn.execute(sql, {"o": org_id}).mappings().all()
    return {str(r["module_name"]) for r in rows}


def list_organizations(engine) -> List[dict]:
    sql = text("SELECT id, name, status FROM organizations ORDER BY name")
    with engine.connect() as conn:
        rows = conn.execute(sql).mappings().all()
    return [{"id": str(r["id"]), "name": r["name"], "status": r["status"]} for r in rows]


def get_organization_status(engine, org_id: str) -> Optional[str]:
    sql = text("SELECT status FROM organizations WHERE id = :o")
    with engine.connect() as conn:
        row = conn.execute(sql, {"o": org_id}).mappings().first()
    return row["status"] if row else None


def record_audit(engine, user_id: Optional[str], org_id: Optional[str], action: str,
                 payload: Optional[Dict[str, Any]] = None, module: str = "auth") -> bool:
    """Append an audit_log row. Failures are reported and swallowed."""
    sql = text("""
        INSERT INTO audit_log (user_id, org_id, module, action, payload)
        VALUES (:u, :o, :m, :a, :p)
    """)
    try:
        with engine.begin() as conn:
            conn.execute(sql, {
                "u": user_id, "o": org_id, "m": module, "a": action,
                "p": json.dumps(payload or {}),
            })
    except Exception as e:
        print(f"[WARN] Could not write audit entry {module}/{action}: {e}", file=sys.stderr)
        return False
    return True
