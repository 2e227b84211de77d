"""
Role-Based Access Control – authenticating operators and loading their identity.
"""

from sqlalchemy import text
from werkzeug.security import check_password_hash

from uhpcms.database import get_organization_status, record_audit
from uhpcms.models import Identity
from uhpcms.roles import resolve_role_name


def password_matches(password_hash: str, password: str) -> bool:
    """Check *password* against a stored hash; unsupported hash formats never match."""
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        return False


def load_identity(engine, email: str, password: str) -> Identity:
    """Look up an active user by email, check the password and return their Identity.

    Failed and refused logins are written to the audit log.
    """
    sql = text("""
        SELECT u.id, u.org_id, u.email, u.password_hash, u.role_id, u.full_name,
               r.name AS role_name
        FROM system_users u
        LEFT JOIN roles r ON r.id = u.role_id
        WHERE u.email = :e AND u.status = 'active'
        LIMIT 1
    """)
    with engine.connect() as conn:
        row = conn.execute(sql, {"e": email}).mappings().first()

    if not row or not row["password_hash"] or not password_matches(row["password_hash"], password):
        record_audit(engine, None, None, "login_failed", {"identifier": email or "unknown"})
        raise ValueError("Invalid credentials")

    org_id = str(row["org_id"]) if row["org_id"] else None
    if org_id and get_organization_status(engine, org_id) == "suspended":
        record_audit(engine, str(row["id"]), org_id, "login_org_suspended", {"email": row["email"]})
        raise PermissionError("Organization is suspended")

    return Identity(
        user_id=str(row["id"]),
        email=str(row["email"]),
        role=resolve_role_name(row["role_id"], row["role_name"]),
        organization_id=org_id,
        full_name=str(row["full_name"] or row["email"]),
    )
