"""
Tenant context – which organization the current session is acting on, and
the modules that organization has enabled.
"""

import sys
from typing import FrozenSet, Optional

from uhpcms.database import fetch_enabled_modules
from uhpcms.models import Identity
from uhpcms.roles import is_super_admin
from uhpcms.session import SessionContext


def effective_organization(identity: Optional[Identity], session: Optional[SessionContext]) -> str:
    """Return the organization id in effect, or ``""`` when none is chosen.

    A bound ``identity.organization_id`` always wins over the session selection.
    """
    bound = getattr(identity, "organization_id", None)
    if bound:
        return str(bound)
    selected = session.selected_organization_id if session is not None else ""
    return selected or ""


def needs_organization_selector(identity: Optional[Identity]) -> bool:
    """Super admins without a bound organization must pick one."""
    if identity is None:
        return False
    return is_super_admin(identity.role) and not identity.organization_id


def can_select_organization(identity: Optional[Identity]) -> bool:
    return needs_organization_selector(identity)


def load_enabled_modules(engine, identity: Identity, session: SessionContext) -> Optional[FrozenSet[str]]:
    """Fetch the modules of the effective organization into *session*.

    A failed fetch counts as "unknown" (None). The result is read back for the
    organization in effect once the fetch completes, so a response for a
    tenant that is no longer selected is never used.
    """
    org_id = effective_organization(identity, session)
    ticket = session.begin_module_fetch(org_id)
    try:
        modules = fetch_enabled_modules(engine, org_id)
    except Exception as e:
        print(f"[WARN] Could not load modules for org {org_id!r}: {e}", file=sys.stderr)
        modules = None
    session.complete_module_fetch(ticket, modules)
    return session.enabled_modules_for(effective_organization(identity, session))
