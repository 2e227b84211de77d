"""
Domain dataclasses used across the application.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Identity:
    """The authenticated operator, fixed for the lifetime of a login."""
    user_id: str
    email: str
    role: str                            # raw role name as stored
    organization_id: Optional[str] = None  # None for cross-tenant super admins
    full_name: str = ""


@dataclass(frozen=True)
class NavItem:
    """A single sidebar link."""
    path: str
    label: str
    icon: str = ""
    required_modules: Tuple[str, ...] = ()  # any one enabled is enough
    allowed_roles: Tuple[str, ...] = ()     # empty = every role


@dataclass(frozen=True)
class NavGroup:
    """A sidebar section; item order is display order."""
    label: str
    items: Tuple[NavItem, ...]
