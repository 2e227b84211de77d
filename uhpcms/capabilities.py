"""
Capability gate – per-item visibility from enabled modules and role allow-lists.
"""

from collections.abc import Iterable, Mapping, Set

from uhpcms.roles import ADMIN_BYPASS_ROLES


def _as_tuple(value):
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, Iterable):
        return ()
    return tuple(value)


def _is_module_collection(value) -> bool:
    if isinstance(value, (str, bytes, Mapping)):
        return False
    return isinstance(value, (Set, list, tuple))


def _contains(collection, value) -> bool:
    try:
        return value in collection
    except TypeError:
        return False


def module_eligible(item, enabled_modules) -> bool:
    """True if the tenant has at least one of the item's modules enabled.

    When *enabled_modules* is unknown (None or not a collection) the item is
    kept, so core navigation stays visible before module data arrives.
    Malformed module names are ignored; an item left with none is kept.
    """
    required = tuple(m for m in _as_tuple(getattr(item, "required_modules", None))
                     if isinstance(m, str))
    if not required:
        return True
    if not _is_module_collection(enabled_modules):
        return True
    return any(_contains(enabled_modules, m) for m in required)


def role_eligible(item, canonical_role) -> bool:
    allowed = _as_tuple(getattr(item, "allowed_roles", None))
    if not allowed:
        return True
    if _contains(ADMIN_BYPASS_ROLES, canonical_role):
        return True
    return _contains(allowed, canonical_role)


def is_visible(item, canonical_role, enabled_modules) -> bool:
    """Both the module check and the role check must pass."""
    return module_eligible(item, enabled_modules) and role_eligible(item, canonical_role)
