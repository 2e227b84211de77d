"""
Role normalization – mapping free-form role names to canonical role keys.
"""

import re
from enum import Enum
from typing import Optional


class CanonicalRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    ROLE_SUPER_ADMIN = "role_super_admin"
    ORG_ADMIN = "org_admin"
    ADMINISTRATOR = "administrator"
    DOCTOR = "doctor"
    NURSE = "nurse"
    ACCOUNTANT = "accountant"
    RECEPTIONIST = "receptionist"
    PHARMACIST = "pharmacist"
    REPRESENTATIVE = "representative"
    LAB = "lab"
    PATIENT = "patient"


TENANT_ADMIN_ROLES = frozenset({
    CanonicalRole.SUPER_ADMIN.value,
    CanonicalRole.ROLE_SUPER_ADMIN.value,
    CanonicalRole.ORG_ADMIN.value,
    CanonicalRole.ADMINISTRATOR.value,
})

# Roles that may see every item regardless of its role allow-list.
ADMIN_BYPASS_ROLES = frozenset({
    CanonicalRole.ORG_ADMIN.value,
    CanonicalRole.ADMINISTRATOR.value,
})

SUPER_ADMIN_ROLES = frozenset({
    CanonicalRole.SUPER_ADMIN.value,
    CanonicalRole.ROLE_SUPER_ADMIN.value,
})

# Checked in this order; the first stem contained in the role wins.
# "lab" also covers "laboratory".
ROLE_STEMS = (
    ("doctor", CanonicalRole.DOCTOR),
    ("nurse", CanonicalRole.NURSE),
    ("accountant", CanonicalRole.ACCOUNTANT),
    ("receptionist", CanonicalRole.RECEPTIONIST),
    ("pharmacist", CanonicalRole.PHARMACIST),
    ("representative", CanonicalRole.REPRESENTATIVE),
    ("lab", CanonicalRole.LAB),
    ("patient", CanonicalRole.PATIENT),
)


def normalize_role(raw_role: Optional[str]) -> str:
    """Return the canonical role key for *raw_role*.

    Never raises. Empty input gives ``""``; a role matching no known stem is
    returned lower-cased so it still acts as its own key.
    """
    if not raw_role:
        return ""
    role = str(raw_role).strip().lower()
    if role in TENANT_ADMIN_ROLES:
        return role
    for stem, canonical in ROLE_STEMS:
        if stem in role:
            return canonical.value
    return role


def is_super_admin(role: Optional[str]) -> bool:
    return normalize_role(role) in SUPER_ADMIN_ROLES


def resolve_role_name(role_id: Optional[str], role_row_name: Optional[str] = None) -> str:
    """Turn a stored role id into a role name.

    The ``roles`` table name wins when present. Otherwise generated ids such as
    ``role_doctor_org_12`` are reduced to ``doctor``.
    """
    if role_row_name:
        return str(role_row_name)
    if not role_id:
        return ""
    role_id = str(role_id)
    if role_id.startswith("role_"):
        stripped = re.sub(r"_org_.*$", "", role_id[len("role_"):])
        return stripped or role_id
    return role_id
