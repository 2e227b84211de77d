"""
Navigation policy – which sidebar groups and links a role sees for a tenant.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Union
from urllib.parse import urlsplit

from uhpcms.capabilities import is_visible
from uhpcms.config import DEFAULT_LANDING_PATH, FINANCE_LANDING_PATH
from uhpcms.models import NavGroup, NavItem
from uhpcms.roles import CanonicalRole, TENANT_ADMIN_ROLES

_SUPER_ADMINS = ("super_admin", "role_super_admin")


def nav_item(path: str, label: str, icon: str = "",
             module: Union[str, Sequence[str], None] = None,
             roles: Optional[Sequence[str]] = None) -> NavItem:
    """Build a NavItem; *module* may be a single module name or a list."""
    if isinstance(module, str):
        modules = (module,)
    else:
        modules = tuple(module or ())
    return NavItem(path=path, label=label, icon=icon,
                   required_modules=modules, allowed_roles=tuple(roles or ()))


def group(label: str, *items: NavItem) -> NavGroup:
    return NavGroup(label=label, items=tuple(items))


# ── Links ────────────────────────────────────────────────────────────

DASHBOARD = nav_item("/dashboard", "Dashboard", "📊")
SEARCH = nav_item("/search", "Search", "🔎")

WORKFLOW = nav_item("/workflow", "Patient flow", "📝", ["hospital", "clinic"])
PATIENTS = nav_item("/patients", "Patients", "👥", ["hospital", "clinic"])
LAB = nav_item("/lab", "Lab", "🔬", "lab")
INPATIENT = nav_item("/inpatient", "Inpatient", "🛏️", "hospital")
PHARMACY = nav_item("/pharmacy", "Pharmacy", "💊", "pharmacy")
APPOINTMENTS = nav_item("/appointments", "Appointments", "📅", "clinic")

SCHEDULE = nav_item("/schedule", "Schedule", "🗓️", ["hospital", "clinic"])
PRESCRIPTIONS = nav_item("/prescriptions", "Prescriptions", "📄", ["hospital", "clinic", "pharmacy"])
BEDS = nav_item("/beds", "Beds", "🛌", "hospital")
DOCTORS = nav_item("/doctors", "Doctors", "🩺")
DEPARTMENTS = nav_item("/departments", "Departments", "🏬")

BILLING = nav_item("/billing", "Billing", "💰", "billing")
REPORTING = nav_item("/reporting", "Reporting", "📈", "reporting")
FINANCE_DASHBOARD = nav_item("/finance-dashboard", "Finance dashboard", "💹", "billing")
FINANCE_REPORTS = nav_item("/finance-reports", "Finance reports", "🧾", "billing")
INSURANCE = nav_item("/insurance", "Insurance", "🛡️", "billing")

EMPLOYEES = nav_item("/employees", "Employees", "👥",
                     roles=[*_SUPER_ADMINS, "administrator", "doctor"])
LEGACY_PATIENTS = nav_item("/legacy-patients", "Patients", "🧑‍⚕️",
                           roles=[*_SUPER_ADMINS, "administrator", "doctor", "receptionist"])
OPD_QUEUE = nav_item("/opd", "OPD Queue", "📋",
                     roles=[*_SUPER_ADMINS, "administrator", "doctor", "receptionist"])

NOTICEBOARD = nav_item("/noticeboard", "Noticeboard", "📌")
CASES = nav_item("/cases", "Case manager", "🗂️")
ACTIVITIES = nav_item("/activities", "Activities", "✅")
CHAT = nav_item("/chat", "Chat", "💬")

ORG_SETUP = nav_item("/org-admin", "Org setup", "🏢")
HRM = nav_item("/hrm", "HRM", "🧑‍💼")
SETTINGS = nav_item("/settings", "Settings", "🔧")

AUDIT_LOG = nav_item("/audit", "Audit log", "📋")
GOVERNANCE = nav_item("/governance", "Governance", "⚙️", roles=list(_SUPER_ADMINS))


# ── Trees ────────────────────────────────────────────────────────────

FULL_NAVIGATION = (
    group("Overview", DASHBOARD, SEARCH),
    group("Patient care", WORKFLOW, PATIENTS, LAB, INPATIENT, PHARMACY, APPOINTMENTS),
    group("Clinical operations", SCHEDULE, PRESCRIPTIONS, BEDS, DOCTORS, DEPARTMENTS),
    group("Finance & billing", BILLING, REPORTING, FINANCE_DASHBOARD, FINANCE_REPORTS, INSURANCE),
    group("Legacy HMS", EMPLOYEES, LEGACY_PATIENTS, OPD_QUEUE),
    group("Collaboration", NOTICEBOARD, CASES, ACTIVITIES, CHAT),
    group("Organization", ORG_SETUP, HRM, SETTINGS),
    group("System", AUDIT_LOG, GOVERNANCE),
)

PORTALS: Dict[str, tuple] = {
    CanonicalRole.DOCTOR.value: (
        group("Overview", DASHBOARD, SEARCH),
        group("Patient care", WORKFLOW, PATIENTS, LAB, APPOINTMENTS),
        group("Clinical operations", SCHEDULE, PRESCRIPTIONS),
        group("Legacy HMS", EMPLOYEES, LEGACY_PATIENTS, OPD_QUEUE),
        group("Collaboration", NOTICEBOARD, CHAT),
    ),
    CanonicalRole.NURSE.value: (
        group("Overview", DASHBOARD),
        group("Patient care", WORKFLOW, PATIENTS, INPATIENT),
        group("Clinical operations", BEDS, SCHEDULE),
        group("Collaboration", NOTICEBOARD, CHAT),
    ),
    CanonicalRole.ACCOUNTANT.value: (
        group("Finance & billing", FINANCE_DASHBOARD, BILLING, FINANCE_REPORTS, INSURANCE, REPORTING),
        group("Collaboration", NOTICEBOARD),
    ),
    CanonicalRole.RECEPTIONIST.value: (
        group("Overview", DASHBOARD, SEARCH),
        group("Front desk", PATIENTS, APPOINTMENTS, SCHEDULE),
        group("Legacy HMS", LEGACY_PATIENTS, OPD_QUEUE),
        group("Collaboration", NOTICEBOARD, CHAT),
    ),
    CanonicalRole.PHARMACIST.value: (
        group("Overview", DASHBOARD),
        group("Pharmacy", PHARMACY, PRESCRIPTIONS),
        group("Collaboration", NOTICEBOARD),
    ),
    CanonicalRole.REPRESENTATIVE.value: (
        group("Overview", DASHBOARD),
        group("Field work", ACTIVITIES, CASES, NOTICEBOARD),
    ),
    CanonicalRole.LAB.value: (
        group("Overview", DASHBOARD),
        group("Laboratory", LAB),
        group("Collaboration", NOTICEBOARD),
    ),
    CanonicalRole.PATIENT.value: (
        group("My care", APPOINTMENTS, PRESCRIPTIONS),
    ),
}


def base_tree(canonical_role: str) -> tuple:
    """Tree to filter for *canonical_role*.

    Unregistered roles get the full tree, same as tenant admins. A role that
    is not a string gets no tree.
    """
    if not isinstance(canonical_role, str):
        return ()
    if canonical_role in TENANT_ADMIN_ROLES:
        return FULL_NAVIGATION
    return PORTALS.get(canonical_role, FULL_NAVIGATION)


def build_navigation(canonical_role: str, enabled_modules) -> List[NavGroup]:
    """Filter the role's tree, dropping groups left with no items.

    Group and item order are preserved. An empty or non-string role gets no
    navigation.
    """
    if not isinstance(canonical_role, str):
        canonical_role = ""
    if not canonical_role:
        return []
    groups = []
    for grp in base_tree(canonical_role):
        items = tuple(i for i in grp.items if is_visible(i, canonical_role, enabled_modules))
        if items:
            groups.append(NavGroup(label=grp.label, items=items))
    return groups


def is_active(item: NavItem, location: Optional[str]) -> bool:
    """True when *item.path* equals the location path, optionally with its query or hash."""
    if not isinstance(location, str) or not location:
        return False
    parts = urlsplit(location)
    path = parts.path or "/"
    query = f"?{parts.query}" if parts.query else ""
    fragment = f"#{parts.fragment}" if parts.fragment else ""
    return item.path in {path, path + query, path + fragment, path + query + fragment}


def landing_path(canonical_role: str) -> str:
    if canonical_role == CanonicalRole.ACCOUNTANT.value:
        return FINANCE_LANDING_PATH
    return DEFAULT_LANDING_PATH


def navigation_to_dict(groups: Iterable[NavGroup], location: Optional[str] = None) -> List[dict]:
    return [
        {
            "label": grp.label,
            "items": [
                {
                    "path": item.path,
                    "label": item.label,
                    "icon": item.icon,
                    "active": is_active(item, location),
                }
                for item in grp.items
            ],
        }
        for grp in groups
    ]
