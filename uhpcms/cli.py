"""
Interactive CLI for the U-HPCMS navigation service.
Log in, inspect the sidebar for your role and switch organization.
"""

from getpass import getpass
from typing import Iterable

from uhpcms.database import init_engine, init_schema, list_organizations
from uhpcms.models import NavGroup
from uhpcms.navigation import build_navigation, is_active, landing_path
from uhpcms.rbac import load_identity
from uhpcms.roles import normalize_role
from uhpcms.session import SessionContext
from uhpcms.tenant import (
    can_select_organization,
    effective_organization,
    load_enabled_modules,
)

HELP = "Commands: nav [location], orgs, switch <org_id>, logout, quit"


def format_navigation(groups: Iterable[NavGroup], location: str = "") -> str:
    """Render navigation groups as indented text; the active link gets a '>' marker."""
    lines = []
    for grp in groups:
        lines.append(grp.label)
        for item in grp.items:
            marker = ">" if is_active(item, location) else " "
            label = f"{item.icon} {item.label}" if item.icon else item.label
            lines.append(f"  {marker} {label} ({item.path})")
    if not lines:
        return "(no navigation)"
    return "\n".join(lines)


def show_navigation(engine, identity, session, location=""):
    role = normalize_role(identity.role)
    modules = load_enabled_modules(engine, identity, session)
    org_id = effective_organization(identity, session)
    print(f"\n[nav] role={role} org={org_id or '-'} "
          f"modules={', '.join(sorted(modules)) if modules is not None else 'all'}")
    print(format_navigation(build_navigation(role, modules), location))


def main():
    print("=== U-HPCMS: Navigation & Tenant Context Console ===\n")

    engine = init_engine()
    init_schema(engine)

    # ── Login ────────────────────────────────────────────────────────
    try:
        email = input("Email (or 'quit'): ").strip()
    except (EOFError, KeyboardInterrupt):
        print("\nExiting.")
        return

    if not email or email.lower() in {"quit", "exit"}:
        print("Goodbye.")
        return

    try:
        password = getpass("Password: ")
        identity = load_identity(engine, email, password)
    except (EOFError, KeyboardInterrupt):
        print("\nExiting.")
        return
    except (ValueError, PermissionError) as e:
        print("\n[ERROR] Login failed.")
        print("Details:", e)
        return

    session = SessionContext()
    role = normalize_role(identity.role)
    print(f"\n[auth] Logged in as: {identity.full_name} (role={role})")
    print(f"[auth] Landing page: {landing_path(role)}")
    show_navigation(engine, identity, session)
    print(f"\n{HELP}")

    # ── REPL ─────────────────────────────────────────────────────────
    while True:
        try:
            line = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if not line:
            continue
        cmd, _, arg = line.partition(" ")
        cmd = cmd.lower()
        arg = arg.strip()

        if cmd in {"quit", "exit", "logout"}:
            session.logout()
            print("Goodbye.")
            break

        if cmd == "nav":
            show_navigation(engine, identity, session, arg)
        elif cmd == "orgs":
            if not can_select_organization(identity):
                print("[WARN] Your organization is fixed for this account.")
                continue
            organizations = list_organizations(engine)
            if session.reconcile(o["id"] for o in organizations):
                print("[WARN] Previously selected organization no longer exists; selection cleared.")
            for o in organizations:
                marker = "*" if o["id"] == session.selected_organization_id else " "
                print(f" {marker} {o['id']}  {o['name']} ({o['status']})")
        elif cmd == "switch":
            if not can_select_organization(identity):
                print("[WARN] Your organization is fixed for this account.")
                continue
            known = {o["id"] for o in list_organizations(engine)}
            if arg and arg not in known:
                print(f"[WARN] Unknown organization: {arg}")
                continue
            session.select_organization(arg)
            print(f"[org] Effective organization: {effective_organization(identity, session) or '-'}")
            show_navigation(engine, identity, session)
        else:
            print(HELP)


if __name__ == "__main__":
    main()
