"""
Flask route handlers for the REST API.
"""

import os
import sys
import traceback
from datetime import timedelta

from flask import request, jsonify
from sqlalchemy import text

from uhpcms.config import TOKEN_EXPIRY_HOURS
from uhpcms.database import list_organizations, record_audit
from uhpcms.navigation import build_navigation, landing_path, navigation_to_dict
from uhpcms.rbac import load_identity
from uhpcms.roles import normalize_role
from uhpcms.tenant import (
    can_select_organization,
    effective_organization,
    load_enabled_modules,
    needs_organization_selector,
)
from uhpcms.api.auth import (
    sessions,
    close_session,
    open_session,
    token_required,
    utcnow,
)


def user_payload(identity):
    return {
        "id": identity.user_id,
        "email": identity.email,
        "full_name": identity.full_name,
        "role": identity.role,
        "canonical_role": normalize_role(identity.role),
        "org_id": identity.organization_id,
    }


def register_routes(app, engine):
    """Register all API routes on the Flask *app*."""

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "U-HPCMS Navigation API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "auth": "/api/auth/login",
                "navigation": "/api/navigation",
                "organizations": "/api/organizations",
                "session": "/api/session/organization",
                "logout": "/api/auth/logout",
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        checks = {"database": False}
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            checks["database"] = True
        except Exception as e:
            print(f"[WARN] Health check failed: {e}", file=sys.stderr)

        all_healthy = all(checks.values())
        return jsonify({
            "status": "healthy" if all_healthy else "unhealthy",
            "checks": checks,
            "active_sessions": len(sessions),
        }), 200 if all_healthy else 503

    # ── Auth ─────────────────────────────────────────────────────────

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        if not request.is_json:
            return jsonify({"error": "Content-Type must be application/json"}), 400

        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400
        email = str(data.get("email", "")).strip()
        password = str(data.get("password", ""))
        if not email or not password:
            return jsonify({"error": "email and password are required"}), 400

        try:
            identity = load_identity(engine, email, password)
            token = open_session(identity)
            session = sessions[token]["session"]
            modules = load_enabled_modules(engine, identity, session)
            role = normalize_role(identity.role)

            record_audit(engine, identity.user_id, identity.organization_id, "login_success",
                         {"email": identity.email})
            print(f"[auth] Login: {identity.email} (role={role}, org={identity.organization_id})")
            user = user_payload(identity)
            user["enabled_modules"] = sorted(modules) if modules is not None else None
            return jsonify({
                "success": True,
                "token": token,
                "user": user,
                "landing_path": landing_path(role),
                "needs_org_selector": needs_organization_selector(identity),
                "expires_at": (utcnow() + timedelta(hours=TOKEN_EXPIRY_HOURS)).isoformat(),
            }), 200

        except ValueError as e:
            print(f"[auth] Login failed for {email}: {e}")
            return jsonify({"error": f"Authentication failed: {str(e)}"}), 401
        except PermissionError as e:
            print(f"[auth] Login refused for {email}: {e}")
            return jsonify({"error": str(e)}), 403
        except Exception as e:
            print(f"[ERROR] Login error: {e}", file=sys.stderr)
            traceback.print_exc()
            return jsonify({"error": "Internal server error during login"}), 500

    @app.route("/api/auth/logout", methods=["POST"])
    @token_required
    def logout():
        close_session(request.token)
        return jsonify({"success": True, "message": "Logged out successfully"}), 200

    # ── Organizations / tenant context ───────────────────────────────

    @app.route("/api/organizations", methods=["GET"])
    @token_required
    def get_organizations():
        identity = request.session_data["identity"]
        session = request.session_data["session"]
        if not can_select_organization(identity):
            return jsonify({"error": "Only super administrators can list organizations"}), 403

        try:
            organizations = list_organizations(engine)
        except Exception as e:
            print(f"[WARN] Could not list organizations: {e}", file=sys.stderr)
            organizations = []

        cleared = session.reconcile(o["id"] for o in organizations)
        return jsonify({
            "success": True,
            "data": organizations,
            "selected_org_id": session.selected_organization_id,
            "selection_cleared": cleared,
        }), 200

    @app.route("/api/session/organization", methods=["GET"])
    @token_required
    def get_session_organization():
        identity = request.session_data["identity"]
        session = request.session_data["session"]
        return jsonify({
            "success": True,
            "selected_org_id": session.selected_organization_id,
            "effective_org_id": effective_organization(identity, session),
            "needs_selector": needs_organization_selector(identity),
        }), 200

    @app.route("/api/session/organization", methods=["PUT"])
    @token_required
    def switch_organization():
        identity = request.session_data["identity"]
        session = request.session_data["session"]
        if not can_select_organization(identity):
            return jsonify({"error": "Organization is fixed for this account"}), 403

        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400
        org_id = str(data.get("org_id") or "").strip()
        if org_id:
            try:
                known = {o["id"] for o in list_organizations(engine)}
            except Exception as e:
                print(f"[ERROR] Organization lookup failed: {e}", file=sys.stderr)
                traceback.print_exc()
                return jsonify({"error": "Could not load organizations"}), 500
            if org_id not in known:
                return jsonify({"error": f"Unknown organization: {org_id}"}), 404

        session.select_organization(org_id)
        return jsonify({
            "success": True,
            "selected_org_id": session.selected_organization_id,
            "effective_org_id": effective_organization(identity, session),
        }), 200

    # ── Navigation ───────────────────────────────────────────────────

    @app.route("/api/navigation", methods=["GET"])
    @token_required
    def get_navigation():
        identity = request.session_data["identity"]
        session = request.session_data["session"]
        role = normalize_role(identity.role)

        modules = load_enabled_modules(engine, identity, session)
        groups = build_navigation(role, modules)
        return jsonify({
            "success": True,
            "role": role,
            "effective_org_id": effective_organization(identity, session),
            "needs_org_selector": needs_organization_selector(identity),
            "enabled_modules": sorted(modules) if modules is not None else None,
            "landing_path": landing_path(role),
            "groups": navigation_to_dict(groups, request.args.get("location")),
        }), 200

    # ── Profile ──────────────────────────────────────────────────────

    @app.route("/api/user/profile", methods=["GET"])
    @token_required
    def get_profile():
        session_data = request.session_data
        identity = session_data["identity"]
        return jsonify({
            "success": True,
            "user": user_payload(identity),
            "session": {
                "created_at": session_data["created_at"].isoformat(),
                "last_activity": session_data["last_activity"].isoformat(),
                "selected_org_id": session_data["session"].selected_organization_id,
            },
        }), 200

    @app.route("/api/sessions", methods=["GET"])
    def get_sessions_info():
        if os.getenv("FLASK_ENV") != "development":
            return jsonify({"error": "Not available in production"}), 403

        sessions_info = []
        for _token, data in sessions.items():
            identity = data["identity"]
            sessions_info.append({
                "user_id": identity.user_id,
                "email": identity.email,
                "role": identity.role,
                "org_id": identity.organization_id,
                "created_at": data["created_at"].isoformat(),
                "last_activity": data["last_activity"].isoformat(),
            })
        return jsonify({
            "active_sessions": len(sessions),
            "sessions": sessions_info,
        }), 200

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Endpoint not found", "message": str(e)}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({"error": "Internal server error", "message": str(e)}), 500
