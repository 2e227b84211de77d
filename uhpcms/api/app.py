"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback

from flask import Flask
from flask_cors import CORS

from uhpcms.config import TOKEN_EXPIRY_HOURS
from uhpcms.database import init_engine, init_schema
from uhpcms.api.routes import register_routes


def create_app(engine=None):
    """Build and return a fully configured Flask application."""
    app = Flask(__name__)
    CORS(app)

    # ── Initialise shared resources ──────────────────────────────────
    try:
        if engine is None:
            print("[init] Initializing database connection...")
            engine = init_engine()

        print("[init] Ensuring schema...")
        init_schema(engine)

        print("[init] ✓ API server ready")
    except Exception as e:
        print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)

    # ── Register routes ──────────────────────────────────────────────
    register_routes(app, engine)

    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("U-HPCMS – Navigation & Tenant Context API")
    print("=" * 60)

    app = create_app()

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    debug = os.getenv("FLASK_ENV") == "development"

    print(f"\n[server] Starting Flask API on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print(f"[server] CORS enabled: True")
    print(f"[server] Session expiry: {TOKEN_EXPIRY_HOURS} hours")
    print("\nAPI Endpoints:")
    print(f"  - POST http://{host}:{port}/api/auth/login")
    print(f"  - GET  http://{host}:{port}/api/navigation")
    print(f"  - GET  http://{host}:{port}/api/organizations")
    print(f"  - GET  http://{host}:{port}/api/session/organization")
    print(f"  - PUT  http://{host}:{port}/api/session/organization")
    print(f"  - GET  http://{host}:{port}/api/user/profile")
    print(f"  - POST http://{host}:{port}/api/auth/logout")
    print(f"  - GET  http://{host}:{port}/health")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
