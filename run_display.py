"""Flask + Socket.IO server for the display board."""

import os
import sys

if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")

from smartboard import create_app, socketio


def main() -> int:
    app = create_app(bootstrap_runtime=True)
    port = int(os.environ.get("SMARTBOARD_PORT", 8000))
    host = os.environ.get("SMARTBOARD_HOST", "0.0.0.0")

    print(f"Server starting on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    try:
        socketio.run(
            app,
            host=host,
            port=port,
            debug=False,
            use_reloader=False,
            allow_unsafe_werkzeug=True,
        )
    except KeyboardInterrupt:
        print("\nServer stopped by user")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
