"""Entry point for the location_chain HTTP host."""

from __future__ import annotations

import logging
import os

from location_chain import create_app

logging.basicConfig(level=os.environ.get("LOCATION_CHAIN_LOG_LEVEL", "INFO").upper())

app = create_app()


def _is_production() -> bool:
    """Return ``True`` when the app should run in production mode."""

    return os.environ.get("FLASK_ENV", "production") == "production"


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = not _is_production()
    # The reloader would start a second event loop thread.
    app.run(host="0.0.0.0", port=port, debug=debug, use_reloader=False)
