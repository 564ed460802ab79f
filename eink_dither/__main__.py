"""``python -m eink_dither``: serve the module-level app with Flask's dev server."""

from __future__ import annotations

import logging

from .app import app
from .config import SETTINGS

log = logging.getLogger(__name__)


def main() -> None:
    log.info("Serving eink-dither on port %s", SETTINGS.port)
    app.run(host="0.0.0.0", port=SETTINGS.port, debug=False)


if __name__ == "__main__":
    main()
