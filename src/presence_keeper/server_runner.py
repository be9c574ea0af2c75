"""Serve the status dashboard alongside the keep-alive monitor."""

from __future__ import annotations

import logging
import threading
import webbrowser
from typing import Optional

import uvicorn

from .config import KeepAliveSettings, log_level_for
from .holidays import HolidayLookup
from .webapp import create_app

logger = logging.getLogger(__name__)


def run_dashboard(
    *,
    host: str = "127.0.0.1",
    port: int = 8766,
    settings: Optional[KeepAliveSettings] = None,
    holidays: Optional[HolidayLookup] = None,
    open_browser: bool = False,
) -> None:
    """Start the FastAPI dashboard; the monitor runs in a background thread.

    Uvicorn logs through the root logger configured by the CLI, so server
    messages land in the same transcript at the same verbosity.
    """
    resolved = settings or KeepAliveSettings()
    app = create_app(settings=resolved, holidays=holidays)
    status_url = f"http://{host}:{port}/api/status"
    logger.info("Status dashboard at %s", status_url)

    if open_browser:
        timer = threading.Timer(1.0, _open_status_page, args=(status_url,))
        timer.daemon = True
        timer.start()

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=logging.getLevelName(log_level_for(resolved.verbosity)).lower(),
        log_config=None,
    )


def _open_status_page(url: str) -> None:
    try:
        webbrowser.open(url)
    except webbrowser.Error:
        logger.exception("Failed to launch browser for %s", url)
