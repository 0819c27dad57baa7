# src/remote_work/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState from the store, then runs the console REPL.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.errors import StoreUnavailable
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.store.close()
    except Exception:
        logger.debug("Store close failed.", exc_info=True)


def main() -> int:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "WARNING")).upper()
    console_level = getattr(logging, level_name, logging.WARNING)
    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (store=%s, log=%s)...", settings.app_name, settings.store_path, log_file)

    try:
        state = create_initial_state(settings=settings)
    except StoreUnavailable:
        logger.exception("Cannot open the record store at %s", settings.store_path)
        print(f"Store unavailable: {settings.store_path}")
        return 1

    try:
        run_console_loop(state)
    finally:
        _shutdown(state)
        logger.info("Bye.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
