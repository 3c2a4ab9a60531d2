#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Uvicorn server entry point for the Shorts Slider backend.

Loads ``.env``, configures logging from the environment and starts Uvicorn.
"""

import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from config import config
from logging_config import setup_logging


def main():
    """Load environment, configure logging and run the server."""
    env_path = Path(".") / ".env"
    if env_path.is_file():
        load_dotenv(dotenv_path=env_path, override=True)
        print(f"Loaded environment variables from: {env_path.resolve()}")

    # Re-read configuration now that .env values are in the environment
    config.load_from_env()

    log_level_console = getattr(logging, os.environ.get("LOG_LEVEL_CONSOLE", "INFO").upper(), logging.INFO)
    log_level_file = getattr(logging, os.environ.get("LOG_LEVEL_FILE", "DEBUG").upper(), logging.DEBUG)
    log_structured = os.environ.get("LOG_STRUCTURED", "true").lower() in ("true", "1", "yes")

    setup_logging(
        log_level_console=log_level_console,
        log_level_file=log_level_file,
        structured=log_structured,
    )

    run_host = os.environ.get("HOST", "127.0.0.1")
    try:
        run_port = int(os.environ.get("PORT", "8000"))
    except ValueError:
        logging.warning(f"Invalid PORT environment variable '{os.environ.get('PORT')}', using default 8000.")
        run_port = 8000

    # One worker: the playlist cache lives in process memory
    try:
        run_workers = int(os.environ.get("WEB_CONCURRENCY", "1"))
        if run_workers > 1:
            logging.warning(f"Running with {run_workers} workers; each keeps its own playlist cache.")
    except ValueError:
        logging.warning(f"Invalid WEB_CONCURRENCY '{os.environ.get('WEB_CONCURRENCY')}', using default 1.")
        run_workers = 1

    debug_mode = os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")
    uvicorn_log_level = os.environ.get("UVICORN_LOG_LEVEL", "debug" if debug_mode else "info").lower()

    logging.info(f"Starting Uvicorn server on http://{run_host}:{run_port}")
    uvicorn.run(
        "main:app",
        host=run_host,
        port=run_port,
        reload=debug_mode,
        workers=run_workers if not debug_mode else 1,
        log_level=uvicorn_log_level,
    )


if __name__ == "__main__":
    main()
