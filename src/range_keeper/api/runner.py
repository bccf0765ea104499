#!/usr/bin/env python3
"""Admin API runner: python -m range_keeper.api.runner [config.yaml]."""

import sys
from functools import partial

import structlog
import uvicorn

from range_keeper.api.app import create_app
from range_keeper.config.loader import load_config
from range_keeper.db.engine import dispose_engine, init_engine
from range_keeper.logging.setup import setup_logging
from range_keeper.orchestrator.runner import run_loop
from range_keeper.orchestrator.wiring import build_engine

logger = structlog.get_logger()


def main(config_path: str | None = None):
    """Serve the admin API; HTTP clients close with the app, the DB pool on exit."""
    if config_path is None and len(sys.argv) > 1:
        config_path = sys.argv[1]
    config = load_config(config_path)
    setup_logging(level=config.logging.level, log_format=config.logging.format)

    engine = build_engine(config, init_engine(config.database.url))
    background = None
    if config.api.run_scheduler:
        background = partial(run_loop, config, engine)
    app = create_app(engine, config.pools, background=background)

    logger.info("api_starting", host=config.api.host, port=config.api.port, pools=len(config.pools))
    try:
        uvicorn.run(
            app,
            host=config.api.host,
            port=config.api.port,
            log_config=None  # Use our structlog setup
        )
    except Exception as e:
        logger.error("api_failed", error=str(e))
        raise
    finally:
        dispose_engine()


if __name__ == "__main__":
    main()
