"""
Main entry point for the eCFR agency metrics system.
"""

import argparse
import logging
import sys
from typing import Optional

import structlog

from .core.config import Settings, settings
from .orchestration import EcfrMetricsPipeline
from .storage import EcfrDatabase


def setup_logging(config: Optional[Settings] = None):
    """Configure structured logging."""
    config = config or settings
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=config.log_level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def init_db(config: Optional[Settings] = None) -> int:
    """Create the database tables if they do not exist."""
    config = config or settings
    logger = structlog.get_logger(__name__)

    try:
        with EcfrDatabase(config) as db:
            db.init_schema()
    except Exception as e:
        logger.error("Schema initialization failed", error=str(e))
        return 1

    logger.info("Tables created successfully")
    return 0


def run_pipeline(config: Optional[Settings] = None) -> int:
    """Sync agencies and compute today's metrics."""
    config = config or settings
    logger = structlog.get_logger(__name__)

    try:
        with EcfrDatabase(config) as db:
            pipeline_run = EcfrMetricsPipeline(db, config=config).run()
    except Exception as e:
        # Only reachable when the pool cannot be opened
        logger.error("Pipeline failed", error=str(e))
        return 1

    if pipeline_run.status == "completed":
        logger.info("Pipeline complete", run_id=pipeline_run.run_id)
        return 0

    logger.error("Pipeline failed", run_id=pipeline_run.run_id, error=pipeline_run.error_message)
    return 1


def init_db_main():
    """Console script: ecfr-init-db"""
    setup_logging()
    sys.exit(init_db())


def run_pipeline_main():
    """Console script: ecfr-run-pipeline"""
    setup_logging()
    sys.exit(run_pipeline())


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="eCFR agency word-count and restrictiveness metrics"
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    subparsers.add_parser('init-db', help='Create the database tables if missing')
    subparsers.add_parser('run', help='Sync agencies and compute metrics')

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    setup_logging()

    if args.command == 'init-db':
        sys.exit(init_db())
    elif args.command == 'run':
        sys.exit(run_pipeline())


if __name__ == "__main__":
    main()
