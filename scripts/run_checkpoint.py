"""
Script to flush buffered tables or run a checkpoint once, outside the server.

Usage:
    python scripts/run_checkpoint.py flush
    python scripts/run_checkpoint.py checkpoint
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.logging import setup_logging
from core.exceptions import SidecarException
from api.dependencies import build_services

setup_logging()
logger = logging.getLogger(__name__)


async def run(command: str) -> int:
    services = build_services(settings, enable_scheduler=False)
    await services.startup()

    try:
        if command == "flush":
            summary = await services.coordinator.flush_all()
            logger.info(f"Flushed {summary.rows_written} rows")
            if summary.failed_tables:
                logger.error(f"Flush failed for: {', '.join(summary.failed_tables)}")
                return 1
            return 0

        result = await services.orchestrator.create_checkpoint()
        if result.files_count == 0:
            logger.info("No parquet files to checkpoint")
        else:
            logger.info(
                f"Checkpoint completed: catalog={result.catalog_tx_id}, "
                f"files={result.files_count}, pointer_updated={result.pointer_updated}"
            )
        return 0

    except SidecarException as e:
        logger.error(f"{command} failed: {e}", extra={"error_context": e.to_dict()})
        return 1
    finally:
        await services.shutdown()


def main():
    parser = argparse.ArgumentParser(description="Run a one-off flush or checkpoint")
    parser.add_argument("command", choices=["flush", "checkpoint"])
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args.command)))


if __name__ == "__main__":
    main()
