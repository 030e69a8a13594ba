from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from .api_client import LotteryApiClient
from .config import load_config
from .scheduler import DrawScheduler, SchedulerResult


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )


async def run(args: argparse.Namespace) -> Optional[SchedulerResult]:
    settings = load_config(args.env_file)
    configure_logging(args.verbose)
    logger = logging.getLogger("lottery.scheduler")

    client = LotteryApiClient(settings)
    scheduler = DrawScheduler(settings, client, logger=logger)

    if args.once or settings.run_once:
        result = await scheduler.run_once()
        logger.info("Scheduler action=%s draw=%s", result.action.value, result.draw_id)
        return result

    await scheduler.run_forever()
    return None


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Lottery draw scheduler")
    parser.add_argument("--env-file", type=str, default=None, help="Path to .env file with settings")
    parser.add_argument("--once", action="store_true", help="Run only once and exit.")
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging (default INFO)."
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        print("Draw scheduler stopped by user.")


if __name__ == "__main__":
    main()
