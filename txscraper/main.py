"""Main entry point with CLI."""
import argparse
import asyncio
import logging
import sys

from txscraper.config import Config
from txscraper.errors import RunError
from txscraper.jobs.runner import ScrapeRunner
from txscraper.logging_conf import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Amazon payments transactions scraper")

    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Days of history covered by the report (default: DEFAULT_DAYS or 90)",
    )
    parser.add_argument(
        "--output",
        default="transactions",
        help="Snapshot file name prefix (default: transactions)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of parallel browser contexts (default: WORKERS or 3)",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window (needed to complete a sign-in)",
    )

    # Mode flags
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Development mode (one worker, verbose logs, pages saved under data/dev)",
    )
    parser.add_argument(
        "--no-resume",
        action="store_true",
        help="Ignore previous runs and extract every listed order again",
    )

    # Run control flags
    parser.add_argument(
        "--stop-after-minutes",
        type=int,
        default=None,
        help="Stop taking new orders after M minutes",
    )
    parser.add_argument(
        "--max-errors",
        type=int,
        default=None,
        help="Stop if total failed orders reach N",
    )
    parser.add_argument(
        "--max-consecutive-errors",
        type=int,
        default=None,
        help="Stop if N consecutive orders fail",
    )
    parser.add_argument(
        "--login-timeout",
        type=int,
        default=None,
        help="Seconds to wait for a manual sign-in (default: 120)",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace, base: Config | None = None) -> Config:
    """Apply CLI overrides on top of the environment configuration."""
    config = base or Config.from_env()
    overrides = {}
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.headed:
        overrides["headless"] = False
    if args.login_timeout is not None:
        overrides["login_timeout_ms"] = args.login_timeout * 1000
    if args.dev:
        overrides["workers"] = 1
        overrides["log_level"] = "DEBUG"
    return config.model_copy(update=overrides) if overrides else config


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    config = build_config(args)
    setup_logging(config.log_level)

    try:
        config.validate_values()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    days = args.days if args.days is not None else config.default_days

    logger.info("=" * 60)
    logger.info("Transactions Scraper Starting")
    logger.info(f"Mode: {'DEV' if args.dev else 'PROD'}")
    logger.info(f"Days: {days}")
    logger.info(f"Workers: {config.workers}")
    logger.info(f"Headless: {config.headless}")
    logger.info(f"Max pages: {config.max_pages}")
    logger.info(f"Delay between orders: {config.delay_between_requests_ms} ms")
    logger.info(f"Resume: {not args.no_resume}")
    logger.info(f"Data dir: {config.data_dir}")
    logger.info("=" * 60)

    runner = ScrapeRunner(
        config,
        days=days,
        output_name=args.output,
        resume=not args.no_resume,
        dev_mode=args.dev,
        stop_after_minutes=args.stop_after_minutes,
        max_errors=args.max_errors,
        max_consecutive_errors=args.max_consecutive_errors,
    )
    try:
        snapshot_path, screenshots_dir = asyncio.run(runner.run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
    except RunError as e:
        logger.error(f"Run failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

    logger.info(f"JSON data: {snapshot_path}")
    logger.info(f"Screenshots: {screenshots_dir}")
    if runner.run_control.stop_requested:
        sys.exit(1)


if __name__ == "__main__":
    main()
