"""Script to cleanup old run journals."""
import argparse
import logging
import time
from pathlib import Path

from txscraper.config import Config
from txscraper.logging_conf import setup_logging
from txscraper.store.spool import SpoolManager

logger = logging.getLogger(__name__)


def cleanup_spool(spool_dir: Path, dry_run: bool = False, older_than_days: int = 7) -> list[Path]:
    """Delete journals not modified for ``older_than_days``. Returns the matched files."""
    spool = SpoolManager(spool_dir)
    cutoff_time = time.time() - (older_than_days * 24 * 60 * 60)

    matched = []
    total_size = 0

    for spool_file in spool.list_spool_files():
        stat = spool_file.stat()
        if stat.st_mtime >= cutoff_time:
            continue
        size = stat.st_size
        if not dry_run:
            spool_file.unlink()
            logger.info(f"Deleted {spool_file.name} ({size} bytes)")
        else:
            logger.info(f"Would delete {spool_file.name} ({size} bytes)")
        matched.append(spool_file)
        total_size += size

    logger.info(f"Cleanup complete: {len(matched)} files, {total_size / 1024 / 1024:.2f} MB")
    return matched


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Cleanup run journals")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be deleted without actually deleting",
    )
    parser.add_argument(
        "--older-than-days",
        type=int,
        default=7,
        help="Delete files older than N days (default: 7)",
    )
    args = parser.parse_args()

    setup_logging()
    cleanup_spool(Config.from_env().spool_dir, args.dry_run, args.older_than_days)


if __name__ == "__main__":
    main()
