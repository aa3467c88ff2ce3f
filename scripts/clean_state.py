#!/usr/bin/env python3
"""Utility script to inspect and clean the progress database."""
import sqlite3
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from txscraper.config import Config


def delete_by_status(db_path: Path, status: str) -> int:
    """Delete all rows with the given status (started, ok, failed)."""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute("SELECT COUNT(*) FROM order_progress WHERE status = ?", (status,))
    count_before = cursor.fetchone()[0]

    if count_before == 0:
        print(f"No records found with status '{status}'")
        conn.close()
        return 0

    cursor.execute("DELETE FROM order_progress WHERE status = ?", (status,))
    conn.commit()

    cursor.execute("SELECT COUNT(*) FROM order_progress")
    count_remaining = cursor.fetchone()[0]

    print(f"Deleted {count_before} records with status '{status}'")
    print(f"Remaining records in database: {count_remaining}")

    conn.close()
    return count_before


def delete_orders(db_path: Path, order_ids: list[str]) -> int:
    """Delete the rows of specific orders so the next run extracts them again."""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    deleted = 0
    for order_id in order_ids:
        cursor.execute("DELETE FROM order_progress WHERE order_id = ?", (order_id,))
        deleted += cursor.rowcount
    conn.commit()

    print(f"Deleted {deleted} of {len(order_ids)} requested orders")

    conn.close()
    return deleted


def show_stats(db_path: Path) -> dict:
    """Show statistics about the progress database."""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute("SELECT COUNT(*) FROM order_progress")
    total = cursor.fetchone()[0]

    cursor.execute("SELECT status, COUNT(*) FROM order_progress GROUP BY status")
    by_status = dict(cursor.fetchall())

    cursor.execute("SELECT MIN(updated_at), MAX(updated_at) FROM order_progress")
    first, last = cursor.fetchone()

    print(f"State database: {db_path}")
    print(f"Total records: {total}")
    print(f"Records by status: {by_status}")
    if first is not None:
        print(f"Updated: {first} - {last}")
    else:
        print("Updated: (empty)")

    conn.close()
    return by_status


def delete_all(db_path: Path) -> int:
    """Delete all records from the progress database."""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute("SELECT COUNT(*) FROM order_progress")
    count = cursor.fetchone()[0]

    if count == 0:
        print("Database is already empty")
        conn.close()
        return 0

    cursor.execute("DELETE FROM order_progress")
    conn.commit()

    print(f"Deleted all {count} records from state database")

    conn.close()
    return count


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage:")
        print("  python scripts/clean_state.py stats                    # Show statistics")
        print("  python scripts/clean_state.py delete-all               # Delete all records")
        print("  python scripts/clean_state.py status <status>          # Delete records with a status")
        print("  python scripts/clean_state.py orders <id> [<id> ...]   # Delete specific orders")
        sys.exit(1)

    db_path = Config.from_env().state_db
    if not db_path.exists():
        print(f"No state database at {db_path}")
        sys.exit(1)

    command = sys.argv[1]

    if command == "stats":
        show_stats(db_path)
    elif command == "delete-all":
        confirm = input("Are you sure you want to delete ALL records? (yes/no): ")
        if confirm.lower() == "yes":
            delete_all(db_path)
        else:
            print("Cancelled")
    elif command == "status":
        if len(sys.argv) < 3:
            print("Error: Please provide a status (started, ok, failed)")
            sys.exit(1)
        delete_by_status(db_path, sys.argv[2])
    elif command == "orders":
        if len(sys.argv) < 3:
            print("Error: Please provide at least one order id")
            sys.exit(1)
        delete_orders(db_path, sys.argv[2:])
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)
