#!/usr/bin/env python3
"""
Remove streaks, goals and daily tasks left behind by deleted groups.
Uses STREAKHUB_DATABASE_URL, like the API.
"""

from streakhub.constants import DATABASE_URL
from streakhub.database import SessionLocal
from streakhub.maintenance import delete_orphans


def main():
    print(f"Cleaning up orphaned records in: {DATABASE_URL}")

    db = SessionLocal()
    try:
        deleted = delete_orphans(db)
    finally:
        db.close()

    for table_name, count in deleted.items():
        if count:
            print(f"  - Deleted {count} orphaned {table_name}")
        else:
            print(f"  - No orphaned {table_name} found")

    print("\n✓ Cleanup completed!")


if __name__ == "__main__":
    main()
