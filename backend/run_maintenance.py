#!/usr/bin/env python3
"""
Maintenance tasks against the configured database.

  python run_maintenance.py repair     # recompute active counts, close stale tickets
  python run_maintenance.py rehash     # hash passwords still stored in plain text
  python run_maintenance.py all
"""
import argparse
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from vqueue.core.database import SessionLocal
from vqueue.services.business_service import rehash_passwords
from vqueue.services.ticket_service import repair_counts


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Queue maintenance tasks")
    parser.add_argument("task", choices=["repair", "rehash", "all"])
    args = parser.parse_args(argv)

    with SessionLocal() as db:
        if args.task in ("repair", "all"):
            summary = repair_counts(db)
            for slug, result in summary.items():
                print(f"{slug}: closed {result['served']} stale tickets, active_count={result['active_count']}")
        if args.task in ("rehash", "all"):
            print(f"Rehashed {rehash_passwords(db)} legacy passwords")
    return 0


if __name__ == '__main__':
    sys.exit(main())
