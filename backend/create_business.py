#!/usr/bin/env python3
"""
Provision a business from the command line.
Run inside the container: docker-compose exec backend python create_business.py cafe "Cafe Central" s3cret
"""
import argparse
import sys
import os

# Add the backend directory to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from vqueue.core.database import SessionLocal, init_db
from vqueue.core.errors import QueueError
from vqueue.services.business_service import create_business


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a business with its own queue")
    parser.add_argument("slug")
    parser.add_argument("name")
    parser.add_argument("password")
    args = parser.parse_args(argv)

    init_db()
    db = SessionLocal()
    try:
        business = create_business(db, slug=args.slug, name=args.name, password=args.password)
    except QueueError as e:
        print(f"✗ {e.message}")
        return 1
    finally:
        db.close()

    print(f"✓ Business '{business.name}' created with ID {business.id}")
    print(f"  Queue page:  /queue/{business.slug}")
    print(f"  Admin page:  /admin/{business.slug}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
