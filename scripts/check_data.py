#!/usr/bin/env python3
"""
Print document counts for the main collections and a few sample parents.
Handy after a restore to see that data landed.
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from directory_admin.cli import configure_logging
from directory_admin.config import settings
from directory_admin.dependencies import connect
from directory_admin.exceptions import DirectoryAdminError
from directory_admin.services.orphans import display_name

SAMPLE_SIZE = 5


def main(connect_fn=connect) -> int:
    configure_logging()
    try:
        handle = connect_fn(settings)
    except DirectoryAdminError as e:
        logging.error("%s", e)
        return 1

    try:
        print("Checking Firestore data...\n")
        for collection in sorted(c.id for c in handle.db.collections()):
            count = sum(1 for _ in handle.db.collection(collection).stream())
            print(f"  {collection}: {count} documents")

        print(f"\nFirst {SAMPLE_SIZE} parents:")
        parents = handle.db.collection(settings.parents_collection).limit(SAMPLE_SIZE).stream()
        for doc in parents:
            print(f"  - {doc.id}: {display_name(doc.to_dict() or {})}")
    except Exception as e:
        logging.error("Data check failed: %s", e)
        return 1
    finally:
        handle.close()

    print("\nData check complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
