#!/usr/bin/env python3
"""
Delete parent records that no student references.

A parent is orphaned when its id is in neither parent1_id nor parent2_id of any
student. Deletes go through batches of at most 500 operations. Without
--dry-run you are asked to type DELETE before anything is removed.

Usage:
    NODE_ENV=development python scripts/delete_orphaned_parents.py [--dry-run]
    NODE_ENV=production  python scripts/delete_orphaned_parents.py [--dry-run]
"""
import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from directory_admin.cli import configure_logging, confirm
from directory_admin.config import settings
from directory_admin.dependencies import connect
from directory_admin.exceptions import DirectoryAdminError
from directory_admin.services.orphans import (
    delete_documents,
    display_name,
    find_orphaned_parents,
    load_records,
    referenced_parent_ids,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Delete parents not referenced by any student")
    parser.add_argument("--dry-run", action="store_true", help="list orphaned parents without deleting")
    return parser


def main(argv=None, connect_fn=connect, input_fn=input) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    environment = "Production" if settings.is_production else "Development (Emulator)"
    print(f"Environment: {environment}")
    print(f"Mode: {'DRY RUN' if args.dry_run else 'LIVE'}")

    try:
        handle = connect_fn(settings)
    except DirectoryAdminError as e:
        logging.error("Failed to initialize Firebase: %s", e)
        return 1

    try:
        print("\nFetching all parents and students...")
        parents = load_records(handle.db, settings.parents_collection)
        students = load_records(handle.db, settings.students_collection)
        fields = settings.parent_reference_fields
        orphans = find_orphaned_parents(parents, students, fields)

        print(f"\nTotal parents in database: {len(parents)}")
        print(f"  Parents referenced by students: {len(referenced_parent_ids(students, fields))}")
        print(f"  Orphaned parents (no students): {len(orphans)}")
        if orphans:
            print("\nOrphaned parents:")
            for parent in orphans:
                print(f"  {display_name(parent)} ({parent.get('email') or 'no email'})")

        if args.dry_run:
            print("\nDRY RUN COMPLETE - No changes were made")
            return 0
        if not orphans:
            print("\nNo orphaned parents to delete!")
            return 0

        confirm(
            "DELETE",
            f"About to delete {len(orphans)} parents from {environment}. This cannot be undone!",
            input_fn=input_fn,
        )
        stats = delete_documents(
            handle.db,
            settings.parents_collection,
            [p["id"] for p in orphans],
            batch_size=settings.batch_size,
        )
    except DirectoryAdminError as e:
        logging.error("%s", e)
        return 1
    finally:
        handle.close()

    print("\nDeletion completed!")
    print(f"  Parents deleted: {stats.deleted} in {stats.batches} batch(es)")
    if stats.errors:
        print(f"  Errors: {stats.errors}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
