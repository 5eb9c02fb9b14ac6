#!/usr/bin/env python3
"""
Back up every Firestore collection, including all nested subcollections, to one JSON file.
Run from project root. NODE_ENV=production uses credentials/firebase-service-account.json;
anything else reads from the local emulator.

Usage:
    python scripts/backup_firestore.py [--output-dir backups]
"""
import argparse
import logging
import sys
from pathlib import Path

# Add project root to path; pydantic-settings loads .env from cwd
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from directory_admin.cli import configure_logging
from directory_admin.config import settings
from directory_admin.dependencies import connect
from directory_admin.exceptions import DirectoryAdminError
from directory_admin.services.backup_service import count_documents, create_backup, write_backup


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Back up Firestore to a JSON file")
    parser.add_argument("--output-dir", default=settings.backups_dir, help="directory for the backup file")
    return parser


def main(argv=None, connect_fn=connect) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    print(f"Environment: {settings.environment}")

    try:
        handle = connect_fn(settings)
    except DirectoryAdminError as e:
        logging.error("%s", e)
        return 1
    target = handle.project_id if settings.is_production else "local emulator"
    print(f"Connected to {target}")

    try:
        print("\nStarting Firestore backup...\n")
        backup = create_backup(handle.db, handle.environment, handle.project_id)
        out_path = write_backup(backup, args.output_dir)
    except Exception as e:
        logging.error("Backup failed: %s", e)
        return 1
    finally:
        handle.close()

    size_mb = out_path.stat().st_size / (1024 * 1024)
    print("\nBackup completed successfully!")
    print(f"  File: {out_path.name}")
    print(f"  Size: {size_mb:.2f} MB")
    print(f"  Location: {out_path}")
    print(f"  Total documents: {count_documents(backup.collections)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
