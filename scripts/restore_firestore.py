#!/usr/bin/env python3
"""
Restore Firestore from a backup written by backup_firestore.py.
Documents are overwritten at their stored ids; nothing is deleted.
Restoring to production asks you to type RESTORE first (unless --dry-run).

Usage:
    python scripts/restore_firestore.py backups/<file>.json [--dry-run] [--collections a,b] [--batch]
    python scripts/restore_firestore.py            # lists available backups
"""
import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from directory_admin.cli import configure_logging, confirm, parse_collections
from directory_admin.config import settings
from directory_admin.dependencies import connect
from directory_admin.exceptions import DirectoryAdminError
from directory_admin.services.restore_service import (
    list_backups,
    load_backup,
    resolve_backup_path,
    restore_backup,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Restore Firestore from a JSON backup")
    parser.add_argument("backup_file", nargs="?", help="backup file (absolute, backups/<file> or <file>)")
    parser.add_argument("--dry-run", action="store_true", help="log what would be restored without writing")
    parser.add_argument("--collections", help="comma-separated root collections to restore")
    parser.add_argument("--batch", action="store_true", help="write through batches of up to 500 documents")
    return parser


def _print_available_backups() -> None:
    backups = list_backups(settings.backups_dir)
    if not backups:
        print(f"No backup files found in {settings.backups_dir}")
        return
    print("\nAvailable backups:\n")
    for i, b in enumerate(backups, 1):
        print(f"{i}. {b.name} ({b.size_mb:.2f} MB, {b.modified:%Y-%m-%d %H:%M:%S})")


def main(argv=None, connect_fn=connect, input_fn=input) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    print(f"Environment: {settings.environment}")
    if args.dry_run:
        print("DRY RUN MODE - No data will be written\n")

    if not args.backup_file:
        _print_available_backups()
        print("\nUsage: python scripts/restore_firestore.py backups/<backup-file.json>")
        return 1

    try:
        backup_path = resolve_backup_path(args.backup_file, settings.backups_dir)
        print(f"\nLoading backup: {backup_path.name}")
        backup = load_backup(backup_path)

        print("\nBackup information:")
        print(f"  Created: {backup.metadata.timestamp}")
        print(f"  Environment: {backup.metadata.environment}")
        print(f"  Project: {backup.metadata.project_id}")
        print(f"  Collections: {len(backup.collections)}")

        if settings.is_production and not args.dry_run:
            confirm(
                "RESTORE",
                "WARNING: You are about to restore data to PRODUCTION!\n"
                "This will OVERWRITE existing documents with the same IDs!",
                input_fn=input_fn,
            )

        handle = connect_fn(settings)
    except DirectoryAdminError as e:
        logging.error("Restore failed: %s", e)
        return 1

    try:
        print("\nStarting Firestore restore...\n")
        stats = restore_backup(
            handle.db,
            backup,
            dry_run=args.dry_run,
            collections=parse_collections(args.collections),
            use_batches=args.batch,
            batch_size=settings.batch_size,
        )
    finally:
        handle.close()

    if args.dry_run:
        print("\nDry run completed!")
        print(f"  Would restore {stats.restored} documents")
        print("Run without --dry-run to actually restore data")
    else:
        print("\nRestore completed!")
        print(f"  Restored {stats.restored} documents")
    if stats.failed:
        print(f"  Failed: {stats.failed} documents (see errors above)")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
