import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from google.cloud.firestore import Client as FirestoreClient
from pydantic import ValidationError

from directory_admin.exceptions import BackupFileError
from directory_admin.models.backup import BackupFile, DocumentNode
from directory_admin.services.backup_service import MAX_DEPTH
from directory_admin.services.batch import MAX_BATCH_SIZE, BatchWriter
from directory_admin.services.serialization import deserialize_document


@dataclass
class RestoreStats:
    restored: int = 0
    failed: int = 0


@dataclass
class BackupInfo:
    name: str
    path: Path
    size_mb: float
    modified: datetime


def load_backup(path: str | Path) -> BackupFile:
    path = Path(path)
    if not path.is_file():
        raise BackupFileError(f"Backup file not found: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BackupFileError(f"Could not read backup {path.name}: {e}") from e
    try:
        return BackupFile.model_validate(raw)
    except ValidationError as e:
        raise BackupFileError(f"{path.name} is not a Firestore backup: {e}") from e


def resolve_backup_path(arg: str, backups_dir: str | Path) -> Path:
    """Accept an absolute path, ``backups/<file>``, or a bare file name."""
    backups_dir = Path(backups_dir)
    candidate = Path(arg)
    if candidate.is_absolute():
        return candidate
    if candidate.parts and candidate.parts[0] == backups_dir.name:
        return backups_dir.parent / candidate
    return backups_dir / candidate


def list_backups(backups_dir: str | Path) -> list[BackupInfo]:
    backups_dir = Path(backups_dir)
    if not backups_dir.is_dir():
        return []
    backups = []
    for path in backups_dir.glob("*.json"):
        stat = path.stat()
        backups.append(BackupInfo(
            name=path.name,
            path=path,
            size_mb=round(stat.st_size / (1024 * 1024), 2),
            modified=datetime.fromtimestamp(stat.st_mtime),
        ))
    backups.sort(key=lambda b: b.modified, reverse=True)
    return backups


def restore_collection(
    collection_data: dict[str, DocumentNode],
    collection_ref,
    collection_path: str,
    *,
    dry_run: bool = False,
    writer: BatchWriter | None = None,
    db: FirestoreClient | None = None,
    max_depth: int = MAX_DEPTH,
) -> RestoreStats:
    """Write every document of ``collection_data`` (and its subcollections) under ``collection_ref``.

    Each document is overwritten at its stored id. If a write fails the error is
    logged, that document's subcollections are skipped and its siblings are
    still restored. With ``dry_run`` nothing is written but the log output is
    the same.

    With a ``writer`` the sets are only queued; documents whose batch later
    fails to commit are reported by the writer, not here. Reference fields are
    rebuilt against ``db``.
    """
    stats = RestoreStats()
    stack = [(collection_data, collection_ref, collection_path, 0)]

    while stack:
        docs, ref, path, depth = stack.pop()
        if depth > max_depth:
            logging.error("Skipping %s: deeper than %d levels", path, max_depth)
            continue

        children = []
        for doc_id, node in docs.items():
            doc_path = f"{path}/{doc_id}"
            try:
                doc_ref = ref.document(doc_id)
                data = deserialize_document(node.data, db)
                if not dry_run:
                    if writer is not None:
                        writer.set(doc_ref, data, path=doc_path)
                    else:
                        doc_ref.set(data)
            except Exception as e:
                logging.error("  Error restoring %s: %s", doc_path, e)
                stats.failed += 1
                continue

            stats.restored += 1
            logging.info("  restored %s", doc_path)

            for sub_id, sub_docs in node.subcollections.items():
                children.append((sub_docs, doc_ref.collection(sub_id), f"{doc_path}/{sub_id}", depth + 1))

        stack.extend(reversed(children))

    return stats


def restore_backup(
    db: FirestoreClient,
    backup: BackupFile,
    *,
    dry_run: bool = False,
    collections: list[str] | None = None,
    use_batches: bool = False,
    batch_size: int = MAX_BATCH_SIZE,
) -> RestoreStats:
    """Restore every collection of ``backup``, or only those named in ``collections``."""
    stats = RestoreStats()
    writer = BatchWriter(db, batch_size) if use_batches and not dry_run else None

    if collections:
        for name in collections:
            if name not in backup.collections:
                logging.warning("Collection %s is not in this backup", name)

    for collection_id, collection_data in backup.collections.items():
        if collections and collection_id not in collections:
            continue
        logging.info("Restoring collection: %s", collection_id)
        result = restore_collection(
            collection_data,
            db.collection(collection_id),
            collection_id,
            dry_run=dry_run,
            writer=writer,
            db=db,
        )
        stats.restored += result.restored
        stats.failed += result.failed

    if writer is not None:
        writer.commit()
        stats.restored -= writer.failed
        stats.failed += writer.failed

    return stats
