import logging
from datetime import datetime, timezone
from pathlib import Path

from google.cloud.firestore import Client as FirestoreClient

from directory_admin.models.backup import BackupFile, BackupMetadata, DocumentNode
from directory_admin.services.serialization import format_timestamp, serialize_document

# Firestore allows at most 100 levels of nested subcollections.
MAX_DEPTH = 100


def _now() -> datetime:
    return datetime.now(timezone.utc)


def backup_collection(
    collection_ref,
    collection_path: str = "",
    max_depth: int = MAX_DEPTH,
) -> dict[str, DocumentNode]:
    """Read a collection and every subcollection beneath it into DocumentNodes.

    Walks depth-first with an explicit stack. A collection that cannot be read
    is logged and left empty; the rest of the walk continues.
    """
    root: dict[str, DocumentNode] = {}
    stack = [(collection_ref, collection_path or collection_ref.id, root, 0)]

    while stack:
        ref, path, target, depth = stack.pop()
        if depth > max_depth:
            logging.error("Skipping %s: deeper than %d levels", path, max_depth)
            continue

        try:
            docs = list(ref.stream())
        except Exception as e:
            logging.error("Error backing up %s: %s", path, e)
            continue

        logging.info("  %s: %d documents", path, len(docs))

        children = []
        for doc in docs:
            doc_path = f"{path}/{doc.id}"
            node = DocumentNode(data=serialize_document(doc.to_dict()))
            target[doc.id] = node

            try:
                subcollections = list(doc.reference.collections())
            except Exception as e:
                logging.error("Error listing subcollections of %s: %s", doc_path, e)
                continue

            if subcollections:
                logging.info("    %s has %d subcollection(s)", doc_path, len(subcollections))
            for sub in subcollections:
                sub_docs: dict[str, DocumentNode] = {}
                node.subcollections[sub.id] = sub_docs
                children.append((sub, f"{doc_path}/{sub.id}", sub_docs, depth + 1))

        # Reversed so the first child is popped first.
        stack.extend(reversed(children))

    return root


def create_backup(db: FirestoreClient, environment: str, project_id: str | None) -> BackupFile:
    """Back up every root collection of ``db``."""
    backup = BackupFile(
        metadata=BackupMetadata(
            timestamp=format_timestamp(_now()),
            environment=environment,
            project_id=project_id,
        ),
    )

    collections = list(db.collections())
    logging.info("Found %d root collection(s)", len(collections))

    for collection in collections:
        logging.info("Backing up collection: %s", collection.id)
        backup.collections[collection.id] = backup_collection(collection)

    return backup


def backup_filename(timestamp: datetime, environment: str) -> str:
    stamp = timestamp.astimezone(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
    return f"{stamp}-{environment}-backup.json"


def write_backup(backup: BackupFile, backups_dir: str | Path, now: datetime | None = None) -> Path:
    out_dir = Path(backups_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / backup_filename(now or _now(), backup.metadata.environment)
    out_path.write_text(backup.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    return out_path


def count_documents(collections: dict[str, dict[str, DocumentNode]]) -> int:
    total = 0
    stack = list(collections.values())
    while stack:
        docs = stack.pop()
        total += len(docs)
        for node in docs.values():
            stack.extend(node.subcollections.values())
    return total
