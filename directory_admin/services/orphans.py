import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from google.cloud.firestore import Client as FirestoreClient

from directory_admin.services.batch import MAX_BATCH_SIZE, BatchWriter

DEFAULT_REFERENCE_FIELDS = ("parent1_id", "parent2_id")


@dataclass
class DeleteStats:
    deleted: int = 0
    errors: int = 0
    batches: int = 0


def load_records(db: FirestoreClient, collection: str) -> list[dict]:
    """Every document of ``collection`` as a dict with its id under ``"id"``."""
    return [{"id": doc.id, **(doc.to_dict() or {})} for doc in db.collection(collection).stream()]


def referenced_parent_ids(
    students: Iterable[dict],
    reference_fields: Sequence[str] = DEFAULT_REFERENCE_FIELDS,
) -> set[str]:
    referenced = set()
    for student in students:
        for field in reference_fields:
            if student.get(field):
                referenced.add(student[field])
    return referenced


def find_orphaned_parents(
    parents: Iterable[dict],
    students: Iterable[dict],
    reference_fields: Sequence[str] = DEFAULT_REFERENCE_FIELDS,
) -> list[dict]:
    """Parents whose id no student references through ``reference_fields``."""
    referenced = referenced_parent_ids(students, reference_fields)
    return [p for p in parents if p["id"] not in referenced]


def delete_documents(
    db: FirestoreClient,
    collection: str,
    doc_ids: Iterable[str],
    batch_size: int = MAX_BATCH_SIZE,
) -> DeleteStats:
    writer = BatchWriter(db, batch_size)
    collection_ref = db.collection(collection)
    errors = 0
    for doc_id in doc_ids:
        try:
            writer.delete(collection_ref.document(doc_id), path=f"{collection}/{doc_id}")
        except Exception as e:
            logging.error("Error deleting %s/%s: %s", collection, doc_id, e)
            errors += 1
    writer.commit()
    return DeleteStats(
        deleted=writer.committed,
        errors=errors + writer.failed,
        batches=writer.commits,
    )


def display_name(parent: dict) -> str:
    first = parent.get("first_name") or parent.get("firstName")
    last = parent.get("last_name") or parent.get("lastName")
    name = " ".join(p for p in (first, last) if p)
    return name or "Unknown"
