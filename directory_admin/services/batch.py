import logging

from google.cloud.firestore import Client as FirestoreClient

# Firestore rejects a write batch with more than 500 operations.
MAX_BATCH_SIZE = 500


class BatchWriter:
    """Queue set/delete operations and commit them in chunks of ``batch_size``.

    Commits are synchronous and sequential. A failed commit is logged together
    with the paths it contained and counted in ``failed``; it is not retried.
    """

    def __init__(self, db: FirestoreClient, batch_size: int = MAX_BATCH_SIZE):
        if not 0 < batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {batch_size}")
        self._db = db
        self.batch_size = batch_size
        self._batch = None
        self._paths: list[str] = []
        self.commits = 0
        self.committed = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        return len(self._paths)

    def _current(self):
        if self._batch is None:
            self._batch = self._db.batch()
        return self._batch

    def set(self, doc_ref, data: dict, path: str = "") -> None:
        self._current().set(doc_ref, data)
        self._queued(path or doc_ref.id)

    def delete(self, doc_ref, path: str = "") -> None:
        self._current().delete(doc_ref)
        self._queued(path or doc_ref.id)

    def _queued(self, path: str) -> None:
        self._paths.append(path)
        if len(self._paths) >= self.batch_size:
            self.commit()

    def commit(self) -> int:
        """Commit whatever is queued. Returns the number of operations committed."""
        if not self._paths:
            return 0
        batch, paths = self._batch, self._paths
        self._batch, self._paths = None, []
        try:
            batch.commit()
        except Exception as e:
            self.failed += len(paths)
            logging.error("Batch commit of %d operations failed: %s", len(paths), e)
            for path in paths:
                logging.error("  not written: %s", path)
            return 0
        self.commits += 1
        self.committed += len(paths)
        logging.info("Committed batch of %d operations", len(paths))
        return len(paths)
