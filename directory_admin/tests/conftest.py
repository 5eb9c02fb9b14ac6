"""Test fixtures with an in-memory fake Firestore."""
import pytest

from directory_admin.config import Settings


# --- Fake Firestore in-memory store ---

class FakeFirestoreError(Exception):
    pass


class FakeDocRef:
    def __init__(self, client, collection_path, doc_id):
        self._client = client
        self._collection_path = collection_path
        self.id = doc_id

    @property
    def path(self):
        return f"{self._collection_path}/{self.id}"

    def _key(self):
        return (self._collection_path, self.id)

    def set(self, data):
        if self.path in self._client.failing_writes:
            raise FakeFirestoreError(f"permission denied: {self.path}")
        self._client.writes.append(self.path)
        self._client._store[self._key()] = dict(data)

    def delete(self):
        self._client._store.pop(self._key(), None)

    def collection(self, name):
        return FakeCollectionRef(self._client, f"{self.path}/{name}")

    def collections(self):
        prefix = f"{self.path}/"
        names = []
        for coll, _ in self._client._store:
            if coll.startswith(prefix):
                name = coll[len(prefix):].split("/")[0]
                if name not in names:
                    names.append(name)
        return [self.collection(name) for name in names]


class FakeDocSnapshot:
    def __init__(self, client, collection_path, doc_id, data):
        self.id = doc_id
        self._data = data
        self.exists = data is not None
        self.reference = FakeDocRef(client, collection_path, doc_id)

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeQuery:
    def __init__(self, client, collection_path, docs=None):
        self._client = client
        self._collection_path = collection_path
        self._docs = docs

    def _get_docs(self):
        if self._docs is not None:
            return self._docs
        if self._collection_path in self._client.failing_reads:
            raise FakeFirestoreError(f"unavailable: {self._collection_path}")
        return [
            FakeDocSnapshot(self._client, coll, doc_id, data)
            for (coll, doc_id), data in self._client._store.items()
            if coll == self._collection_path
        ]

    def limit(self, n):
        return FakeQuery(self._client, self._collection_path, self._get_docs()[:n])

    def stream(self):
        return iter(self._get_docs())


class FakeCollectionRef(FakeQuery):
    def __init__(self, client, collection_path):
        super().__init__(client, collection_path)
        self.id = collection_path.split("/")[-1]

    def document(self, doc_id):
        return FakeDocRef(self._client, self._collection_path, doc_id)


class FakeWriteBatch:
    def __init__(self, client):
        self._client = client
        self._ops = []

    def set(self, doc_ref, data):
        self._ops.append(("set", doc_ref, data))

    def delete(self, doc_ref):
        self._ops.append(("delete", doc_ref, None))

    def commit(self):
        if self._client.fail_commits:
            self._client.fail_commits -= 1
            raise FakeFirestoreError("batch commit rejected")
        for op, doc_ref, data in self._ops:
            if op == "set":
                doc_ref.set(data)
            else:
                doc_ref.delete()
        self._client.commits.append(len(self._ops))


class FakeFirestoreClient:
    def __init__(self):
        self._store = {}
        self.writes = []
        self.commits = []
        self.failing_writes = set()
        self.failing_reads = set()
        self.fail_commits = 0

    def collection(self, name):
        return FakeCollectionRef(self, name)

    def document(self, path):
        collection_path, _, doc_id = path.rpartition("/")
        if not collection_path or collection_path.count("/") % 2:
            raise ValueError(f"not a document path: {path}")
        return FakeDocRef(self, collection_path, doc_id)

    def collections(self):
        names = []
        for coll, _ in self._store:
            name = coll.split("/")[0]
            if name not in names:
                names.append(name)
        return [self.collection(name) for name in names]

    def batch(self):
        return FakeWriteBatch(self)

    def snapshot(self):
        """Copy of every stored document keyed by full path."""
        return {f"{coll}/{doc_id}": dict(data) for (coll, doc_id), data in self._store.items()}


class FakeHandle:
    def __init__(self, db, environment="development", project_id="bottin2-3b41d"):
        self.db = db
        self.environment = environment
        self.project_id = project_id
        self.closed = False

    def close(self):
        self.closed = True


# --- Fixtures ---

@pytest.fixture()
def fake_db():
    return FakeFirestoreClient()


@pytest.fixture()
def make_db():
    """Factory for extra, independent fake databases."""
    return FakeFirestoreClient


@pytest.fixture()
def make_handle():
    return FakeHandle


@pytest.fixture()
def fake_handle(fake_db):
    return FakeHandle(fake_db)


@pytest.fixture()
def test_settings(tmp_path):
    return Settings(
        environment="development",
        backups_dir=str(tmp_path / "backups"),
        firebase_credentials_path=str(tmp_path / "credentials" / "firebase-service-account.json"),
    )
