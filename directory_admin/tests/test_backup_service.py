import json
import logging
from datetime import datetime, timezone

from google.cloud.firestore import DocumentReference

from directory_admin.models.backup import DocumentNode
from directory_admin.services.backup_service import (
    backup_collection,
    backup_filename,
    count_documents,
    create_backup,
    write_backup,
)

CREATED = datetime(2024, 9, 3, 14, 5, 30, 123000, tzinfo=timezone.utc)


def _seed(db):
    db.collection("parents").document("p1").set({"first_name": "Marie", "created_at": CREATED})
    db.collection("parents").document("p2").set({"first_name": "Luc"})
    db.collection("students").document("s1").set({"parent1_id": "p1"})
    conversations = db.collection("conversations").document("c1")
    conversations.set({"subject": "Sortie"})
    conversations.collection("messages").document("m1").set({"body": "Bonjour", "sent_at": CREATED})
    (
        conversations.collection("messages").document("m1")
        .collection("reactions").document("r1").set({"emoji": "+1"})
    )


def test_backup_collection_flat(fake_db):
    _seed(fake_db)
    result = backup_collection(fake_db.collection("parents"))
    assert set(result) == {"p1", "p2"}
    assert result["p1"].data == {
        "first_name": "Marie",
        "created_at": {"_type": "timestamp", "_value": "2024-09-03T14:05:30.123Z"},
    }
    assert result["p1"].subcollections == {}


def test_backup_collection_nested_three_levels(fake_db):
    _seed(fake_db)
    result = backup_collection(fake_db.collection("conversations"))
    messages = result["c1"].subcollections["messages"]
    assert messages["m1"].data["body"] == "Bonjour"
    reactions = messages["m1"].subcollections["reactions"]
    assert reactions["r1"].data == {"emoji": "+1"}
    assert reactions["r1"].subcollections == {}


def test_backup_logs_paths(fake_db, caplog):
    _seed(fake_db)
    with caplog.at_level(logging.INFO):
        backup_collection(fake_db.collection("conversations"))
    assert "  conversations: 1 documents" in caplog.messages
    assert "    conversations/c1 has 1 subcollection(s)" in caplog.messages
    assert "  conversations/c1/messages/m1/reactions: 1 documents" in caplog.messages


def test_read_failure_yields_empty_branch(fake_db, caplog):
    _seed(fake_db)
    fake_db.failing_reads.add("conversations/c1/messages")
    with caplog.at_level(logging.ERROR):
        result = backup_collection(fake_db.collection("conversations"))
    assert result["c1"].data == {"subject": "Sortie"}
    assert result["c1"].subcollections == {"messages": {}}
    assert any("conversations/c1/messages" in m for m in caplog.messages)


def test_read_failure_at_root_returns_empty(fake_db):
    _seed(fake_db)
    fake_db.failing_reads.add("parents")
    assert backup_collection(fake_db.collection("parents")) == {}


def test_depth_guard_stops_walk(fake_db, caplog):
    _seed(fake_db)
    with caplog.at_level(logging.ERROR):
        result = backup_collection(fake_db.collection("conversations"), max_depth=1)
    messages = result["c1"].subcollections["messages"]
    assert messages["m1"].subcollections == {"reactions": {}}
    assert any("deeper than 1 levels" in m for m in caplog.messages)


def test_create_backup_includes_every_root_collection(fake_db):
    _seed(fake_db)
    backup = create_backup(fake_db, "development", "bottin2-3b41d")
    assert set(backup.collections) == {"parents", "students", "conversations"}
    assert backup.metadata.environment == "development"
    assert backup.metadata.project_id == "bottin2-3b41d"
    assert backup.metadata.timestamp.endswith("Z")


def test_count_documents_counts_all_depths(fake_db):
    _seed(fake_db)
    backup = create_backup(fake_db, "development", "bottin2-3b41d")
    assert count_documents(backup.collections) == 6


def test_count_documents_empty():
    assert count_documents({}) == 0
    assert count_documents({"a": {"x": DocumentNode()}}) == 1


def test_backup_filename():
    assert backup_filename(CREATED, "production") == "2024-09-03T14-05-30-production-backup.json"


def test_write_backup_file_layout(fake_db, tmp_path):
    _seed(fake_db)
    backup = create_backup(fake_db, "development", "bottin2-3b41d")
    path = write_backup(backup, tmp_path / "backups", now=CREATED)

    assert path.name == "2024-09-03T14-05-30-development-backup.json"
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert set(raw) == {"_metadata", "_collections"}
    assert raw["_metadata"]["projectId"] == "bottin2-3b41d"
    c1 = raw["_collections"]["conversations"]["c1"]
    assert c1["_data"] == {"subject": "Sortie"}
    m1 = c1["_subcollections"]["messages"]["m1"]
    assert m1["_data"]["sent_at"] == {"_type": "timestamp", "_value": "2024-09-03T14:05:30.123Z"}
    assert m1["_subcollections"]["reactions"]["r1"]["_data"] == {"emoji": "+1"}


def test_write_backup_with_blobs_and_references(fake_db, tmp_path):
    fake_db.collection("parents").document("A").set({"photo": b"\xff\xd8", "thumb": b"\x89PNG"})
    fake_db.collection("students").document("s1").set({"parent": DocumentReference("parents", "A")})

    path = write_backup(create_backup(fake_db, "development", "bottin2-3b41d"), tmp_path, now=CREATED)

    raw = json.loads(path.read_text(encoding="utf-8"))["_collections"]
    assert raw["parents"]["A"]["_data"] == {
        "photo": {"_type": "bytes", "_value": "/9g="},
        "thumb": {"_type": "bytes", "_value": "iVBORw=="},
    }
    assert raw["students"]["s1"]["_data"]["parent"] == {"_type": "reference", "_value": "parents/A"}
