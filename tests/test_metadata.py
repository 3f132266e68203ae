import json
from datetime import datetime, timedelta, timezone

import pytest

from digrag.metadata import CURRENT_SCHEMA_VERSION, IndexMetadata


def test_new_metadata():
    metadata = IndexMetadata.create(10, "model")
    assert metadata.doc_count == 10
    assert metadata.schema_version == CURRENT_SCHEMA_VERSION
    assert metadata.doc_hashes == {}
    assert metadata.embedding_model == "model"


def test_created_at_is_utc_timestamp_of_creation():
    before = datetime.now(timezone.utc).replace(microsecond=0)
    metadata = IndexMetadata.create(0, None)
    after = datetime.now(timezone.utc) + timedelta(seconds=1)

    parsed = datetime.fromisoformat(metadata.created_at)
    assert parsed.utcoffset() == timedelta(0)
    assert before <= parsed <= after


def test_needs_full_rebuild():
    old = IndexMetadata(doc_count=0, created_at="", schema_version="1.0")
    assert old.needs_full_rebuild()

    current = IndexMetadata.create(0, None)
    assert not current.needs_full_rebuild()


@pytest.mark.parametrize(
    "version, expected",
    [("", True), ("abc", True), ("1.9", True), ("2.0", False), ("2.5", False), (" 2.0", True)],
)
def test_needs_full_rebuild_versions(version, expected):
    metadata = IndexMetadata(doc_count=0, created_at="", schema_version=version)
    assert metadata.needs_full_rebuild() is expected


def test_doc_hash_operations():
    metadata = IndexMetadata.create(1, None)
    metadata.update_doc_hash("doc1", "abc")
    assert metadata.get_doc_hash("doc1") == "abc"
    metadata.update_doc_hash("doc1", "def")
    assert metadata.get_doc_hash("doc1") == "def"
    metadata.remove_doc_hash("doc1")
    assert metadata.get_doc_hash("doc1") is None
    metadata.remove_doc_hash("missing")
    assert metadata.doc_hashes == {}


def test_save_and_load_round_trip(tmp_path):
    metadata = IndexMetadata.create(2, "openai/text-embedding-3-small")
    metadata.update_doc_hash("a", "1111")
    metadata.update_doc_hash("b", "2222")
    path = tmp_path / "metadata.json"
    metadata.save(path)

    loaded = IndexMetadata.load(path)
    assert loaded == metadata
    content = path.read_text(encoding="utf-8")
    assert '"doc_count": 2' in content


def test_missing_optional_fields_default():
    loaded = IndexMetadata.from_dict({"doc_count": 3, "created_at": "x"})
    assert loaded.schema_version == ""
    assert loaded.doc_hashes == {}
    assert loaded.embedding_model is None
    assert loaded.needs_full_rebuild()


def test_missing_required_field_raises():
    with pytest.raises(ValueError):
        IndexMetadata.from_dict({"created_at": "x"})


def test_load_invalid_json_raises(tmp_path):
    path = tmp_path / "metadata.json"
    path.write_text("not json", encoding="utf-8")
    with pytest.raises(ValueError):
        IndexMetadata.load(path)


def test_to_dict_is_json_serialisable():
    metadata = IndexMetadata(doc_count=1, created_at="t", schema_version="2.0")
    data = json.loads(json.dumps(metadata.to_dict()))
    assert data == {
        "doc_count": 1,
        "created_at": "t",
        "embedding_model": None,
        "schema_version": "2.0",
        "doc_hashes": {},
    }