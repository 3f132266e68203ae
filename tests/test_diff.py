from datetime import datetime, timezone

from digrag.diff import IncrementalDiff
from digrag.document import Document

DATE = datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


def create_doc(title, text):
    return Document.with_content_id(title, DATE, [], text)


def modified_copy(original, title, text):
    return Document(original.id, Document.create(title, DATE, [], text).metadata, text)


def test_empty_diff():
    diff = IncrementalDiff.compute([], {})
    assert not diff.has_changes()


def test_all_new():
    diff = IncrementalDiff.compute([create_doc("Title", "Text")], {})
    assert diff.added_count() == 1
    assert diff.has_changes()


def test_new_document_classified_as_added():
    doc = create_doc("New Title", "New content")
    diff = IncrementalDiff.compute([doc], {})
    assert len(diff.added) == 1
    assert diff.added[0].id == doc.id
    assert diff.modified == []
    assert diff.removed == []
    assert diff.unchanged == []


def test_unchanged_document_classified_correctly():
    doc = create_doc("Existing Title", "Existing content")
    diff = IncrementalDiff.compute([doc], {doc.id: doc.content_hash()})
    assert diff.added == []
    assert diff.modified == []
    assert diff.removed == []
    assert diff.unchanged == [doc.id]
    assert not diff.has_changes()


def test_modified_document_classified_correctly():
    original = create_doc("Title", "Original content")
    existing = {original.id: original.content_hash()}
    modified = modified_copy(original, "Title", "Modified content")

    diff = IncrementalDiff.compute([modified], existing)
    assert diff.added == []
    assert len(diff.modified) == 1
    assert diff.modified[0].id == original.id
    assert diff.removed == []
    assert diff.unchanged == []


def test_removed_document_classified_correctly():
    doc = create_doc("Old Title", "Old content")
    diff = IncrementalDiff.compute([], {doc.id: doc.content_hash()})
    assert diff.added == []
    assert diff.modified == []
    assert diff.removed == [doc.id]
    assert diff.unchanged == []


def test_mixed_scenario():
    unchanged_doc = create_doc("Unchanged", "Same content")
    to_modify_doc = create_doc("ToModify", "Original content")
    to_remove_doc = create_doc("ToRemove", "Will be removed")
    existing = {
        unchanged_doc.id: unchanged_doc.content_hash(),
        to_modify_doc.id: to_modify_doc.content_hash(),
        to_remove_doc.id: to_remove_doc.content_hash(),
    }
    new_doc = create_doc("NewDoc", "Brand new content")
    modified_doc = modified_copy(to_modify_doc, "ToModify", "Modified content")

    diff = IncrementalDiff.compute([unchanged_doc, modified_doc, new_doc], existing)

    assert len(diff.added) == 1
    assert len(diff.modified) == 1
    assert len(diff.removed) == 1
    assert len(diff.unchanged) == 1
    assert diff.added[0].id == new_doc.id
    assert diff.modified[0].id == to_modify_doc.id
    assert diff.removed[0] == to_remove_doc.id
    assert diff.unchanged[0] == unchanged_doc.id


def test_empty_existing_index():
    docs = [create_doc("Doc1", "Content 1"), create_doc("Doc2", "Content 2")]
    diff = IncrementalDiff.compute(docs, {})
    assert len(diff.added) == 2
    assert diff.modified == []
    assert diff.removed == []
    assert diff.unchanged == []


def test_empty_new_documents():
    doc1 = create_doc("Doc1", "Content 1")
    doc2 = create_doc("Doc2", "Content 2")
    existing = {doc1.id: doc1.content_hash(), doc2.id: doc2.content_hash()}
    diff = IncrementalDiff.compute([], existing)
    assert diff.added == []
    assert diff.modified == []
    assert sorted(diff.removed) == sorted([doc1.id, doc2.id])
    assert diff.unchanged == []


def test_summary_statistics():
    unchanged = create_doc("Unchanged", "Same")
    to_modify = create_doc("ToModify", "Original")
    to_remove = create_doc("ToRemove", "Gone")
    existing = {
        unchanged.id: unchanged.content_hash(),
        to_modify.id: to_modify.content_hash(),
        to_remove.id: to_remove.content_hash(),
    }
    new_doc = create_doc("New", "Brand new")
    modified = modified_copy(to_modify, "ToModify", "Changed")

    diff = IncrementalDiff.compute([unchanged, modified, new_doc], existing)
    assert diff.added_count() == 1
    assert diff.modified_count() == 1
    assert diff.removed_count() == 1
    assert diff.unchanged_count() == 1
    assert diff.embeddings_needed() == 2


def test_needs_embedding():
    unchanged = create_doc("Unchanged", "Same")
    to_modify = create_doc("ToModify", "Original")
    existing = {
        unchanged.id: unchanged.content_hash(),
        to_modify.id: to_modify.content_hash(),
    }
    new_doc = create_doc("New", "Brand new")
    modified = modified_copy(to_modify, "ToModify", "Changed")

    diff = IncrementalDiff.compute([unchanged, modified, new_doc], existing)
    needs = diff.needs_embedding()
    assert len(needs) == 2
    ids = [d.id for d in needs]
    assert new_doc.id in ids
    assert to_modify.id in ids