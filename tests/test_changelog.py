import pytest

from digrag.changelog import ChangelogLoader
from digrag.document import Document


@pytest.fixture
def loader():
    return ChangelogLoader()


def test_parse_single_entry(loader):
    content = "* Test Entry 2025-01-15 10:00:00 [memo]:[worklog]:\n・Content line"
    docs = loader.load_from_string(content)
    assert len(docs) == 1
    doc = docs[0]
    assert doc.title == "Test Entry"
    assert doc.tags == ["memo", "worklog"]
    assert doc.text == "・Content line"


def test_parse_multiple_entries(loader):
    content = (
        "* First Entry 2025-01-15 10:00:00 [memo]:\n"
        "First content\n"
        "* Second Entry 2025-01-14 09:00:00 [worklog]:\n"
        "Second content"
    )
    docs = loader.load_from_string(content)
    assert len(docs) == 2
    assert docs[0].title == "First Entry"
    assert docs[0].tags == ["memo"]
    assert docs[1].title == "Second Entry"
    assert docs[1].tags == ["worklog"]


def test_parse_multiline_content(loader):
    content = (
        "* Entry 2025-01-15 10:00:00 [memo]:\n"
        "・First line\n"
        "\t・Second line (indented)\n"
        "\t\t・Third line (double indented)"
    )
    docs = loader.load_from_string(content)
    assert len(docs) == 1
    assert "First line" in docs[0].text
    assert "Second line" in docs[0].text
    assert "Third line" in docs[0].text


def test_parse_no_tags(loader):
    docs = loader.load_from_string("* Entry Without Tags 2025-01-15 10:00:00 \nContent")
    assert len(docs) == 1
    assert docs[0].tags == []


def test_parse_empty_content(loader):
    assert loader.load_from_string("") == []


def test_date_parsing(loader):
    docs = loader.load_from_string("* Entry 2025-01-15 14:30:45 [memo]:\nContent")
    assert len(docs) == 1
    assert docs[0].date.strftime("%Y-%m-%d %H:%M:%S") == "2025-01-15 14:30:45"


def test_changelog_parsing_produces_valid_documents(loader):
    sample = (
        "* Test Entry 2025-01-15 10:00:00 [memo]:[tips]:\n"
        "  Content line 1\n"
        "  Content line 2\n"
        "\n"
        "* Another Entry 2025-01-14 09:30:00 [worklog]:\n"
        "  Work content here\n"
    )
    docs = loader.load_from_string(sample)
    assert len(docs) == 2
    assert docs[0].title == "Test Entry"
    assert docs[0].has_tag("memo")
    assert docs[0].has_tag("tips")
    assert "Content line 1" in docs[0].text
    assert docs[1].title == "Another Entry"
    assert docs[1].has_tag("worklog")
    assert "Work content here" in docs[1].text


def test_edge_cases_multiple_tags(loader):
    sample = (
        "* Multi Tag Entry 2025-01-15 10:00:00 [memo]:[tips]:[worklog]:[idea]:\n"
        "  Content with multiple tags\n"
    )
    docs = loader.load_from_string(sample)
    assert len(docs) == 1
    for tag in ("memo", "tips", "worklog", "idea"):
        assert docs[0].has_tag(tag)


def test_edge_cases_special_characters(loader):
    sample = (
        '* Entry with "quotes" & <brackets> 2025-01-15 10:00:00 [memo]:\n'
        "  Content with special chars: &amp; < > \" '\n"
    )
    docs = loader.load_from_string(sample)
    assert len(docs) == 1
    assert "quotes" in docs[0].title


def test_text_is_trimmed(loader):
    docs = loader.load_from_string(
        "* Entry 2025-01-15 10:00:00 [memo]:\n\n  body  \n\n"
    )
    assert docs[0].text == "body"


def test_ids_are_content_hashes(loader):
    docs = loader.load_from_string("* Entry 2025-01-15 10:00:00 [memo]:\nbody")
    assert docs[0].id == Document.compute_content_hash("Entry", "body")


def test_lines_before_first_entry_are_ignored(loader):
    docs = loader.load_from_string(
        "preamble\n* Entry 2025-01-15 10:00:00 [memo]:\nbody"
    )
    assert len(docs) == 1
    assert docs[0].text == "body"


def test_invalid_date_drops_entry(loader):
    content = (
        "* Bad 2025-13-45 10:00:00 [memo]:\nlost\n"
        "* Good 2025-01-15 10:00:00 [memo]:\nkept"
    )
    docs = loader.load_from_string(content)
    assert [d.title for d in docs] == ["Good"]
    assert docs[0].text == "kept"


def test_crlf_line_endings(loader):
    docs = loader.load_from_string("* Entry 2025-01-15 10:00:00 [memo]:\r\nbody\r\n")
    assert docs[0].tags == ["memo"]
    assert docs[0].text == "body"


def test_load_from_file(loader, tmp_path):
    path = tmp_path / "changelog"
    path.write_text("* Entry 2025-01-15 10:00:00 [memo]:\nbody\n", encoding="utf-8")
    docs = loader.load_from_file(path)
    assert len(docs) == 1
    assert docs[0].title == "Entry"


def test_load_missing_file_raises(loader, tmp_path):
    with pytest.raises(FileNotFoundError):
        loader.load_from_file(tmp_path / "missing")