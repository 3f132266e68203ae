"""Parser for the changelog memo file format."""

from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from pathlib import Path

from digrag.document import Document

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _split_lines(content: str) -> list[str]:
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class ChangelogLoader:
    """Reads '* Title YYYY-MM-DD HH:MM:SS [tag]:' entries into documents."""

    _entry_pattern = re.compile(
        r"^\* (.+?) (\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})\s*(.*)$"
    )
    _tag_pattern = re.compile(r"\[([^\]]+)\]:")

    def load_from_file(self, path: str | os.PathLike) -> list[Document]:
        """Parse the changelog file at ``path``."""
        content = Path(path).read_text(encoding="utf-8")
        return self.load_from_string(content)

    def load_from_string(self, content: str) -> list[Document]:
        """Parse changelog text into documents, in file order."""
        documents: list[Document] = []
        current: tuple[str, str, list[str], list[str]] | None = None

        for line in _split_lines(content):
            match = self._entry_pattern.match(line)
            if match:
                if current is not None:
                    doc = self._create_document(*current)
                    if doc is not None:
                        documents.append(doc)
                title, date_str, tags_str = match.groups()
                tags = self._tag_pattern.findall(tags_str)
                current = (title, date_str, tags, [])
            elif current is not None:
                current[3].append(line)

        if current is not None:
            doc = self._create_document(*current)
            if doc is not None:
                documents.append(doc)

        return documents

    @staticmethod
    def _create_document(
        title: str, date_str: str, tags: list[str], content_lines: list[str]
    ) -> Document | None:
        try:
            date = datetime.strptime(date_str, _DATE_FORMAT).replace(
                tzinfo=timezone.utc
            )
        except ValueError:
            return None
        text = "\n".join(content_lines).strip()
        return Document.with_content_id(title, date, tags, text)