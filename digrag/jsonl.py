"""Loading documents from JSON Lines input."""

from __future__ import annotations

import io
import json
from typing import IO, Union

from digrag.document import Document


class JsonlError(ValueError):
    """Raised when a JSON Lines document stream cannot be read."""


def load_from_stream(stream: IO[Union[str, bytes]]) -> list[Document]:
    """Read one document per line; blank lines and '#' comments are skipped."""
    documents: list[Document] = []
    for line_number, raw in enumerate(stream, start=1):
        if isinstance(raw, bytes):
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise JsonlError(f"Failed to read line {line_number}: {exc}") from exc
        else:
            line = raw
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        try:
            documents.append(Document.from_dict(json.loads(trimmed)))
        except ValueError as exc:
            raise JsonlError(
                f"Failed to parse JSON at line {line_number}: {trimmed}: {exc}"
            ) from exc
    return documents


def load_from_string(content: str) -> list[Document]:
    """Read documents from JSON Lines text."""
    return load_from_stream(io.StringIO(content))