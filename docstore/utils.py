"""Utility helper functions for the document store."""

import mimetypes
import uuid
from pathlib import PurePosixPath
from typing import Optional

DEFAULT_EXTENSION = ".txt"


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def infer_extension(title: str) -> str:
    """
    Infer the storage extension of a file from its display title.

    Args:
        title: Display name of the file (e.g., "notes.md")

    Returns:
        Extension including the dot, ".txt" when the title has none
    """
    suffix = PurePosixPath(title.strip()).suffix
    if not suffix or suffix == ".":
        return DEFAULT_EXTENSION
    return suffix.lower()


def content_key_for(node_id: str, title: str, revision: Optional[str] = None) -> str:
    """
    Build the content store key for a file node.

    Saves pass a revision so that new bytes never overwrite the object the
    current record points at.
    """
    if revision:
        return f"files/{node_id}.{revision}{infer_extension(title)}"
    return f"files/{node_id}{infer_extension(title)}"


def guess_content_type(key: str) -> str:
    content_type, _ = mimetypes.guess_type(key)
    return content_type or "text/plain"


def to_megabytes(size_bytes: int) -> str:
    return f"{size_bytes / (1024 * 1024):.2f}"
