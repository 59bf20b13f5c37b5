"""Mimetype oracle: content first, extension second.

Plain text files come back as ``text/plain`` whatever their extension, the way
libmagic reports them, so markdown is recognised by ``.md`` plus a plain text
result.
"""

from __future__ import annotations

import mimetypes
import os
from pathlib import Path

DIRECTORY_MIME = "inode/directory"
EMPTY_MIME = "inode/x-empty"
BINARY_MIME = "application/octet-stream"
TEXT_MIME = "text/plain"

SNIFF_BYTES = 8192

SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b", "application/gzip"),
)

PLAIN_TEXT_GUESSES = {None, "text/plain", "text/markdown", "text/x-markdown"}


def _sniff(head: bytes) -> str | None:
    for signature, mime in SIGNATURES:
        if head.startswith(signature):
            return mime
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"
    return None


TEXT_CONTROL_BYTES = frozenset(b"\t\n\r\f\b\x1b")


def _looks_binary(head: bytes) -> bool:
    """NUL or stray control bytes mean binary; UTF-8 and ISO-8859 text do not."""
    if b"\x00" in head:
        return True
    try:
        head.decode("utf-8")
    except UnicodeDecodeError:
        # Latin-1 and a multibyte sequence cut at the sniff boundary both land here.
        return any((byte < 0x20 and byte not in TEXT_CONTROL_BYTES) or byte == 0x7F for byte in head)
    return False


class MimetypeOracle:
    """Answers ``detect(path) -> mime``. Raises OSError when the path cannot be read."""

    def detect(self, path: str | os.PathLike[str]) -> str:
        target = Path(path)
        if target.is_dir():
            return DIRECTORY_MIME

        with target.open("rb") as fh:
            head = fh.read(SNIFF_BYTES)
        if not head:
            return EMPTY_MIME

        sniffed = _sniff(head)
        if sniffed:
            return sniffed

        guessed, _ = mimetypes.guess_type(target.name)
        if _looks_binary(head):
            if guessed and not guessed.startswith("text/"):
                return guessed
            return BINARY_MIME
        if guessed in PLAIN_TEXT_GUESSES:
            return TEXT_MIME
        return guessed
