"""Byte stream helpers."""

from __future__ import annotations

from typing import BinaryIO

COMPARE_CHUNK_SIZE = 2048


def _rewind(stream: BinaryIO) -> None:
    seekable = getattr(stream, "seekable", None)
    if seekable is not None and seekable():
        stream.seek(0)


def _read_chunk(stream: BinaryIO, size: int) -> bytes:
    # Raw streams may return short reads before EOF
    chunks = []
    remaining = size
    while remaining > 0:
        data = stream.read(remaining)
        if not data:
            break
        chunks.append(data)
        remaining -= len(data)
    return b"".join(chunks)


def stream_equals(
    first: BinaryIO, second: BinaryIO, *, chunk_size: int = COMPARE_CHUNK_SIZE
) -> bool:
    """Compare two streams byte for byte.

    Seekable streams are rewound first. Comparison stops at the first chunk
    whose length or content differs.
    """
    _rewind(first)
    _rewind(second)
    while True:
        left = _read_chunk(first, chunk_size)
        right = _read_chunk(second, chunk_size)
        if len(left) != len(right):
            return False
        if not left:
            return True
        if left != right:
            return False
