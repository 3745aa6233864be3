"""
Gzip helpers for storage backends.

Snapshots are small JSON documents; compression is optional and off by
default so the file stays human-readable.
"""

import gzip
import json
from enum import Enum
from typing import Any

GZIP_MAGIC = b"\x1f\x8b"


class CompressionType(Enum):
    """Supported compression types."""

    NONE = "none"
    GZIP = "gzip"


def compress_bytes(data: bytes, compression: CompressionType = CompressionType.GZIP) -> bytes:
    """Compress binary data."""
    if compression == CompressionType.NONE:
        return data
    if compression == CompressionType.GZIP:
        return gzip.compress(data, compresslevel=6)
    raise ValueError(f"Unsupported compression type: {compression}")


def decompress_bytes(data: bytes, compression: CompressionType = CompressionType.GZIP) -> bytes:
    """Decompress binary data."""
    if compression == CompressionType.NONE:
        return data
    if compression == CompressionType.GZIP:
        return gzip.decompress(data)
    raise ValueError(f"Unsupported compression type: {compression}")


def detect_compression(data: bytes) -> CompressionType:
    """Sniff the compression of a stored blob from its leading bytes."""
    return CompressionType.GZIP if data[:2] == GZIP_MAGIC else CompressionType.NONE


def encode_json(obj: Any, compression: CompressionType = CompressionType.NONE) -> bytes:
    """JSON-serialize an object, optionally gzip-compressing the result."""
    raw = json.dumps(obj, separators=(",", ":"), default=str).encode("utf-8")
    return compress_bytes(raw, compression)


def decode_json(data: bytes) -> Any:
    """Parse JSON bytes, transparently handling gzip-compressed input."""
    raw = decompress_bytes(data, detect_compression(data))
    return json.loads(raw.decode("utf-8"))
