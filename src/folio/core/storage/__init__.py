"""
Storage backends for folio.

Async byte-blob storage with optional gzip and a pluggable backend
interface (local filesystem by default, in-memory for tests).
"""

from folio.core.exceptions import StorageError, StorageKeyError, StoragePermissionError, StorageQuotaError

from .base import StorageBackend, StorageMetadata
from .compression import (
    CompressionType,
    compress_bytes,
    decode_json,
    decompress_bytes,
    detect_compression,
    encode_json,
)
from .local import LocalStorage
from .memory import MemoryStorage

__all__ = [
    "CompressionType",
    "LocalStorage",
    "MemoryStorage",
    "StorageBackend",
    "StorageError",
    "StorageKeyError",
    "StorageMetadata",
    "StoragePermissionError",
    "StorageQuotaError",
    "compress_bytes",
    "decode_json",
    "decompress_bytes",
    "detect_compression",
    "encode_json",
]
