"""In-memory storage backend for tests and throwaway sessions."""

from datetime import datetime

from folio.core.exceptions import StorageKeyError, StorageQuotaError

from .base import StorageBackend, StorageMetadata
from .compression import CompressionType, compress_bytes, decompress_bytes, detect_compression


class MemoryStorage(StorageBackend):
    """Dict-backed storage.

    Args:
        max_bytes: Optional quota; a save that would exceed it raises
            :class:`StorageQuotaError`, mimicking a full browser store.
    """

    def __init__(self, max_bytes: int | None = None, **config):
        super().__init__(**config)
        self.max_bytes = max_bytes
        self._blobs: dict[str, bytes] = {}

    async def save(self, key: str, data: bytes, compress: bool = False) -> StorageMetadata:
        compression = CompressionType.GZIP if compress else CompressionType.NONE
        payload = compress_bytes(data, compression)
        if self.max_bytes is not None and len(payload) > self.max_bytes:
            raise StorageQuotaError(f"{len(payload)} bytes exceeds quota of {self.max_bytes}")
        self._blobs[key] = payload
        return StorageMetadata(
            key=key,
            size=len(payload),
            modified_at=datetime.now(),
            compression=compression.value if compress else None,
        )

    async def load(self, key: str) -> bytes:
        if key not in self._blobs:
            raise StorageKeyError(f"Key not found: {key}")
        data = self._blobs[key]
        return decompress_bytes(data, detect_compression(data))

    async def exists(self, key: str) -> bool:
        return key in self._blobs

    async def delete(self, key: str) -> bool:
        return self._blobs.pop(key, None) is not None
