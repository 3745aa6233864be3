"""
Local filesystem storage backend.

Provides async file operations with optional gzip compression. Writes go
to a temporary sibling file first and are moved into place, so a crash
mid-write never leaves a truncated snapshot behind.
"""

import errno
from datetime import datetime
from pathlib import Path

import aiofiles
import aiofiles.os
from loguru import logger

from folio.core.exceptions import StorageError, StorageKeyError, StoragePermissionError, StorageQuotaError

from .base import StorageBackend, StorageMetadata
from .compression import CompressionType, compress_bytes, decompress_bytes, detect_compression

_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class LocalStorage(StorageBackend):
    """Local filesystem storage backend."""

    def __init__(self, base_path: str = "~/.folio-data", **config):
        super().__init__(**config)
        self.base_path = Path(base_path).expanduser().resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, key: str) -> Path:
        """Resolve a storage key to an absolute path under ``base_path``.

        Rejects unsafe keys (absolute paths, traversal, empty keys, and
        backslash-delimited paths) to prevent writes outside ``base_path``.
        """
        raw_key = key.strip()
        if not raw_key:
            raise StoragePermissionError("Storage key cannot be empty.")
        if "\x00" in raw_key:
            raise StoragePermissionError("Storage key cannot contain null bytes.")
        if "\\" in raw_key:
            raise StoragePermissionError("Storage key cannot contain backslashes. Use '/' separators.")

        key_path = Path(raw_key)
        if key_path.is_absolute() or raw_key.startswith("~"):
            raise StoragePermissionError(f"Unsafe storage key '{key}': absolute paths are not allowed.")

        full_path = (self.base_path / key_path).resolve()
        try:
            full_path.relative_to(self.base_path)
        except ValueError as e:
            raise StoragePermissionError(f"Unsafe storage key '{key}': path traversal is not allowed.") from e
        return full_path

    async def save(self, key: str, data: bytes, compress: bool = False) -> StorageMetadata:
        path = self._get_full_path(key)
        compression = CompressionType.GZIP if compress else CompressionType.NONE
        payload = compress_bytes(data, compression)

        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.tmp")

        try:
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, path)
        except PermissionError as e:
            raise StoragePermissionError(f"Cannot write to {path}: {e}") from e
        except OSError as e:
            if e.errno in _QUOTA_ERRNOS:
                raise StorageQuotaError(f"No space left writing {path}: {e}") from e
            raise StorageError(f"Cannot write to {path}: {e}") from e

        stat = await aiofiles.os.stat(path)
        logger.debug(f"Saved {stat.st_size} bytes to {path}")
        return StorageMetadata(
            key=key,
            size=stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime),
            compression=compression.value if compression != CompressionType.NONE else None,
        )

    async def load(self, key: str) -> bytes:
        path = self._get_full_path(key)
        if not path.exists():
            raise StorageKeyError(f"Key not found: {key}")

        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except PermissionError as e:
            raise StoragePermissionError(f"Cannot read {path}: {e}") from e

        return decompress_bytes(data, detect_compression(data))

    async def exists(self, key: str) -> bool:
        return self._get_full_path(key).exists()

    async def delete(self, key: str) -> bool:
        path = self._get_full_path(key)
        if not path.exists():
            return False
        await aiofiles.os.remove(path)
        return True
