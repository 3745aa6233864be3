"""
Abstract base class for storage backends.

A backend stores opaque byte blobs under string keys. The ledger
repository serialises state to JSON and hands the bytes to a backend;
backends know nothing about portfolios.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass
class StorageMetadata:
    """Metadata for stored objects."""

    key: str
    size: int
    modified_at: datetime
    compression: str | None = None


class StorageBackend(ABC):
    """Abstract base class for storage backends."""

    def __init__(self, **config):
        self.config = config

    @abstractmethod
    async def save(self, key: str, data: bytes, compress: bool = False) -> StorageMetadata:
        """Save data to storage, replacing any previous value for ``key``."""

    @abstractmethod
    async def load(self, key: str) -> bytes:
        """Load data from storage. Raises StorageKeyError if not found."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a key exists in storage."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete an object. Returns True if deleted, False if didn't exist."""
