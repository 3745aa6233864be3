"""Snapshot persistence for the ledger.

:class:`LedgerRepository` turns a :class:`LedgerState` into JSON bytes
and hands them to a storage backend. Reads are forgiving: anything that
cannot be turned back into a ledger state yields None, which makes the
caller reseed the demo portfolio.
"""

from __future__ import annotations

import zlib

from loguru import logger

from folio.core.exceptions import PersistedStateError, StorageError, StorageKeyError
from folio.core.storage import CompressionType, StorageBackend, decode_json, encode_json
from folio.portfolio.models import LedgerState

DEFAULT_KEY = "portfolio.json"


class LedgerRepository:
    """Load and save ledger snapshots under a single storage key."""

    def __init__(self, storage: StorageBackend, key: str = DEFAULT_KEY, compress: bool = False):
        self.storage = storage
        self.key = key
        self.compress = compress

    @staticmethod
    def serialize(state: LedgerState) -> bytes:
        return encode_json(state.to_dict(), CompressionType.NONE)

    async def write(self, payload: bytes) -> None:
        """Write pre-serialised bytes. Storage failures propagate."""
        await self.storage.save(self.key, payload, compress=self.compress)

    async def save(self, state: LedgerState) -> bool:
        """Best-effort save. Failures are logged, never raised.

        Returns:
            True when the snapshot was written.
        """
        try:
            await self.write(self.serialize(state))
        except (StorageError, OSError) as e:
            logger.warning(f"Could not save portfolio snapshot: {e}")
            return False
        return True

    async def load(self) -> LedgerState | None:
        """Read the last snapshot.

        Returns:
            The stored state, or None when nothing is stored or the stored
            data is unreadable or in an outdated shape.
        """
        try:
            raw = await self.storage.load(self.key)
        except StorageKeyError:
            return None
        except (StorageError, OSError) as e:
            logger.warning(f"Could not read portfolio snapshot: {e}")
            return None
        except (EOFError, zlib.error) as e:
            # Truncated or damaged gzip stream.
            logger.warning(f"Discarding unreadable portfolio snapshot: {e}")
            return None

        try:
            return LedgerState.from_dict(decode_json(raw))
        except (ValueError, OSError, EOFError, zlib.error) as e:
            logger.warning(f"Discarding unreadable portfolio snapshot: {e}")
        except PersistedStateError as e:
            logger.warning(f"Discarding incompatible portfolio snapshot: {e}")
        return None
