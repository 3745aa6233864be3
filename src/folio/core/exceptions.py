"""
Folio exception hierarchy.

All folio exceptions inherit from FolioError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.
"""

from __future__ import annotations


class FolioError(Exception):
    """Base exception class for all folio errors."""


class ConfigurationError(FolioError):
    """Raised for configuration errors (missing keys, invalid values)."""


class QuoteGatewayError(FolioError):
    """Raised when a quote or history lookup fails for any reason."""

    def __init__(self, ticker: str, message: str):
        super().__init__(f"{ticker}: {message}")
        self.ticker = ticker


class QuoteNotFoundError(QuoteGatewayError):
    """Raised when the upstream has no data for the requested ticker."""


class UpstreamStatusError(QuoteGatewayError):
    """Raised when the upstream answers with a non-200 status."""

    def __init__(self, ticker: str, status_code: int):
        super().__init__(ticker, f"upstream returned HTTP {status_code}")
        self.status_code = status_code


class GatewayTransportError(QuoteGatewayError):
    """Raised for network-level failures (DNS, connect, timeout)."""


class StorageError(FolioError):
    """Base exception for storage errors."""


class StorageKeyError(StorageError, KeyError):
    """Raised when a storage key doesn't exist."""


class StoragePermissionError(StorageError):
    """Raised when storage operation is not permitted."""


class StorageQuotaError(StorageError):
    """Raised when storage quota is exceeded."""


class PersistedStateError(FolioError):
    """Raised when persisted ledger state has an unexpected shape."""


class InputValidationError(FolioError):
    """Raised when a command's input fails validation.

    Attributes:
        errors: Mapping of field name to a human-readable message, one
            entry per offending field.
    """

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        summary = "; ".join(f"{name}: {msg}" for name, msg in sorted(self.errors.items()))
        super().__init__(f"Invalid input ({summary})")
