"""
Abstract Blob Store Interface

DESIGN DECISION: Backends only know about keys and JSON text.
This allows us to:
1. Use in-memory storage for testing
2. Keep files on disk for a single-user install
3. Put the same data in Google Sheets without touching the ledger
4. Keep the persistence store (and everything above it) backend-agnostic

The interface is intentionally tiny - four operations on opaque strings.
Parsing, versioning and validation live in the persistence store.
"""

from abc import ABC, abstractmethod
from typing import Optional


class BlobStoreInterface(ABC):
    """
    Abstract key-value store for serialized collections.

    Implementations raise BackendError subclasses on failure; they never
    return error values.
    """

    @abstractmethod
    async def read(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Returns:
            The stored text, or None if the key has never been written

        Raises:
            BackendError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def write(self, key: str, value: str) -> None:
        """
        Store text under a key, replacing any previous value.

        Raises:
            QuotaExceededError: If the value does not fit the backend
            BackendError: If the write fails
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """List every key currently stored."""
        pass


class BackendError(Exception):
    """Base exception for blob backend operations."""
    pass


class BackendConnectionError(BackendError):
    """Could not connect to the storage backend."""
    pass


class QuotaExceededError(BackendError):
    """The value is larger than the backend can hold."""
    pass
