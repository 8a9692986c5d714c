"""
Storage Services Package

Blob backends (memory, JSON files, Google Sheets) behind one abstract
interface, and the typed persistence store built on top of them.
"""

from moneyflow.services.storage.interface import (
    BackendConnectionError,
    BackendError,
    BlobStoreInterface,
    QuotaExceededError,
)
from moneyflow.services.storage.google_sheets import (
    GoogleSheetsBlobStore,
    GoogleSheetsClient,
)
from moneyflow.services.storage.json_file import JsonFileBlobStore
from moneyflow.services.storage.memory import InMemoryBlobStore
from moneyflow.services.storage.store import (
    ACCOUNTS_KEY,
    NET_WORTH_KEY,
    RECURRING_KEY,
    TRANSACTIONS_KEY,
    PersistenceStore,
)

__all__ = [
    # Interface
    "BlobStoreInterface",
    # Exceptions
    "BackendConnectionError",
    "BackendError",
    "QuotaExceededError",
    # Backends
    "GoogleSheetsBlobStore",
    "GoogleSheetsClient",
    "InMemoryBlobStore",
    "JsonFileBlobStore",
    # Store
    "ACCOUNTS_KEY",
    "NET_WORTH_KEY",
    "RECURRING_KEY",
    "TRANSACTIONS_KEY",
    "PersistenceStore",
]
