"""Services package."""

from moneyflow.services.accounts import AccountRegistry
from moneyflow.services.ledger import TransactionLedger
from moneyflow.services.net_worth import NetWorthCalculator
from moneyflow.services.recurring import RecurringEngine
from moneyflow.services.storage import (
    BlobStoreInterface,
    GoogleSheetsBlobStore,
    InMemoryBlobStore,
    JsonFileBlobStore,
    PersistenceStore,
)

__all__ = [
    # Domain services
    "AccountRegistry",
    "NetWorthCalculator",
    "RecurringEngine",
    "TransactionLedger",
    # Storage
    "BlobStoreInterface",
    "GoogleSheetsBlobStore",
    "InMemoryBlobStore",
    "JsonFileBlobStore",
    "PersistenceStore",
]
