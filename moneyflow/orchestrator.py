"""
Composition Root for MoneyFlow

Builds the object graph:

    blob backend -> PersistenceStore -> AccountRegistry
                                     -> TransactionLedger -> RecurringEngine
                                     -> NetWorthCalculator

DESIGN DECISION: Nothing in the services reaches for a global store.
Every component gets the store (and the audit logger) through its
constructor, so tests can wire the same graph over an in-memory backend.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from moneyflow.audit import AuditLogger, set_log_level
from moneyflow.config import Settings, get_settings
from moneyflow.services import (
    AccountRegistry,
    NetWorthCalculator,
    RecurringEngine,
    TransactionLedger,
)
from moneyflow.services.storage import (
    BlobStoreInterface,
    GoogleSheetsBlobStore,
    GoogleSheetsClient,
    InMemoryBlobStore,
    JsonFileBlobStore,
    PersistenceStore,
)


logger = structlog.get_logger("moneyflow.orchestrator")


@dataclass
class AppComponents:
    """Everything a caller needs, wired together."""

    store: PersistenceStore
    accounts: AccountRegistry
    ledger: TransactionLedger
    recurring: RecurringEngine
    net_worth: NetWorthCalculator
    audit_logger: AuditLogger


def create_backend(settings: Settings) -> BlobStoreInterface:
    """
    Build the blob backend selected by MONEYFLOW_STORAGE_BACKEND.

    If the sheets backend is selected but not configured, falls back to
    in-memory storage with a warning.
    """
    storage = settings.storage

    if storage.backend == "json":
        return JsonFileBlobStore(storage.data_dir)

    if storage.backend == "sheets":
        try:
            return GoogleSheetsBlobStore(GoogleSheetsClient(settings.google_sheets))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning(
                "storage_not_configured",
                backend="sheets",
                error=str(e),
                fallback="memory",
            )

    return InMemoryBlobStore()


def create_app_components(
    settings: Optional[Settings] = None,
    backend: Optional[BlobStoreInterface] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use. Defaults to the cached environment settings.
        backend: Blob backend to use instead of the configured one
                 (tests pass an InMemoryBlobStore here).

    Returns:
        AppComponents
    """
    settings = settings or get_settings()
    app_settings = settings.app
    set_log_level(app_settings.log_level)

    backend = backend or create_backend(settings)
    audit_logger = AuditLogger()

    store = PersistenceStore(
        backend,
        version=app_settings.data_format_version,
        audit_logger=audit_logger,
    )
    ledger = TransactionLedger(store, audit_logger=audit_logger)

    return AppComponents(
        store=store,
        accounts=AccountRegistry(store, audit_logger=audit_logger),
        ledger=ledger,
        recurring=RecurringEngine(store, ledger, audit_logger=audit_logger),
        net_worth=NetWorthCalculator(store, audit_logger=audit_logger),
        audit_logger=audit_logger,
    )
