"""Index services built on a sorted store."""

from __future__ import annotations

from flowindex.core.config import AppSettings
from flowindex.core.protocols import ISortedStore
from flowindex.persistence import create_store
from flowindex.services.job_index import JobIndex
from flowindex.services.status_index import StatusIndex


def create_services(
    settings: AppSettings | None = None, store: ISortedStore | None = None
) -> tuple[StatusIndex, JobIndex]:
    """Create wired-up index services from application settings.

    Returns:
        Tuple of (status_index, job_index).
    """
    if settings is None:
        settings = AppSettings()
    if store is None:
        store = create_store(settings)

    status_index = StatusIndex(store, table_name=settings.store.flow_queue_table)
    job_index = JobIndex(store, table_name=settings.store.job_index_table)
    return status_index, job_index


__all__ = ["JobIndex", "StatusIndex", "create_services"]
