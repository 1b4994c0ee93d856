"""Secondary index from ``cluster!job_id`` to the job history row key."""

from __future__ import annotations

from typing import Optional

from flowindex.codec import decode_job_key, encode_job_key, encode_qualified_job_id
from flowindex.core.exceptions import NotFoundError
from flowindex.core.logging import get_logger
from flowindex.core.protocols import ISortedStore
from flowindex.models.job import JobKey, QualifiedJobId

logger = get_logger(__name__)

ROWKEY_COL = "rowkey"
DEFAULT_TABLE = "history_by_jobid"


class JobIndex:
    """Resolves externally reported job ids to the key of their history record."""

    def __init__(self, store: ISortedStore, table_name: str = DEFAULT_TABLE) -> None:
        self._store = store
        self._table_name = table_name

    def get_job_key(self, job_id: QualifiedJobId) -> JobKey:
        """Return the JobKey stored for ``job_id``.

        Raises:
            NotFoundError: if no entry (or an empty one) exists.
        """
        index_key = encode_qualified_job_id(job_id)
        with self._store.table(self._table_name) as table:
            columns = table.get(index_key)
        history_key = (columns or {}).get(ROWKEY_COL)
        if not history_key:
            raise NotFoundError(f"No job key indexed for {job_id.cluster}!{job_id.job_id}")
        return decode_job_key(history_key)

    def write_index(self, job_key: Optional[JobKey]) -> None:
        """Insert or overwrite the index entry for ``job_key``.

        A ``None`` key is ignored rather than rejected.
        """
        if job_key is None:
            return
        row_key = encode_qualified_job_id(job_key.qualified_job_id)
        with self._store.table(self._table_name) as table:
            table.put(row_key, {ROWKEY_COL: encode_job_key(job_key)})
        logger.debug("job_indexed", cluster=job_key.cluster, job_id=job_key.job_id)
