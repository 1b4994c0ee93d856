"""Job identifier models for the secondary index."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class QualifiedJobId(BaseModel):
    """A job id as reported by a cluster, qualified by that cluster's name."""

    model_config = ConfigDict(frozen=True)

    cluster: str
    job_id: str

    @property
    def job_prefix(self) -> str:
        """Framework prefix of the job id, e.g. ``job`` or ``spark``."""
        return self.job_id.split("_", 1)[0]


class JobKey(BaseModel):
    """Key of the authoritative job history record."""

    model_config = ConfigDict(frozen=True)

    cluster: str
    user_name: str
    app_id: str
    run_id: int
    job_id: str

    @property
    def qualified_job_id(self) -> QualifiedJobId:
        return QualifiedJobId(cluster=self.cluster, job_id=self.job_id)
