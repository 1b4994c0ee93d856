"""Job id resolution endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from flowindex.models.job import QualifiedJobId

router = APIRouter(tags=["jobs"])


@router.get("/{cluster}/{job_id}")
async def resolve_job(request: Request, cluster: str, job_id: str) -> dict[str, Any]:
    """Return the history key indexed for a cluster's job id."""
    index = request.app.state.job_index
    job_key = index.get_job_key(QualifiedJobId(cluster=cluster, job_id=job_id))
    return job_key.model_dump(mode="json")
