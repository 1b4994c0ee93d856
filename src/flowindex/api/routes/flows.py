"""Flow status endpoints."""

from __future__ import annotations

import base64
import binascii
from typing import Any, Optional

from fastapi import APIRouter, Query, Request

from flowindex.core.exceptions import InvalidArgument
from flowindex.models.flow import FlowRecord, FlowStatus

router = APIRouter(tags=["flows"])


def encode_cursor(row: bytes) -> str:
    return base64.urlsafe_b64encode(row).decode("ascii")


def decode_cursor(cursor: str) -> bytes:
    try:
        row = base64.b64decode(cursor.encode("ascii"), altchars=b"-_", validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise InvalidArgument(f"Malformed pagination cursor {cursor!r}") from exc
    if not row:
        raise InvalidArgument("Empty pagination cursor")
    return row


def _flow_json(flow: FlowRecord) -> dict[str, Any]:
    return flow.model_dump(mode="json")


@router.get("/{cluster}/status/{status}")
async def list_flows(
    request: Request,
    cluster: str,
    status: str,
    limit: int = Query(default=20, ge=1, le=1000),
    user: Optional[str] = None,
    start: Optional[str] = None,
) -> dict[str, Any]:
    """Return one page of flows currently in ``status``."""
    index = request.app.state.status_index
    start_row = decode_cursor(start) if start else None
    page = index.scan_page(cluster, FlowStatus.parse(status), limit, user, start_row)
    return {
        "limit": page.limit,
        "flows": [_flow_json(f) for f in page.values],
        "next": encode_cursor(page.next_start_row) if page.next_start_row else None,
    }


@router.get("/{cluster}/{timestamp}/{flow_id}")
async def get_flow(request: Request, cluster: str, timestamp: int, flow_id: str) -> dict[str, Any]:
    """Return a flow in whatever status it is currently in."""
    index = request.app.state.status_index
    return _flow_json(index.lookup(cluster, timestamp, flow_id))
