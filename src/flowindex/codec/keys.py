"""Encoders and decoders for every composite row key flowindex stores.

Layouts (``|`` is the ``0x00`` separator, ``long`` is 8 bytes):

    StatusKey       cluster | status code | timestamp(long) | flow_id
    FlowKey         cluster | user | app | run_id(long)
    QualifiedJobId  cluster | job_id
    JobKey          cluster | user | app | run_id(long) | job_id
"""

from __future__ import annotations

from flowindex.codec.primitives import (
    LONG_WIDTH,
    SEP,
    decode_long,
    decode_str,
    encode_long,
    encode_str,
    join,
    split_fixed,
    split_head,
)
from flowindex.core.exceptions import DecodeError
from flowindex.models.flow import FlowKey, FlowStatus, StatusKey
from flowindex.models.job import JobKey, QualifiedJobId


def _tail_str(raw: bytes, field: str) -> str:
    if SEP in raw:
        raise DecodeError(f"Unexpected separator inside {field}: {raw!r}")
    return decode_str(raw, field)


# ---------------------------------------------------------------------------
# StatusKey
# ---------------------------------------------------------------------------

def status_prefix(cluster: str, status: FlowStatus) -> bytes:
    """Leading bytes shared by every key of one status on one cluster."""
    return join(encode_str(cluster, "cluster"), status.code, b"")


def encode_status_key(key: StatusKey) -> bytes:
    return join(
        encode_str(key.cluster, "cluster"),
        key.status.code,
        encode_long(key.timestamp, "timestamp"),
        encode_str(key.flow_id, "flow_id"),
    )


def decode_status_key(raw: bytes) -> StatusKey:
    cluster, rest = split_head(raw, "cluster")
    code, rest = split_fixed(rest, 1, "status", terminated=True)
    timestamp, rest = split_fixed(rest, LONG_WIDTH, "timestamp", terminated=True)
    return StatusKey(
        cluster=decode_str(cluster, "cluster"),
        status=FlowStatus.from_code(code),
        timestamp=decode_long(timestamp, "timestamp"),
        flow_id=_tail_str(rest, "flow_id"),
    )


# ---------------------------------------------------------------------------
# FlowKey
# ---------------------------------------------------------------------------

def encode_flow_key(key: FlowKey) -> bytes:
    return join(
        encode_str(key.cluster, "cluster"),
        encode_str(key.user_name, "user_name"),
        encode_str(key.app_id, "app_id"),
        encode_long(key.run_id, "run_id"),
    )


def decode_flow_key(raw: bytes) -> FlowKey:
    cluster, rest = split_head(raw, "cluster")
    user, rest = split_head(rest, "user_name")
    app, rest = split_head(rest, "app_id")
    run_id, _ = split_fixed(rest, LONG_WIDTH, "run_id", terminated=False)
    return FlowKey(
        cluster=decode_str(cluster, "cluster"),
        user_name=decode_str(user, "user_name"),
        app_id=decode_str(app, "app_id"),
        run_id=decode_long(run_id, "run_id"),
    )


# ---------------------------------------------------------------------------
# QualifiedJobId
# ---------------------------------------------------------------------------

def encode_qualified_job_id(job_id: QualifiedJobId) -> bytes:
    return join(encode_str(job_id.cluster, "cluster"), encode_str(job_id.job_id, "job_id"))


def decode_qualified_job_id(raw: bytes) -> QualifiedJobId:
    cluster, rest = split_head(raw, "cluster")
    return QualifiedJobId(cluster=decode_str(cluster, "cluster"), job_id=_tail_str(rest, "job_id"))


# ---------------------------------------------------------------------------
# JobKey
# ---------------------------------------------------------------------------

def encode_job_key(key: JobKey) -> bytes:
    return join(
        encode_str(key.cluster, "cluster"),
        encode_str(key.user_name, "user_name"),
        encode_str(key.app_id, "app_id"),
        encode_long(key.run_id, "run_id"),
        encode_str(key.job_id, "job_id"),
    )


def decode_job_key(raw: bytes) -> JobKey:
    cluster, rest = split_head(raw, "cluster")
    user, rest = split_head(rest, "user_name")
    app, rest = split_head(rest, "app_id")
    run_id, rest = split_fixed(rest, LONG_WIDTH, "run_id", terminated=True)
    return JobKey(
        cluster=decode_str(cluster, "cluster"),
        user_name=decode_str(user, "user_name"),
        app_id=decode_str(app, "app_id"),
        run_id=decode_long(run_id, "run_id"),
        job_id=_tail_str(rest, "job_id"),
    )
