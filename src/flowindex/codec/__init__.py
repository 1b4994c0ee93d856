"""Ordered binary encodings for flowindex row keys and column values."""

from __future__ import annotations

from flowindex.codec.keys import (
    decode_flow_key,
    decode_job_key,
    decode_qualified_job_id,
    decode_status_key,
    encode_flow_key,
    encode_job_key,
    encode_qualified_job_id,
    encode_status_key,
    status_prefix,
)
from flowindex.codec.primitives import SEP, decode_int, encode_int, prefix_stop_row

__all__ = [
    "SEP",
    "decode_flow_key",
    "decode_int",
    "decode_job_key",
    "decode_qualified_job_id",
    "decode_status_key",
    "encode_flow_key",
    "encode_int",
    "encode_job_key",
    "encode_qualified_job_id",
    "encode_status_key",
    "prefix_stop_row",
    "status_prefix",
]
