"""Tests for row key encoding: round trips, ordering, and malformed input."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from flowindex.codec import (
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
from flowindex.core.exceptions import DecodeError, InvalidArgument
from flowindex.models.flow import FlowKey, FlowStatus, StatusKey
from flowindex.models.job import JobKey, QualifiedJobId

INT64 = st.integers(min_value=-(2**63), max_value=2**63 - 1)
COMPONENT = st.text(
    alphabet=st.characters(exclude_categories=("Cs",), exclude_characters="\x00"),
    max_size=12,
)

status_keys = st.builds(
    StatusKey,
    cluster=COMPONENT,
    status=st.sampled_from(FlowStatus),
    timestamp=INT64,
    flow_id=COMPONENT,
)


class TestStatusKeyProperties:
    @given(status_keys)
    def test_round_trip(self, key):
        assert decode_status_key(encode_status_key(key)) == key

    @given(status_keys, status_keys)
    def test_byte_order_matches_tuple_order(self, a, b):
        assert (encode_status_key(a) < encode_status_key(b)) == (a.as_tuple() < b.as_tuple())

    @given(status_keys)
    def test_key_starts_with_its_status_prefix(self, key):
        assert encode_status_key(key).startswith(status_prefix(key.cluster, key.status))

    @given(status_keys, st.sampled_from(FlowStatus))
    def test_prefix_never_matches_another_status(self, key, other):
        if other is not key.status:
            assert not encode_status_key(key).startswith(status_prefix(key.cluster, other))


class TestStatusKeyEncoding:
    def test_negative_timestamps_sort_first(self):
        keys = [
            StatusKey(cluster="c", status=FlowStatus.RUNNING, timestamp=ts, flow_id="f")
            for ts in (5, -1, 0, -(2**63), 2**63 - 1)
        ]
        encoded = sorted(keys, key=encode_status_key)
        assert [k.timestamp for k in encoded] == [-(2**63), -1, 0, 5, 2**63 - 1]

    def test_shorter_cluster_sorts_before_extension(self):
        a = StatusKey(cluster="dc", status=FlowStatus.SUCCEEDED, timestamp=9, flow_id="z")
        b = StatusKey(cluster="dc1", status=FlowStatus.FAILED, timestamp=1, flow_id="a")
        assert encode_status_key(a) < encode_status_key(b)

    def test_separator_in_component_rejected(self):
        key = StatusKey(cluster="bad\x00cluster", status=FlowStatus.RUNNING, timestamp=1, flow_id="f")
        with pytest.raises(InvalidArgument):
            encode_status_key(key)

    def test_out_of_range_timestamp_rejected(self):
        key = StatusKey(cluster="c", status=FlowStatus.RUNNING, timestamp=2**63, flow_id="f")
        with pytest.raises(InvalidArgument):
            encode_status_key(key)


class TestStatusKeyDecodeErrors:
    def _valid(self) -> bytes:
        return encode_status_key(
            StatusKey(cluster="c1", status=FlowStatus.RUNNING, timestamp=1000, flow_id="f1")
        )

    def test_unknown_status_code(self):
        raw = self._valid().replace(b"\x00r\x00", b"\x00x\x00", 1)
        with pytest.raises(DecodeError):
            decode_status_key(raw)

    @pytest.mark.parametrize("cut", [1, 3, 5, 10])
    def test_truncated(self, cut):
        with pytest.raises(DecodeError):
            decode_status_key(self._valid()[:cut])

    def test_missing_separator_after_timestamp(self):
        raw = b"c1\x00r\x00" + b"\x80" + b"\x00" * 7 + b"Xf1"
        with pytest.raises(DecodeError):
            decode_status_key(raw)

    def test_invalid_utf8(self):
        raw = b"\xff\xfe\x00r\x00" + b"\x80" + b"\x00" * 7 + b"\x00f1"
        with pytest.raises(DecodeError):
            decode_status_key(raw)

    def test_empty(self):
        with pytest.raises(DecodeError):
            decode_status_key(b"")


class TestOtherKeys:
    @given(st.builds(FlowKey, cluster=COMPONENT, user_name=COMPONENT, app_id=COMPONENT, run_id=INT64))
    def test_flow_key_round_trip(self, key):
        assert decode_flow_key(encode_flow_key(key)) == key

    @given(st.builds(QualifiedJobId, cluster=COMPONENT, job_id=COMPONENT))
    def test_qualified_job_id_round_trip(self, job_id):
        assert decode_qualified_job_id(encode_qualified_job_id(job_id)) == job_id

    @given(st.builds(JobKey, cluster=COMPONENT, user_name=COMPONENT, app_id=COMPONENT,
                     run_id=INT64, job_id=COMPONENT))
    def test_job_key_round_trip(self, key):
        assert decode_job_key(encode_job_key(key)) == key

    def test_flow_key_trailing_bytes_rejected(self):
        raw = encode_flow_key(FlowKey(cluster="c", user_name="u", app_id="a", run_id=1)) + b"x"
        with pytest.raises(DecodeError):
            decode_flow_key(raw)

    def test_job_key_missing_job_id_separator(self):
        raw = encode_flow_key(FlowKey(cluster="c", user_name="u", app_id="a", run_id=1))
        with pytest.raises(DecodeError):
            decode_job_key(raw)


class TestFlowStatus:
    def test_codes_are_single_bytes(self):
        assert all(len(s.code) == 1 for s in FlowStatus)

    def test_from_code(self):
        assert FlowStatus.from_code(b"r") is FlowStatus.RUNNING

    @pytest.mark.parametrize("code", [b"x", b"", b"\xff"])
    def test_unknown_code(self, code):
        with pytest.raises(DecodeError):
            FlowStatus.from_code(code)

    def test_parse_is_case_insensitive(self):
        assert FlowStatus.parse("succeeded") is FlowStatus.SUCCEEDED

    def test_parse_unknown_name(self):
        with pytest.raises(InvalidArgument, match="expected one of"):
            FlowStatus.parse("queued")
