"""Tests for job history format detection and parser dispatch."""

from __future__ import annotations

import pytest

from flowindex.core.exceptions import FormatError
from flowindex.ingest.history import HistoryFileType, HistoryParserRegistry, detect_history_file_type
from flowindex.models.flow import FlowRecord
from flowindex.models.job import QualifiedJobId

HADOOP2 = b'Avro-Json\n{"type":"record"}'
HADOOP1 = b'Meta VERSION="1" .\nJob JOBID="job_1"'


class TestDetect:
    def test_hadoop2_signature(self):
        assert detect_history_file_type(None, HADOOP2) is HistoryFileType.TWO

    def test_hadoop2_signature_case_insensitive(self):
        assert detect_history_file_type(None, b"AVRO-JSON\n{}") is HistoryFileType.TWO

    def test_hadoop1_signature(self):
        assert detect_history_file_type(None, HADOOP1) is HistoryFileType.ONE

    def test_spark_job_prefix_wins(self):
        job_id = QualifiedJobId(cluster="c1", job_id="spark_1700000000000_0001")
        assert detect_history_file_type(job_id, b"{}") is HistoryFileType.SPARK

    def test_spark_prefix_case_insensitive(self):
        job_id = QualifiedJobId(cluster="c1", job_id="SPARK_1")
        assert detect_history_file_type(job_id, b"{}") is HistoryFileType.SPARK

    def test_none_contents(self):
        with pytest.raises(FormatError):
            detect_history_file_type(None, None)

    def test_signature_alone_is_not_enough(self):
        with pytest.raises(FormatError):
            detect_history_file_type(None, b"Avro-Json")

    def test_unknown_format(self):
        with pytest.raises(FormatError):
            detect_history_file_type(QualifiedJobId(cluster="c1", job_id="job_1"), b"not a history file")


class TestRegistry:
    def test_dispatches_to_registered_parser(self):
        seen = []

        def parse_hadoop2(contents, job_id):
            seen.append((contents, job_id))
            return FlowRecord(flow_name="from-history", progress=100)

        registry = HistoryParserRegistry()
        registry.register(HistoryFileType.TWO, parse_hadoop2)
        job_id = QualifiedJobId(cluster="c1", job_id="job_1")

        flow = registry.parse(HADOOP2, job_id)

        assert flow.flow_name == "from-history"
        assert seen == [(HADOOP2, job_id)]

    def test_unregistered_type_raises_format_error(self):
        registry = HistoryParserRegistry()
        with pytest.raises(FormatError):
            registry.parse(HADOOP1)

    def test_undetectable_contents_raise_format_error(self):
        registry = HistoryParserRegistry()
        registry.register(HistoryFileType.TWO, lambda contents, job_id: FlowRecord())
        with pytest.raises(FormatError):
            registry.parse(b"garbage")
