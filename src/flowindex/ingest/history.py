"""Job history format detection and parser dispatch.

Parsing itself belongs to pluggable parsers; this module only decides which
format a history file is in and hands it to the parser registered for it.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from flowindex.core.exceptions import FormatError
from flowindex.core.logging import get_logger
from flowindex.core.protocols import IHistoryParser
from flowindex.models.flow import FlowRecord
from flowindex.models.job import QualifiedJobId

logger = get_logger(__name__)

HADOOP2_VERSION_STRING = b"Avro-Json"
HADOOP1_VERSION_STRING = b'Meta VERSION="1" .'
SPARK_JOB_PREFIX = "spark"


class HistoryFileType(StrEnum):
    ONE = "ONE"
    TWO = "TWO"
    SPARK = "SPARK"


def detect_history_file_type(job_id: Optional[QualifiedJobId],
                             contents: Optional[bytes]) -> HistoryFileType:
    """Work out which format a job history file is in.

    Spark jobs are recognized by their job id prefix; Hadoop files by the
    version signature at the start of the file (``Avro-Json`` for Hadoop 2,
    ``Meta VERSION="1" .`` for Hadoop 1). Signatures match case-insensitively.

    Raises:
        FormatError: if ``contents`` is None or no signature matches.
    """
    if contents is None:
        raise FormatError("Null job history file")

    if job_id is not None and job_id.job_prefix.lower() == SPARK_JOB_PREFIX:
        return HistoryFileType.SPARK

    # The signature must be followed by at least one byte of content.
    if len(contents) > len(HADOOP2_VERSION_STRING):
        head = contents[:len(HADOOP2_VERSION_STRING)]
        if head.lower() == HADOOP2_VERSION_STRING.lower():
            return HistoryFileType.TWO
    if len(contents) > len(HADOOP1_VERSION_STRING):
        head = contents[:len(HADOOP1_VERSION_STRING)]
        if head.lower() == HADOOP1_VERSION_STRING.lower():
            return HistoryFileType.ONE

    raise FormatError(f"Unknown format of job history file: {contents[:32]!r}")


class HistoryParserRegistry:
    """Maps history file types to the parser that handles them."""

    def __init__(self) -> None:
        self._parsers: dict[HistoryFileType, IHistoryParser] = {}

    def register(self, file_type: HistoryFileType, parser: IHistoryParser) -> None:
        self._parsers[file_type] = parser

    def parser_for(self, file_type: HistoryFileType) -> IHistoryParser:
        try:
            return self._parsers[file_type]
        except KeyError as exc:
            raise FormatError(f"No parser registered for history file type {file_type}") from exc

    def parse(self, contents: Optional[bytes],
              job_id: Optional[QualifiedJobId] = None) -> FlowRecord:
        """Detect the format of ``contents`` and parse it into a FlowRecord."""
        file_type = detect_history_file_type(job_id, contents)
        parser = self.parser_for(file_type)
        logger.debug("history_parse_dispatched", file_type=file_type.value,
                     job_id=job_id.job_id if job_id else None, size=len(contents))
        return parser(contents, job_id)
