"""Flow status, key, and record models."""

from __future__ import annotations

from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from flowindex.core.exceptions import DecodeError, InvalidArgument

T = TypeVar("T")


class FlowStatus(Enum):
    """Closed set of lifecycle states a flow can be indexed under.

    The value is the one-byte code embedded in status keys; key order across
    statuses follows code order.
    """

    FAILED = "f"
    KILLED = "k"
    PENDING = "p"
    RUNNING = "r"
    SUCCEEDED = "s"

    @property
    def code(self) -> bytes:
        return self.value.encode("ascii")

    @classmethod
    def from_code(cls, code: bytes) -> FlowStatus:
        try:
            return cls(code.decode("ascii"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise DecodeError(f"Unknown status code {code!r}") from exc

    @classmethod
    def parse(cls, name: str) -> FlowStatus:
        """Resolve a caller-supplied status name, case-insensitively."""
        try:
            return cls[name.upper()]
        except KeyError as exc:
            valid = ", ".join(s.name for s in cls)
            raise InvalidArgument(f"Unknown flow status {name!r}; expected one of {valid}") from exc


class StatusKey(BaseModel):
    """Row key of a flow in the status index."""

    model_config = ConfigDict(frozen=True)

    cluster: str
    status: FlowStatus
    timestamp: int
    flow_id: str

    @field_serializer("status")
    def serialize_status(self, status: FlowStatus) -> str:
        return status.name

    def as_tuple(self) -> tuple[str, bytes, int, str]:
        """Tuple whose natural ordering matches encoded key ordering."""
        return (self.cluster, self.status.code, self.timestamp, self.flow_id)

    def with_status(self, status: FlowStatus) -> StatusKey:
        return self.model_copy(update={"status": status})


class FlowKey(BaseModel):
    """Key of the authoritative flow execution record."""

    model_config = ConfigDict(frozen=True)

    cluster: str
    user_name: str
    app_id: str
    run_id: int


class FlowRecord(BaseModel):
    """Flow state as stored in the status index."""

    queue_key: Optional[StatusKey] = None
    flow_key: Optional[FlowKey] = None
    job_graph_json: Optional[str] = None
    flow_name: Optional[str] = None
    user_name: Optional[str] = None
    progress: int = Field(default=0, ge=0, le=100)


class PaginatedResult(BaseModel, Generic[T]):
    """One page of results plus the cursor to resume from, if any."""

    values: list[T] = Field(default_factory=list)
    limit: int
    next_start_row: Optional[bytes] = None

    @property
    def has_more(self) -> bool:
        return self.next_start_row is not None
