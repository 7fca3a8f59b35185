"""Administrative operations run against a live session."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Mapping, Protocol, Sequence

from .connections import SessionHandle
from .errors import QueryExecutionError
from .units import TimeUnit

LOG = logging.getLogger(__name__)

QUERY_DISPLAY_WIDTH = 42
ELLIPSIS = "..."


def truncate(text: str, width: int = QUERY_DISPLAY_WIDTH) -> str:
    """Shorten `text` to `width` characters plus an ellipsis when it is longer."""

    if len(text) <= width:
        return text
    return f"{text[:width]}{ELLIPSIS}"


@dataclass(frozen=True, slots=True)
class OlderThanRow:
    """A session whose current query has been running past the threshold."""

    HEADERS: ClassVar[tuple[str, ...]] = ("pid", "duration", "query", "state")

    pid: int
    duration: str
    query: str
    state: str | None

    @classmethod
    def headers(cls) -> tuple[str, ...]:
        return cls.HEADERS

    def cells(self) -> tuple[str, ...]:
        return (str(self.pid), self.duration, truncate(self.query), self.state or "")

    def to_dict(self) -> dict[str, object]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> OlderThanRow:
        return cls(
            pid=int(record["pid"]),
            duration=str(record["duration"]),
            query=record["query"] or "",
            state=record["state"],
        )


@dataclass(frozen=True, slots=True)
class KillRow:
    """Outcome of a termination request for one backend pid."""

    HEADERS: ClassVar[tuple[str, ...]] = ("pid", "succeeded")

    pid: int
    succeeded: bool

    @classmethod
    def headers(cls) -> tuple[str, ...]:
        return cls.HEADERS

    def cells(self) -> tuple[str, ...]:
        return (str(self.pid), str(self.succeeded).lower())

    def to_dict(self) -> dict[str, object]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> KillRow:
        return cls(pid=int(record["pid"]), succeeded=bool(record["succeeded"]))


class Operation(Protocol):
    """Interface implemented by administrative operations."""

    row_type: ClassVar[type]

    async def execute(self, conn: SessionHandle, *, timeout: float | None = None) -> list[Any]: ...


@dataclass(frozen=True, slots=True)
class OlderThan:
    """Sessions whose current query started longer ago than `threshold`."""

    threshold: TimeUnit

    row_type: ClassVar[type[OlderThanRow]] = OlderThanRow

    # The threshold goes over the wire as text and Postgres casts it.
    SQL: ClassVar[str] = """
        SELECT
            pid,
            (now() - pg_stat_activity.query_start)::TEXT AS duration,
            query,
            state
        FROM
            pg_stat_activity
        WHERE
            (now() - pg_stat_activity.query_start) > $1::TEXT::INTERVAL
    """

    async def execute(self, conn: SessionHandle, *, timeout: float | None = None) -> list[OlderThanRow]:
        records = await _fetch(conn, self.SQL, str(self.threshold), timeout=timeout)
        return [OlderThanRow.from_record(record) for record in records]


@dataclass(frozen=True, slots=True)
class Kill:
    """Ask the server to terminate the backend identified by `pid`."""

    pid: int

    row_type: ClassVar[type[KillRow]] = KillRow

    SQL: ClassVar[str] = "SELECT $1::INTEGER AS pid, pg_terminate_backend($1::INTEGER) AS succeeded"

    async def execute(self, conn: SessionHandle, *, timeout: float | None = None) -> list[KillRow]:
        records = await _fetch(conn, self.SQL, self.pid, timeout=timeout)
        rows = [KillRow.from_record(record) for record in records]
        if len(rows) != 1:
            raise QueryExecutionError(f"Expected one row terminating pid {self.pid}, got {len(rows)}")
        if not rows[0].succeeded:
            LOG.info("Backend %d was not terminated", self.pid)
        return rows


async def _fetch(
    conn: SessionHandle,
    sql: str,
    *args: object,
    timeout: float | None,
) -> Sequence[Any]:
    try:
        return await conn.fetch(sql, *args, timeout=timeout)
    except TimeoutError as exc:
        raise QueryExecutionError(f"Query timed out after {timeout}s") from exc
    except Exception as exc:
        raise QueryExecutionError(str(exc)) from exc


__all__ = [
    "ELLIPSIS",
    "Kill",
    "KillRow",
    "OlderThan",
    "OlderThanRow",
    "Operation",
    "QUERY_DISPLAY_WIDTH",
    "truncate",
]
