"""Tests for the command dispatcher."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any

import pytest

from tusk.dispatch import CommandDispatcher, DispatchState
from tusk.errors import DatabaseConnectionError, QueryExecutionError
from tusk.models import ConnectionProfile
from tusk.queries import Kill, OlderThan
from tusk.units import TimeUnit


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


PROFILE = ConnectionProfile(name="local", user="postgres", host="localhost", port=5432, database="postgres")


class _FakeConnection:
    def __init__(self, rows=None, error: Exception | None = None) -> None:
        self.rows = rows or []
        self.error = error
        self.timeouts: list[float | None] = []
        self.closed = False

    async def fetch(self, sql: str, *args: object, timeout: float | None = None):
        self.timeouts.append(timeout)
        if self.error is not None:
            raise self.error
        return self.rows

    async def close(self) -> None:
        self.closed = True


def _factory(connection: _FakeConnection, seen: dict[str, Any] | None = None):
    @asynccontextmanager
    async def _open(profile: ConnectionProfile, *, connect_timeout: float):
        if seen is not None:
            seen["profile"] = profile
            seen["connect_timeout"] = connect_timeout
        try:
            yield connection
        finally:
            await connection.close()

    return _open


@pytest.mark.anyio
async def test_dispatcher_runs_operation_and_renders() -> None:
    connection = _FakeConnection(rows=[{"pid": 42, "succeeded": False}])
    seen: dict[str, Any] = {}
    dispatcher = CommandDispatcher(
        PROFILE,
        connect_timeout=2.0,
        query_timeout=7.0,
        session_factory=_factory(connection, seen),
    )
    assert dispatcher.state is DispatchState.IDLE

    output = await dispatcher.run(Kill(42), "json")

    assert json.loads(output) == [{"pid": 42, "succeeded": False}]
    assert dispatcher.state is DispatchState.DONE
    assert connection.closed is True
    assert connection.timeouts == [7.0]
    assert seen == {"profile": PROFILE, "connect_timeout": 2.0}


@pytest.mark.anyio
async def test_dispatcher_renders_table_headers_for_empty_result() -> None:
    dispatcher = CommandDispatcher(PROFILE, session_factory=_factory(_FakeConnection()))

    output = await dispatcher.run(OlderThan(TimeUnit.parse("1h")))

    assert "duration" in output
    assert "state" in output


@pytest.mark.anyio
async def test_dispatcher_fails_and_releases_connection_on_query_error() -> None:
    connection = _FakeConnection(error=RuntimeError("permission denied"))
    dispatcher = CommandDispatcher(PROFILE, session_factory=_factory(connection))

    with pytest.raises(QueryExecutionError):
        await dispatcher.run(Kill(1), "table")

    assert dispatcher.state is DispatchState.FAILED
    assert connection.closed is True


@pytest.mark.anyio
async def test_dispatcher_fails_when_connection_cannot_be_acquired() -> None:
    @asynccontextmanager
    async def _refuse(profile: ConnectionProfile, *, connect_timeout: float):
        raise DatabaseConnectionError("password authentication failed for user \"postgres\"")
        yield  # pragma: no cover

    dispatcher = CommandDispatcher(PROFILE, session_factory=_refuse)

    with pytest.raises(DatabaseConnectionError, match="password authentication failed"):
        await dispatcher.run(Kill(1))

    assert dispatcher.state is DispatchState.FAILED


@pytest.mark.anyio
async def test_dispatcher_runs_only_once() -> None:
    connection = _FakeConnection(rows=[{"pid": 1, "succeeded": True}])
    dispatcher = CommandDispatcher(PROFILE, session_factory=_factory(connection))
    await dispatcher.run(Kill(1))

    with pytest.raises(RuntimeError, match="already used"):
        await dispatcher.run(Kill(1))
