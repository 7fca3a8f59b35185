"""Session acquisition against PostgreSQL via asyncpg."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Protocol, Sequence

import asyncpg

from .errors import DatabaseConnectionError
from .models import ConnectionProfile

LOG = logging.getLogger(__name__)


class SessionHandle(Protocol):
    """The slice of ``asyncpg.Connection`` the operations rely on."""

    async def fetch(self, query: str, *args: object, timeout: float | None = None) -> Sequence[Any]: ...

    async def close(self) -> None: ...


@asynccontextmanager
async def open_session(
    profile: ConnectionProfile,
    *,
    connect_timeout: float = 10.0,
) -> AsyncIterator[SessionHandle]:
    """Connect to `profile` and close the connection when the block exits."""

    started = time.perf_counter()
    LOG.debug("Connecting to profile '%s' (%s)", profile.name, profile.describe())
    try:
        conn = await asyncpg.connect(**profile.connect_kwargs(), timeout=connect_timeout)
    except TimeoutError as exc:
        raise DatabaseConnectionError(
            f"Timed out after {connect_timeout:g}s connecting to profile '{profile.name}'"
        ) from exc
    except Exception as exc:
        raise DatabaseConnectionError(f"Failed to connect to profile '{profile.name}': {exc}") from exc
    LOG.debug("Connected to '%s' in %d ms", profile.name, int((time.perf_counter() - started) * 1000))
    try:
        yield conn
    finally:
        try:
            await conn.close()
        except Exception:  # pragma: no cover - best effort cleanup
            LOG.debug("Ignoring error while closing connection to '%s'", profile.name, exc_info=True)


__all__ = ["SessionHandle", "open_session"]
