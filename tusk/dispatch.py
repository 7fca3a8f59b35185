"""Run one administrative operation and render its result."""

from __future__ import annotations

import logging
from enum import Enum
from typing import AsyncContextManager, Callable

from .connections import SessionHandle, open_session
from .models import ConnectionProfile
from .queries import Operation
from .render import OutputFormat, render

LOG = logging.getLogger(__name__)

SessionFactory = Callable[..., AsyncContextManager[SessionHandle]]


class DispatchState(str, Enum):
    """Lifecycle of a single invocation."""

    IDLE = "idle"
    EXECUTING = "executing"
    DONE = "done"
    FAILED = "failed"


class CommandDispatcher:
    """Owns the session for exactly one operation."""

    def __init__(
        self,
        profile: ConnectionProfile,
        *,
        connect_timeout: float = 10.0,
        query_timeout: float | None = 30.0,
        session_factory: SessionFactory = open_session,
    ) -> None:
        self._profile = profile
        self._connect_timeout = connect_timeout
        self._query_timeout = query_timeout
        self._session_factory = session_factory
        self._state = DispatchState.IDLE

    @property
    def state(self) -> DispatchState:
        return self._state

    async def run(self, operation: Operation, output: OutputFormat | str = OutputFormat.TABLE) -> str:
        """Connect, execute `operation`, and return the rendered rows.

        Nothing is returned unless every step succeeds; the caller prints the
        result, so a failure never leaves partial output behind.
        """

        if self._state is not DispatchState.IDLE:
            raise RuntimeError(f"Dispatcher already used (state: {self._state.value})")
        try:
            async with self._session_factory(self._profile, connect_timeout=self._connect_timeout) as conn:
                self._state = DispatchState.EXECUTING
                LOG.debug("Executing %r on '%s'", operation, self._profile.name)
                rows = await operation.execute(conn, timeout=self._query_timeout)
                rendered = render(rows, output, row_type=operation.row_type)
        except Exception:
            self._state = DispatchState.FAILED
            raise
        self._state = DispatchState.DONE
        LOG.debug("Operation returned %d row(s)", len(rows))
        return rendered


__all__ = ["CommandDispatcher", "DispatchState", "SessionFactory"]
