"""Shared dataclasses used across config/connection modules."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ConnectionProfile:
    """Runtime representation of a connection profile."""

    name: str
    user: str
    host: str
    port: int
    database: str
    password: str | None = field(default=None, repr=False)

    def connect_kwargs(self) -> dict[str, object]:
        """Keyword arguments accepted by ``asyncpg.connect``."""

        kwargs: dict[str, object] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "database": self.database,
        }
        if self.password is not None:
            kwargs["password"] = self.password
        return kwargs

    def describe(self) -> str:
        """Credential-free label used in logs and error messages."""

        return f"{self.user}@{self.host}:{self.port}/{self.database}"


__all__ = ["ConnectionProfile"]
