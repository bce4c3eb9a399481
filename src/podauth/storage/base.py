"""Secure key-value store interface for injected credentials.

The coordinator only needs write/read/delete. Deletes must be idempotent and
a read after a write in the same process must see the written value.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class SecureStore(ABC):
    """Async key-value store for secrets."""

    @abstractmethod
    async def write(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    async def read(self, key: str) -> str | None:
        """Return the value under ``key``, or None if absent."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. Deleting a missing key is not an error."""


class InMemorySecureStore(SecureStore):
    """Process-local store, used by tests and dry runs."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    async def write(self, key: str, value: str) -> None:
        self._values[key] = value

    async def read(self, key: str) -> str | None:
        return self._values.get(key)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._values)
