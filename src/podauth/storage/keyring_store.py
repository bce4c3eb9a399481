"""SecureStore backed by the platform keychain via ``keyring``."""

from __future__ import annotations

import asyncio
import logging

import keyring
from keyring.errors import PasswordDeleteError

from podauth.storage.base import SecureStore

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "podauth"


class KeyringSecureStore(SecureStore):
    """Stores each key as a keyring password under one service name.

    keyring calls are blocking, so they run in a worker thread.
    """

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        self.service_name = service_name

    async def write(self, key: str, value: str) -> None:
        await asyncio.to_thread(keyring.set_password, self.service_name, key, value)

    async def read(self, key: str) -> str | None:
        return await asyncio.to_thread(keyring.get_password, self.service_name, key)

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(keyring.delete_password, self.service_name, key)
        except PasswordDeleteError:
            # Already absent
            logger.debug(f"No keyring entry for {key}")
