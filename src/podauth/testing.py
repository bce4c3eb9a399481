"""Setup and teardown helpers for integration tests that need a logged-in app."""

from __future__ import annotations

import asyncio
import logging

from podauth.models.auth_data import AuthDataBundle
from podauth.models.config import ProviderConfig
from podauth.models.errors import AuthDataError
from podauth.settings import get_settings
from podauth.storage.base import SecureStore
from podauth.storage.injector import CredentialInjector

logger = logging.getLogger(__name__)


class AuthTestSetup:
    """Injects stored credentials before a test and clears them afterwards.

    Usage with pytest:

        @pytest.fixture
        async def logged_in(store):
            await AuthTestSetup.set_up(store)
            yield
            await AuthTestSetup.tear_down(store)
    """

    @staticmethod
    async def set_up(
        store: SecureStore,
        config: ProviderConfig | None = None,
        auto_regenerate: bool | None = None,
        injector: CredentialInjector | None = None,
    ) -> AuthDataBundle:
        """Inject auth data into ``store`` and verify it landed.

        ``auto_regenerate`` defaults to the AUTO_REGENERATE environment toggle.

        Raises:
            PodAuthError: If injection or regeneration fails
        """
        if auto_regenerate is None:
            auto_regenerate = get_settings().auto_regenerate
        injector = injector or CredentialInjector(store, config)

        bundle = await injector.inject_full_auth(auto_regenerate=auto_regenerate)

        if not await injector.verify_injection():
            raise AuthDataError("Credential injection failed - WebID not found")
        return bundle

    @staticmethod
    async def interact_pause() -> None:
        """Pause for the INTERACT duration so a watcher can follow the UI."""
        seconds = get_settings().interact.total_seconds()
        if seconds > 0:
            await asyncio.sleep(seconds)

    @staticmethod
    async def tear_down(store: SecureStore) -> None:
        await CredentialInjector(store).clear_credentials()
