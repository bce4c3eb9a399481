"""Loading, expiry checking, regeneration and injection of auth data.

The coordinator moves one persisted bundle through
Load -> CheckExpiry -> (Regenerate) -> Inject. The secure store is written
only once the whole sequence has succeeded.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from podauth.automator import PodAuthAutomator
from podauth.models.auth_data import AuthDataBundle
from podauth.models.config import ProviderConfig
from podauth.models.credentials import TestCredentials
from podauth.models.errors import (
    AuthDataError,
    CredentialsError,
    RegenerationError,
    TokensExpiredError,
)
from podauth.storage.base import SecureStore

logger = logging.getLogger(__name__)

AUTH_DATA_STORAGE_KEY = "_solid_auth_data"

# Keys written by older client versions
LEGACY_STORAGE_KEYS = (
    "webId",
    "accessToken",
    "idToken",
    "refreshToken",
    "tokenType",
    "expiresAt",
    "clientId",
    "podUrl",
    "issuer",
    "openidconnect_auth_response_info",
    "cookies",
)

EXPIRY_BUFFER_SECONDS = 60
GENERATE_COMMAND = "podauth-generate"


class AuthDataStatus(str, Enum):
    VALID = "valid"
    EXPIRED = "expired"
    MISSING = "missing"
    INVALID = "invalid"


@dataclass(frozen=True)
class AuthDataCheck:
    """Outcome of loading and checking the persisted bundle."""

    status: AuthDataStatus
    bundle: AuthDataBundle | None = None
    error: str | None = None

    @property
    def needs_regeneration(self) -> bool:
        return self.status is not AuthDataStatus.VALID


def write_auth_data_file(path: str | Path, data: dict[str, Any]) -> Path:
    """Write a bundle as indented JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


class CredentialInjector:
    """Injects the complete auth data bundle into a secure store.

    Args:
        store: Where the client app reads its auth data from
        config: Provider configuration, including the bundle and credentials paths
        automator: Used to regenerate the bundle; a Playwright-backed one by default
        clock: Returns the current time in seconds since the epoch
    """

    def __init__(
        self,
        store: SecureStore,
        config: ProviderConfig | None = None,
        automator: PodAuthAutomator | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.config = config or ProviderConfig.solid_community_au()
        self.automator = automator
        self.clock = clock

    def load_complete_auth_data(self, path: str | Path | None = None) -> AuthDataBundle:
        """Read and parse the persisted bundle.

        Raises:
            AuthDataError: If the file is missing or not a valid bundle
        """
        path = Path(path or self.config.auth_data_path)
        if not path.exists():
            raise AuthDataError(
                f"Complete auth data file not found: {path}\n"
                f"Run: {GENERATE_COMMAND}"
            )

        try:
            return AuthDataBundle.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            raise AuthDataError(
                f"Failed to parse auth data from {path}: {e}\n"
                f"Run: {GENERATE_COMMAND}"
            ) from e

    def check_auth_data(self, path: str | Path | None = None) -> AuthDataCheck:
        """Load the bundle and classify it without raising."""
        path = Path(path or self.config.auth_data_path)
        if not path.exists():
            return AuthDataCheck(
                AuthDataStatus.MISSING, error=f"Complete auth data file not found: {path}"
            )

        try:
            bundle = self.load_complete_auth_data(path)
            issued_at = path.stat().st_mtime
        except (AuthDataError, OSError) as e:
            return AuthDataCheck(AuthDataStatus.INVALID, error=str(e))

        if self.is_token_expired(bundle, issued_at=issued_at):
            return AuthDataCheck(
                AuthDataStatus.EXPIRED, bundle=bundle, error="Auth tokens expired"
            )
        return AuthDataCheck(AuthDataStatus.VALID, bundle=bundle)

    def is_token_expired(
        self, bundle: AuthDataBundle, issued_at: float | None = None
    ) -> bool:
        """Whether the bundle's access token expires within the safety buffer.

        A bundle without any recorded expiry counts as expired.

        Args:
            bundle: Parsed auth data
            issued_at: Capture time for legacy ``expires_in`` bundles; now if None
        """
        now = self.clock()
        if bundle.auth_response is None:
            logger.warning("Auth data has no auth_response, treating as expired")
            return True

        expiry = bundle.auth_response.resolve_expiry(
            issued_at if issued_at is not None else now
        )
        if expiry is None:
            logger.warning("No token expiry found in auth data, treating as expired")
            return True

        logger.debug(f"Token expiry {expiry.expires_at} from {expiry.source.value}")
        if expiry.expires_at < now + EXPIRY_BUFFER_SECONDS:
            logger.info(f"Token expired or expires within {EXPIRY_BUFFER_SECONDS}s")
            return True
        return False

    async def inject_full_auth(self, auto_regenerate: bool = False) -> AuthDataBundle:
        """Load, check and inject the bundle, regenerating it when allowed.

        Returns:
            The bundle that was written to the store

        Raises:
            TokensExpiredError: If the tokens are stale and regeneration is off
            AuthDataError: If the bundle is missing or invalid and regeneration is off
            RegenerationError: If regeneration was attempted and failed
        """
        check = self.check_auth_data()

        if check.needs_regeneration:
            if not auto_regenerate:
                if check.status is AuthDataStatus.EXPIRED:
                    raise TokensExpiredError(
                        f"Auth tokens expired. Run: {GENERATE_COMMAND}"
                    )
                raise AuthDataError(check.error or "Auth data unavailable")

            logger.warning(f"Auth data {check.status.value}, regenerating")
            await self.regenerate()
            bundle = self.load_complete_auth_data()
        else:
            bundle = check.bundle

        await self.inject_complete_auth_data(bundle)
        return bundle

    async def regenerate(self, headless: bool = True) -> dict[str, Any]:
        """Run a fresh authentication and persist the new bundle.

        Raises:
            RegenerationError: If credentials cannot be loaded, the attempt
                fails, or the bundle cannot be written
        """
        logger.info("Regenerating auth data")
        try:
            credentials = TestCredentials.load(self.config.credentials_path)
        except CredentialsError as e:
            raise RegenerationError(f"Failed to regenerate auth data: {e}") from e

        automator = self.automator or PodAuthAutomator()
        result = await automator.authenticate(credentials, self.config, headless=headless)
        if not result.success or result.complete_auth_data is None:
            raise RegenerationError(f"Failed to regenerate auth data: {result.error}")

        try:
            path = write_auth_data_file(self.config.auth_data_path, result.complete_auth_data)
        except OSError as e:
            raise RegenerationError(f"Failed to save regenerated auth data: {e}") from e

        logger.info(f"Regenerated auth data saved to {path}")
        return result.complete_auth_data

    async def inject_complete_auth_data(self, bundle: AuthDataBundle) -> None:
        await self.store.write(AUTH_DATA_STORAGE_KEY, json.dumps(bundle.to_json_dict()))
        logger.info(
            f"Injected auth data for {bundle.web_id} "
            f"(auth response: {bundle.auth_response is not None})"
        )

    async def verify_injection(self) -> bool:
        """Whether the store holds a bundle with a non-empty WebID."""
        value = await self.store.read(AUTH_DATA_STORAGE_KEY)
        if not value:
            return False

        try:
            data = json.loads(value)
        except ValueError:
            logger.warning("Stored auth data is not valid JSON")
            return False

        web_id = data.get("web_id") if isinstance(data, dict) else None
        return isinstance(web_id, str) and bool(web_id)

    async def clear_credentials(self) -> None:
        """Delete the bundle and every legacy key from the store."""
        await self.store.delete(AUTH_DATA_STORAGE_KEY)
        for key in LEGACY_STORAGE_KEYS:
            await self.store.delete(key)
        logger.info("Cleared stored credentials")
