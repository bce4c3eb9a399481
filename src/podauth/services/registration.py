"""Dynamic client registration through the controlled browser.

Implements RFC 7591 registration of a public client. The request is issued
with ``fetch`` inside the browser page so the provider sees a real browser
origin rather than a bare HTTP client.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from podauth.browser.base import BrowserPage
from podauth.models.config import ProviderConfig
from podauth.models.errors import BrowserError, RegistrationError
from podauth.models.registration import ClientMetadata

logger = logging.getLogger(__name__)

REGISTER_SCRIPT = """
async ({ endpoint, data }) => {
  try {
    const response = await fetch(endpoint, {
      method: 'POST',
      headers: {
        'Content-Type': 'application/json',
        'Accept': 'application/json',
      },
      body: JSON.stringify(data),
    });
    return { ok: response.ok, status: response.status, body: await response.text() };
  } catch (err) {
    return { ok: false, status: 0, error: err.toString() };
  }
}
"""


class ClientRegistrar:
    """Registers a public OAuth client with the POD provider."""

    async def register(self, page: BrowserPage, config: ProviderConfig) -> str | None:
        """Register a client and return its client_id.

        Returns:
            The provider-issued client_id, or None if registration failed.
            Failures are logged with the provider's response body.
        """
        try:
            return await self.register_client(page, config)
        except RegistrationError as e:
            logger.error(f"Client registration failed: {e}")
            return None

    async def register_client(self, page: BrowserPage, config: ProviderConfig) -> str:
        """Register a client and return its client_id.

        Raises:
            RegistrationError: If the request fails or the response is unusable
        """
        metadata = ClientMetadata(
            client_name=config.client_name,
            redirect_uris=[config.redirect_uri],
            scope=config.scope_string,
        )
        logger.debug(f"Registering client at {config.registration_endpoint}")

        try:
            result = await page.evaluate(
                REGISTER_SCRIPT,
                {
                    "endpoint": config.registration_endpoint,
                    "data": metadata.model_dump(mode="json"),
                },
            )
        except BrowserError as e:
            raise RegistrationError(f"Browser error during registration: {e}") from e

        if not isinstance(result, dict):
            raise RegistrationError(f"Unexpected registration result: {result!r}")

        if result.get("error") is not None:
            raise RegistrationError(f"Network error during registration: {result['error']}")

        if not result.get("ok"):
            self._handle_registration_error(result)

        client_id = self._parse_client_id(result.get("body") or "")
        logger.info(f"Registered client {client_id} at {config.registration_endpoint}")
        return client_id

    def _parse_client_id(self, body: str) -> str:
        try:
            data = json.loads(body)
        except ValueError as e:
            raise RegistrationError(f"Invalid registration response format: {e}") from e

        if not isinstance(data, dict) or not data.get("client_id"):
            raise RegistrationError("Registration response missing required client_id")

        return str(data["client_id"])

    def _handle_registration_error(self, result: dict[str, Any]) -> None:
        """Raise a RegistrationError describing a non-2xx response.

        The raw body is always included; OAuth error fields are surfaced first
        when the body is a JSON error object.
        """
        status = result.get("status")
        body = result.get("body") or ""

        try:
            error_data = json.loads(body)
        except ValueError:
            error_data = None

        if isinstance(error_data, dict) and "error" in error_data:
            error_code = error_data["error"]
            error_description = error_data.get(
                "error_description", "No description provided"
            )
            raise RegistrationError(
                f"Registration failed ({status}): {error_code} - "
                f"{error_description}. Response: {body}"
            )

        raise RegistrationError(f"Registration failed with HTTP {status}: {body}")
