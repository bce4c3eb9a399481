"""Authorization code exchange through the controlled browser."""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from podauth.browser.base import BrowserPage
from podauth.models.config import ProviderConfig
from podauth.models.errors import BrowserError, TokenExchangeError
from podauth.models.tokens import TokenExchangeResult, TokenRequest, TokenResponse

logger = logging.getLogger(__name__)

TOKEN_SCRIPT = """
async ({ endpoint, form }) => {
  try {
    const response = await fetch(endpoint, {
      method: 'POST',
      headers: {
        'Content-Type': 'application/x-www-form-urlencoded',
        'Accept': 'application/json',
      },
      body: new URLSearchParams(form).toString(),
    });
    const text = await response.text();
    if (!response.ok) {
      return { success: false, error: 'HTTP ' + response.status + ': ' + text };
    }
    return { success: true, body: text };
  } catch (err) {
    return { success: false, error: err.toString() };
  }
}
"""


class TokenExchanger:
    """Exchanges an authorization code for tokens at the token endpoint."""

    async def exchange(
        self,
        page: BrowserPage,
        config: ProviderConfig,
        code: str,
        client_id: str,
        verifier: str,
    ) -> TokenExchangeResult:
        """Exchange ``code`` for tokens.

        Never raises; every failure is returned as a failed result carrying
        the provider's error text or the exception message.
        """
        request = TokenRequest(
            token_endpoint=config.token_endpoint,
            code=code,
            redirect_uri=config.redirect_uri,
            client_id=client_id,
            code_verifier=verifier,
        )

        try:
            tokens = await self.exchange_code(page, request)
        except TokenExchangeError as e:
            logger.error(f"Token exchange failed: {e}")
            return TokenExchangeResult.failed(str(e))

        return TokenExchangeResult.ok(tokens)

    async def exchange_code(
        self, page: BrowserPage, request: TokenRequest
    ) -> TokenResponse:
        """Send the token request and parse the token set.

        Raises:
            TokenExchangeError: If the request fails or the response is invalid
        """
        logger.debug(f"Exchanging authorization code at {request.token_endpoint}")
        try:
            result = await page.evaluate(
                TOKEN_SCRIPT,
                {"endpoint": request.token_endpoint, "form": request.to_form_data()},
            )
        except BrowserError as e:
            raise TokenExchangeError(str(e)) from e

        if not isinstance(result, dict):
            raise TokenExchangeError(f"Unexpected token exchange result: {result!r}")

        if not result.get("success"):
            raise TokenExchangeError(result.get("error") or "Unknown error")

        try:
            tokens = TokenResponse.model_validate(json.loads(result.get("body") or ""))
        except (ValueError, ValidationError) as e:
            raise TokenExchangeError(f"Invalid token response: {e}") from e

        logger.info(
            f"Token exchange successful (token_type: {tokens.token_type}, "
            f"expires_in: {tokens.expires_in})"
        )
        return tokens
