"""Token request and response models for the code exchange.

Contains the token endpoint request, the provider's token set, and the
tagged success/failure result returned by the token exchanger.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict

DEFAULT_EXPIRES_IN = 3600


@dataclass(frozen=True)
class TokenRequest:
    """Authorization code token request (RFC 6749 Section 4.1.3).

    Includes the PKCE code_verifier (RFC 7636).
    """

    # Required fields first
    token_endpoint: str
    code: str = field(repr=False)
    redirect_uri: str
    client_id: str
    code_verifier: str = field(repr=False)

    grant_type: str = "authorization_code"

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for application/x-www-form-urlencoded request.

        Token requests must use form encoding, not JSON (RFC 6749 Section 4.1.3).
        """
        return {
            "grant_type": self.grant_type,
            "code": self.code,
            "client_id": self.client_id,
            "code_verifier": self.code_verifier,
            "redirect_uri": self.redirect_uri,
        }


class TokenResponse(BaseModel):
    """Token set returned by a successful code exchange (RFC 6749 Section 5.1).

    ``id_token`` is only present when an identity scope was requested.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: str | None = None
    expires_in: int | None = None  # Seconds until expiry
    refresh_token: str | None = None
    id_token: str | None = None
    scope: str | None = None

    def calculate_expires_at(self, now: float | None = None) -> int:
        """Absolute expiry as whole seconds since the epoch.

        Falls back to one hour when the provider omits ``expires_in``.
        """
        issued_at = time.time() if now is None else now
        return round(issued_at + (self.expires_in or DEFAULT_EXPIRES_IN))


@dataclass(frozen=True)
class TokenExchangeResult:
    """Tagged result of a token exchange. Exactly one of tokens/error is set."""

    success: bool
    tokens: TokenResponse | None = None
    error: str | None = None

    @classmethod
    def ok(cls, tokens: TokenResponse) -> TokenExchangeResult:
        return cls(success=True, tokens=tokens)

    @classmethod
    def failed(cls, error: str) -> TokenExchangeResult:
        return cls(success=False, error=error or "Unknown error")
