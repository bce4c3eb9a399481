"""Models for the persisted "complete auth data" bundle.

The bundle layout is a fixed external contract read by the client app's auth
data manager:

    {
      "web_id": str,
      "logout_url": str,
      "rsa_info": str,          # JSON-encoded key material
      "auth_response": {        # credential JSON
        "issuer": {...},
        "client_id": str,
        "client_secret": null,
        "token": {"expires_at": int, "access_token": str, ...},
        "nonce": null
      }
    }

Older bundles carried the token set under ``auth_response.response``; those
fields are modelled explicitly so the expiry fallback chain stays exhaustive.
Unknown fields are kept and written back unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class ExpirySource(str, Enum):
    """Where a bundle's absolute token expiry was found."""

    TOKEN_EXPIRES_AT = "auth_response.token.expires_at"
    LEGACY_EXPIRES_AT = "auth_response.response.expires_at"
    LEGACY_EXPIRES_IN = "auth_response.response.expires_in"


@dataclass(frozen=True)
class TokenExpiry:
    expires_at: float  # Seconds since the epoch
    source: ExpirySource


class CredentialToken(BaseModel):
    model_config = ConfigDict(extra="allow")

    expires_at: int | None = None
    access_token: str | None = None
    expires_in: int | None = None
    id_token: str | None = None
    refresh_token: str | None = None
    scope: str | None = None
    token_type: str | None = None


class LegacyTokenResponse(BaseModel):
    """Token response as stored by older bundles under ``response``."""

    model_config = ConfigDict(extra="allow")

    expires_at: int | None = None
    expires_in: int | None = None


class CredentialJson(BaseModel):
    """Credential structure stored under ``auth_response``."""

    model_config = ConfigDict(extra="allow")

    issuer: dict[str, Any] | None = None
    client_id: str | None = None
    client_secret: str | None = None
    token: CredentialToken | None = None
    response: LegacyTokenResponse | None = None
    nonce: str | None = None

    def resolve_expiry(self, issued_at: float) -> TokenExpiry | None:
        """Find the absolute token expiry.

        Tries ``token.expires_at``, then ``response.expires_at``, then
        ``response.expires_in`` counted from ``issued_at``.

        Args:
            issued_at: When the bundle was captured, in seconds since the epoch

        Returns:
            The expiry and where it came from, or None if no expiry is recorded
        """
        if self.token is not None and self.token.expires_at is not None:
            return TokenExpiry(
                float(self.token.expires_at), ExpirySource.TOKEN_EXPIRES_AT
            )

        if self.response is not None:
            if self.response.expires_at is not None:
                return TokenExpiry(
                    float(self.response.expires_at), ExpirySource.LEGACY_EXPIRES_AT
                )
            if self.response.expires_in is not None:
                return TokenExpiry(
                    issued_at + self.response.expires_in,
                    ExpirySource.LEGACY_EXPIRES_IN,
                )

        return None


class AuthDataBundle(BaseModel):
    model_config = ConfigDict(extra="allow")

    web_id: str
    logout_url: str
    rsa_info: str
    auth_response: CredentialJson | None = None

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize for persistence, keeping explicit nulls but no defaults."""
        return self.model_dump(mode="json", exclude_unset=True)
