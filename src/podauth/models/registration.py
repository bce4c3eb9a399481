"""Client registration models for OAuth 2.0 Dynamic Client Registration.

Contains the client metadata sent to the provider's registration endpoint
(RFC 7591).
"""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator


class ClientMetadata(BaseModel):
    """OAuth 2.0 Client Metadata for dynamic registration (RFC 7591)."""

    client_name: str
    redirect_uris: list[str] = Field(min_length=1, max_length=1)
    scope: str

    response_types: list[str] = Field(default=["code"])
    grant_types: list[str] = Field(default=["authorization_code"])
    application_type: str = "web"
    token_endpoint_auth_method: str = "none"  # Public client

    @field_validator("redirect_uris")
    @classmethod
    def validate_redirect_uris(cls, v: list[str]) -> list[str]:
        """Redirect URIs must use HTTPS or point at localhost."""
        for uri in v:
            parsed = urlparse(uri)
            if parsed.scheme == "http" and parsed.hostname != "localhost":
                raise ValueError(f"Redirect URI must use HTTPS or localhost: {uri}")
        return v
