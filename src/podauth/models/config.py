"""Provider configuration for Solid POD identity providers.

Holds the immutable connection parameters for one provider and derives the
OAuth endpoint URLs from the issuer base URL.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_ISSUER_URL = "https://pods.dev.solidcommunity.au"
DEFAULT_REDIRECT_PORT = 44007
DEFAULT_CLIENT_NAME = "Flutter E2E Test Client"
DEFAULT_CREDENTIALS_PATH = "integration_test/fixtures/test_credentials.json"
DEFAULT_AUTH_DATA_PATH = "integration_test/fixtures/complete_auth_data.json"


class ProviderConfig(BaseModel):
    """Connection parameters for a Solid POD provider.

    Use the factory for the default development server:

        config = ProviderConfig.solid_community_au()

    or build a custom configuration:

        config = ProviderConfig(
            issuer_url="https://my-pod-server.example.com",
            client_name="My App E2E Tests",
        )
    """

    model_config = ConfigDict(frozen=True)

    issuer_url: str
    redirect_port: int = Field(default=DEFAULT_REDIRECT_PORT, ge=1, le=65535)
    client_name: str = DEFAULT_CLIENT_NAME
    scopes: list[str] = Field(default=["openid", "profile"], min_length=1)
    timeout: float = Field(default=30.0, gt=0)  # Seconds
    credentials_path: str = DEFAULT_CREDENTIALS_PATH
    auth_data_path: str = DEFAULT_AUTH_DATA_PATH
    discover_issuer_metadata: bool = False

    @field_validator("issuer_url")
    @classmethod
    def validate_issuer_url(cls, v: str) -> str:
        """Require an absolute http(s) issuer and drop any trailing slash."""
        if not v.startswith(("https://", "http://")):
            raise ValueError(f"Issuer URL must be absolute http(s): {v}")
        return v.rstrip("/")

    @field_validator("scopes")
    @classmethod
    def validate_scopes(cls, v: list[str]) -> list[str]:
        if any(not scope.strip() for scope in v):
            raise ValueError("Scopes must be non-empty strings")
        return v

    @classmethod
    def solid_community_au(cls, **overrides) -> ProviderConfig:
        """Create configuration for the solidcommunity.au development server."""
        return cls(issuer_url=DEFAULT_ISSUER_URL, **overrides)

    @property
    def redirect_uri(self) -> str:
        """OAuth redirect URI. Nothing listens here; the callback is intercepted."""
        return f"http://localhost:{self.redirect_port}/"

    @property
    def authorization_endpoint(self) -> str:
        return f"{self.issuer_url}/.oidc/auth"

    @property
    def token_endpoint(self) -> str:
        return f"{self.issuer_url}/.oidc/token"

    @property
    def registration_endpoint(self) -> str:
        return f"{self.issuer_url}/.oidc/reg"

    @property
    def logout_url(self) -> str:
        return f"{self.issuer_url}/logout"

    @property
    def scope_string(self) -> str:
        return " ".join(self.scopes)
