"""Authorization request construction and callback parsing."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

from podauth.models.config import ProviderConfig
from podauth.models.flow import AuthorizationRequest, AuthorizationResponse
from podauth.primitives.pkce import PKCEManager


def build_authorization_url(
    config: ProviderConfig,
    client_id: str,
    code_challenge: str,
    state: str | None = None,
) -> str:
    """Build the provider authorization URL for the PKCE code flow.

    ``prompt=consent`` is always sent so the consent screen appears even when
    the provider has a cached session. A fresh state is generated when none
    is given.
    """
    request = AuthorizationRequest(
        authorization_endpoint=config.authorization_endpoint,
        client_id=client_id,
        redirect_uri=config.redirect_uri,
        scope=config.scope_string,
        state=state if state is not None else PKCEManager().generate_state(),
        code_challenge=code_challenge,
    )
    return request.build_authorization_url()


def parse_callback_url(callback_url: str) -> AuthorizationResponse:
    """Parse an OAuth callback URL into an AuthorizationResponse."""
    query_params = parse_qs(urlparse(callback_url).query)

    def get_single_param(key: str) -> str | None:
        values = query_params.get(key, [])
        return values[0] if values else None

    return AuthorizationResponse(
        code=get_single_param("code"),
        state=get_single_param("state"),
        error=get_single_param("error"),
        error_description=get_single_param("error_description"),
    )
