"""Assembly of the persisted "complete auth data" bundle.

The bundle shape is consumed verbatim by the client app's auth data manager
(stored under ``_solid_auth_data``), so field names and nesting must not
change.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from podauth.models.auth_data import AuthDataBundle, CredentialJson, CredentialToken
from podauth.models.security import KeyMaterial
from podauth.models.tokens import DEFAULT_EXPIRES_IN, TokenResponse
from podauth.primitives.id_token import extract_web_id

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TYPE = "DPoP"
UNKNOWN_WEB_ID = "unknown"


def build_issuer_metadata(issuer_url: str) -> dict[str, Any]:
    """Issuer metadata in openid-configuration shape, derived from the issuer.

    Matches what the POD server publishes under
    ``/.well-known/openid-configuration``.
    """
    return {
        "authorization_endpoint": f"{issuer_url}/.oidc/auth",
        "claims_parameter_supported": True,
        "claims_supported": ["azp", "sub", "webid", "sid", "auth_time", "iss"],
        "code_challenge_methods_supported": ["S256"],
        "end_session_endpoint": f"{issuer_url}/.oidc/session/end",
        "grant_types_supported": [
            "implicit",
            "authorization_code",
            "refresh_token",
            "client_credentials",
        ],
        "issuer": issuer_url,
        "jwks_uri": f"{issuer_url}/.oidc/jwks",
        "registration_endpoint": f"{issuer_url}/.oidc/reg",
        "authorization_response_iss_parameter_supported": True,
        "response_modes_supported": ["form_post", "fragment", "query"],
        "response_types_supported": ["code id_token", "code", "id_token", "none"],
        "scopes_supported": ["openid", "profile", "offline_access", "webid"],
        "subject_types_supported": ["public"],
        "token_endpoint_auth_methods_supported": [
            "client_secret_basic",
            "client_secret_jwt",
            "client_secret_post",
            "private_key_jwt",
            "none",
        ],
        "token_endpoint_auth_signing_alg_values_supported": [
            "HS256",
            "RS256",
            "PS256",
            "ES256",
            "EdDSA",
        ],
        "token_endpoint": f"{issuer_url}/.oidc/token",
        "id_token_signing_alg_values_supported": ["ES256"],
        "pushed_authorization_request_endpoint": f"{issuer_url}/.oidc/request",
        "request_parameter_supported": False,
        "request_uri_parameter_supported": False,
        "introspection_endpoint": f"{issuer_url}/.oidc/token/introspection",
        "dpop_signing_alg_values_supported": [
            "RS256",
            "RS384",
            "RS512",
            "PS256",
            "PS384",
            "PS512",
            "ES256",
            "ES256K",
            "ES384",
            "ES512",
            "EdDSA",
        ],
        "revocation_endpoint": f"{issuer_url}/.oidc/token/revocation",
        "claim_types_supported": ["normal"],
    }


class AuthDataAssembler:
    """Builds the credential JSON and the complete auth data bundle.

    Args:
        clock: Returns the current time in seconds since the epoch
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock

    def build_issuer_metadata(self, issuer_url: str) -> dict[str, Any]:
        return build_issuer_metadata(issuer_url)

    def build_credential_json(
        self,
        tokens: TokenResponse,
        client_id: str,
        issuer_url: str,
        issuer_metadata: dict[str, Any] | None = None,
    ) -> CredentialJson:
        """Build the credential structure stored under ``auth_response``.

        Args:
            tokens: Token set from the code exchange
            client_id: Registered client identifier
            issuer_url: Issuer the tokens were obtained from
            issuer_metadata: Discovered metadata; derived from the issuer if None
        """
        expires_in = tokens.expires_in or DEFAULT_EXPIRES_IN
        expires_at = tokens.calculate_expires_at(now=self.clock())
        logger.debug(
            "Token expires at "
            f"{datetime.fromtimestamp(expires_at, tz=timezone.utc).isoformat()} "
            f"(Unix: {expires_at})"
        )

        if issuer_metadata is None:
            issuer_metadata = self.build_issuer_metadata(issuer_url)

        return CredentialJson(
            issuer=issuer_metadata,
            client_id=client_id,
            client_secret=None,  # Public client
            token=CredentialToken(
                expires_at=expires_at,
                access_token=tokens.access_token,
                expires_in=expires_in,
                id_token=tokens.id_token,
                refresh_token=tokens.refresh_token,
                scope=tokens.scope or "",
                token_type=tokens.token_type or DEFAULT_TOKEN_TYPE,
            ),
            nonce=None,
        )

    def build_complete_auth_data(
        self,
        web_id: str,
        logout_url: str,
        key_material: KeyMaterial,
        credential_json: CredentialJson,
    ) -> AuthDataBundle:
        """Build the bundle; ``rsa_info`` carries the key material as a JSON string."""
        return AuthDataBundle(
            web_id=web_id,
            logout_url=logout_url,
            rsa_info=json.dumps(key_material.to_rsa_info()),
            auth_response=credential_json,
        )

    def assemble(
        self,
        tokens: TokenResponse,
        client_id: str,
        issuer_url: str,
        logout_url: str,
        key_material: KeyMaterial,
        issuer_metadata: dict[str, Any] | None = None,
    ) -> AuthDataBundle:
        """Build the complete bundle for a fresh token set.

        The WebID comes from the ID token; ``"unknown"`` is used when it
        cannot be extracted.
        """
        web_id = extract_web_id(tokens.id_token) if tokens.id_token else None
        if web_id is None:
            logger.warning("Could not extract WebID from ID token, using placeholder")
            web_id = UNKNOWN_WEB_ID

        credential_json = self.build_credential_json(
            tokens, client_id, issuer_url, issuer_metadata
        )
        bundle = self.build_complete_auth_data(
            web_id, logout_url, key_material, credential_json
        )
        logger.info(f"Assembled auth data for {web_id}")
        return bundle
