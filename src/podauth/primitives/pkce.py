"""PKCE (Proof Key for Code Exchange) manager for the POD login flow.

Implements RFC 7636 parameter generation and turns an intercepted callback
into a usable authorization code.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import time

from podauth.models.errors import AuthorizationError, AuthorizationResponseError
from podauth.models.flow import AuthorizationResponse
from podauth.models.security import PKCEPair

VERIFIER_BYTES = 32


class PKCEManager:
    """Manages PKCE parameter generation and callback validation.

    This implementation follows RFC 7636 requirements:
    - Uses S256 code challenge method (SHA256 + base64url)
    - Generates code verifiers from a cryptographically secure source
    """

    def generate_pair(self) -> PKCEPair:
        """Generate a fresh verifier/challenge pair for one attempt."""
        verifier = self.generate_verifier()
        return PKCEPair(verifier=verifier, challenge=self.generate_challenge(verifier))

    def generate_verifier(self) -> str:
        """Generate a cryptographically secure code verifier.

        32 random bytes encoded as unpadded base64url give a 43 character
        verifier made only of RFC 7636 unreserved characters.
        """
        return _b64url(secrets.token_bytes(VERIFIER_BYTES))

    def generate_challenge(self, verifier: str) -> str:
        """Generate code challenge from code verifier using S256 method.

        RFC 7636 Section 4.2: BASE64URL-ENCODE(SHA256(ASCII(code_verifier)))
        """
        return _b64url(hashlib.sha256(verifier.encode("utf-8")).digest())

    def generate_state(self) -> str:
        """State value for the authorization request.

        The callback never reaches a server of ours, so the state only needs
        to differ between attempts; a millisecond timestamp is enough.
        """
        return str(time.time_ns() // 1_000_000)

    def validate_callback(self, response: AuthorizationResponse | None) -> str:
        """Return the authorization code from an intercepted callback.

        Raises:
            AuthorizationError: If the provider reported an error
            AuthorizationResponseError: If the callback carries no code
        """
        if response is not None and response.is_error():
            raise AuthorizationError(
                f"Authorization failed: {response.error} "
                f"({response.error_description or ''})"
            )

        if response is None or not response.code:
            raise AuthorizationResponseError("No authorization code in callback")

        return response.code


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")
