"""Authorization flow models for the automated POD login.

Contains the authorization request, the intercepted callback, the
attempt-scoped capture slot shared by the interceptor and the login driver,
and the tagged result of one authentication attempt.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request parameters for the PKCE code flow."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    scope: str
    state: str
    code_challenge: str
    code_challenge_method: str = "S256"
    prompt: str | None = "consent"  # Force consent even with a cached session

    def build_authorization_url(self) -> str:
        """Build the complete authorization URL."""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "state": self.state,
            "code_challenge": self.code_challenge,
            "code_challenge_method": self.code_challenge_method,
        }

        if self.prompt:
            params["prompt"] = self.prompt

        return f"{self.authorization_endpoint}?{urlencode(params, quote_via=quote)}"


@dataclass(frozen=True)
class AuthorizationResponse:
    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None

    def is_success(self) -> bool:
        return self.error is None and bool(self.code)

    def is_error(self) -> bool:
        return self.error is not None


@dataclass
class CallbackCapture:
    """Callback slot for a single authentication attempt.

    Written once by the callback interceptor and read by the login driver.
    Once deactivated, no further writes are accepted.
    """

    active: bool = True
    response: AuthorizationResponse | None = None
    callback_url: str | None = field(default=None, repr=False)

    def record(self, callback_url: str, response: AuthorizationResponse) -> bool:
        """Store the intercepted callback.

        Returns:
            True if the callback was stored, False if the capture is inactive
            or already holds a callback
        """
        if not self.active or self.response is not None:
            return False
        self.callback_url = callback_url
        self.response = response
        return True

    def deactivate(self) -> None:
        self.active = False

    @property
    def received(self) -> bool:
        return self.response is not None

    @property
    def code(self) -> str | None:
        return self.response.code if self.response else None

    @property
    def state(self) -> str | None:
        return self.response.state if self.response else None


@dataclass(frozen=True)
class DriverTimings:
    """Delays and intervals used by the login driver, in seconds.

    The settle delays only give pages time to render; the flow does not
    depend on them.
    """

    form_settle: float = 1.0
    page_settle: float = 2.0
    security_key_probe: float = 2.0
    poll_interval: float = 0.5
    interceptor_drain: float = 0.5


@dataclass(frozen=True)
class AuthResult:
    """Result of one authentication attempt."""

    success: bool
    tokens: dict[str, Any] | None = None
    complete_auth_data: dict[str, Any] | None = None
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> AuthResult:
        return cls(success=False, error=error)

    def format_tokens(self) -> str:
        """Pretty print tokens for debugging."""
        return json.dumps(self.tokens or {}, indent=2)
