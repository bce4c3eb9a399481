"""Exception hierarchy for POD authentication automation.

Provides specific exception types for each failure mode of an authentication
attempt so callers can tell configuration problems, provider rejections and
browser step failures apart.
"""

from __future__ import annotations


class PodAuthError(Exception):
    """Base exception for all POD authentication errors."""

    pass


class ConfigurationError(PodAuthError):
    """Raised when provider configuration or input files are invalid."""

    pass


class CredentialsError(ConfigurationError):
    """Raised when the test credentials file is missing or malformed."""

    pass


class RegistrationError(PodAuthError):
    """Raised when dynamic client registration fails."""

    pass


class DiscoveryError(PodAuthError):
    """Raised when issuer metadata discovery fails."""

    pass


class AuthorizationError(PodAuthError):
    """Raised when the provider reports an error in the authorization callback."""

    pass


class AuthorizationResponseError(PodAuthError):
    """Raised when the authorization callback is malformed or incomplete."""

    pass


class LoginStepError(PodAuthError):
    """Raised when a step of the interactive browser flow fails.

    The message names the step so a failed attempt can be diagnosed from
    the error alone.
    """

    pass


class LoginFormError(LoginStepError):
    """Raised when the login form does not appear in time."""

    pass


class LoginButtonError(LoginStepError):
    """Raised when the login submit control cannot be clicked."""

    pass


class CallbackTimeoutError(LoginStepError):
    """Raised when no OAuth callback is intercepted before the timeout."""

    pass


class TokenExchangeError(PodAuthError):
    """Raised when authorization code to token exchange fails."""

    pass


class KeyGenerationError(PodAuthError):
    """Raised when the DPoP keypair cannot be generated or serialized."""

    pass


class AuthDataError(PodAuthError):
    """Raised when persisted auth data is missing or cannot be parsed."""

    pass


class TokensExpiredError(AuthDataError):
    """Raised when persisted tokens are stale and regeneration is disabled."""

    pass


class RegenerationError(PodAuthError):
    """Raised when automatic auth data regeneration fails."""

    pass


class BrowserError(PodAuthError):
    """Raised when a browser operation fails."""

    pass


class BrowserTimeoutError(BrowserError):
    """Raised when a browser wait exceeds its timeout."""

    pass
