"""Scripted login, consent and security-key steps on the provider's pages.

The driver walks the provider UI with fixed selector conventions and waits
for the callback interceptor to capture the authorization code.
"""

from __future__ import annotations

import asyncio
import logging

from podauth.browser.base import BrowserPage, PageElement
from podauth.models.config import ProviderConfig
from podauth.models.credentials import TestCredentials
from podauth.models.errors import (
    BrowserError,
    BrowserTimeoutError,
    CallbackTimeoutError,
    LoginButtonError,
    LoginFormError,
    LoginStepError,
)
from podauth.models.flow import CallbackCapture, DriverTimings
from podauth.primitives.pkce import PKCEManager
from podauth.services.interceptor import CallbackInterceptor

logger = logging.getLogger(__name__)

LOGIN_FIELD_SELECTOR = 'input[type="text"], input[name="email"]'
PASSWORD_FIELD_SELECTOR = 'input[type="password"], input[name="password"]'
SUBMIT_BUTTON_SELECTOR = 'button[type="submit"]'
SUBMIT_INPUT_SELECTOR = 'input[type="submit"]'

CONSENT_PATH_MARKER = "/consent"
CONSENT_WORDS = ("yes", "allow", "authorize", "consent")

SECURITY_KEY_SELECTORS = (
    'input[type="text"][placeholder*="key"]',
    'input[type="text"][placeholder*="security"]',
    'input[name="securityKey"]',
    'input[id="securityKey"]',
)


class LoginDriver:
    """Drives one login through the provider's web UI.

    Reads the callback from ``capture`` (written only by ``interceptor``) and
    deactivates the interceptor when done, whatever the outcome.
    """

    def __init__(
        self,
        page: BrowserPage,
        config: ProviderConfig,
        capture: CallbackCapture,
        interceptor: CallbackInterceptor,
        timings: DriverTimings | None = None,
        pkce_manager: PKCEManager | None = None,
    ):
        self.page = page
        self.config = config
        self.capture = capture
        self.interceptor = interceptor
        self.timings = timings or DriverTimings()
        self.pkce_manager = pkce_manager or PKCEManager()

    async def run(self, auth_url: str, credentials: TestCredentials) -> str:
        """Log in and return the intercepted authorization code.

        Raises:
            LoginStepError: If a required step fails (form, button, callback)
            AuthorizationError: If the provider redirected with an error
            AuthorizationResponseError: If the callback carries no code
        """
        try:
            await self._open_authorization_page(auth_url)
            await self._wait_for_login_form()
            await self._submit_login(credentials)
            await self._handle_consent()
            await self._enter_security_key(credentials.security_key)
            await self._wait_for_callback()
            code = self.pkce_manager.validate_callback(self.capture.response)
        finally:
            await self._disable_interception()

        logger.info(f"Authorization code received: {code[:10]}...")
        return code

    async def _open_authorization_page(self, auth_url: str) -> None:
        logger.info("Navigating to authorization page")
        logger.debug(f"Authorization URL: {auth_url}")
        try:
            await self.page.goto(auth_url, timeout=self.config.timeout)
        except BrowserError as e:
            raise LoginStepError(f"Authorization page did not load: {e}") from e

    async def _wait_for_login_form(self) -> None:
        try:
            await self.page.wait_for_selector(
                LOGIN_FIELD_SELECTOR, timeout=self.config.timeout
            )
        except BrowserError as e:
            raise LoginFormError(f"Login form not found: {e}") from e

        logger.debug("Login form found")
        await asyncio.sleep(self.timings.form_settle)

    async def _submit_login(self, credentials: TestCredentials) -> None:
        try:
            await self.page.type(LOGIN_FIELD_SELECTOR, credentials.email)
            await self.page.type(PASSWORD_FIELD_SELECTOR, credentials.password)
        except BrowserError as e:
            raise LoginFormError(f"Could not fill login form: {e}") from e
        logger.info(f"Submitting login for {credentials.email}")

        try:
            async with self.page.expect_navigation(timeout=self.config.timeout):
                await self._click_login_button()
        except BrowserError as e:
            raise LoginStepError(f"No navigation after login: {e}") from e

        await asyncio.sleep(self.timings.page_settle)

    async def _click_login_button(self) -> None:
        try:
            await self.page.click(SUBMIT_BUTTON_SELECTOR, timeout=self.config.timeout)
        except BrowserError as e:
            raise LoginButtonError(f"Login button not found: {e}") from e

    async def _handle_consent(self) -> bool:
        """Approve the consent screen if the provider shows one.

        A missing navigation after approval is only logged; the callback wait
        decides whether the flow went through.
        """
        await asyncio.sleep(self.timings.page_settle)
        if CONSENT_PATH_MARKER not in self.page.url:
            logger.debug("No consent page")
            return False

        logger.info("Consent page detected")
        try:
            control = await self._find_consent_control()
            async with self.page.expect_navigation(timeout=self.config.timeout):
                if control is not None:
                    await control.click()
                else:
                    await self.page.click(
                        SUBMIT_BUTTON_SELECTOR, timeout=self.config.timeout
                    )
        except BrowserTimeoutError as e:
            logger.warning(f"Navigation after consent timed out: {e}")
        except BrowserError as e:
            logger.warning(f"Could not approve consent: {e}")
        return True

    async def _find_consent_control(self) -> PageElement | None:
        for button in await self.page.query_all("button"):
            text = (await button.text_content()).strip().lower()
            if _is_consent_label(text):
                logger.debug(f"Consent button found: {text}")
                return button

        for submit in await self.page.query_all(SUBMIT_INPUT_SELECTOR):
            value = (await submit.input_value()).strip().lower()
            if _is_consent_label(value):
                logger.debug(f"Consent input found: {value}")
                return submit

        submit_buttons = await self.page.query_all(SUBMIT_BUTTON_SELECTOR)
        if submit_buttons:
            logger.debug("Falling back to first submit button for consent")
            return submit_buttons[0]
        return None

    async def _enter_security_key(self, security_key: str) -> bool:
        """Fill the security-key prompt if the provider shows one.

        The prompt is optional; failing to fill it is not an error here.
        """
        for selector in SECURITY_KEY_SELECTORS:
            try:
                await self.page.wait_for_selector(
                    selector, timeout=self.timings.security_key_probe
                )
            except BrowserError:
                continue

            logger.info(f"Security key prompt found: {selector}")
            try:
                await self.page.type(selector, security_key)
                await self.page.click(
                    SUBMIT_BUTTON_SELECTOR, timeout=self.config.timeout
                )
            except BrowserError as e:
                logger.warning(f"Could not submit security key: {e}")
            return True

        logger.debug("No security key prompt")
        return False

    async def _wait_for_callback(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.timeout

        logger.info("Waiting for OAuth callback")
        while not self.capture.received:
            if loop.time() >= deadline:
                raise CallbackTimeoutError("Timeout waiting for OAuth callback")
            await asyncio.sleep(self.timings.poll_interval)

    async def _disable_interception(self) -> None:
        self.interceptor.deactivate()
        # Let in-flight handlers resolve their requests first
        await asyncio.sleep(self.timings.interceptor_drain)
        try:
            await self.page.stop_intercepting()
        except BrowserError as e:
            logger.warning(f"Could not disable request interception: {e}")


def _is_consent_label(label: str) -> bool:
    return label in CONSENT_WORDS
