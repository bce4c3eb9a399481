"""One automated authentication attempt against a POD provider.

Runs client registration, PKCE login, token exchange and key generation in
a single browser session and returns a tagged AuthResult.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from podauth.browser.base import Browser, BrowserLauncher
from podauth.browser.playwright_browser import launch_playwright
from podauth.models.config import ProviderConfig
from podauth.models.credentials import TestCredentials
from podauth.models.errors import PodAuthError
from podauth.models.flow import AuthResult, CallbackCapture, DriverTimings
from podauth.models.tokens import DEFAULT_EXPIRES_IN
from podauth.primitives.discovery import IssuerDiscovery
from podauth.primitives.keys import generate_key_material
from podauth.primitives.pkce import PKCEManager
from podauth.services.auth_data import AuthDataAssembler
from podauth.services.flow import build_authorization_url
from podauth.services.interceptor import CallbackInterceptor
from podauth.services.login import LoginDriver
from podauth.services.registration import ClientRegistrar
from podauth.services.tokens import TokenExchanger

logger = logging.getLogger(__name__)


class PodAuthAutomator:
    """Automates the POD OAuth login to obtain tokens without a human.

    Each call to ``authenticate`` is one independent attempt with its own
    browser, PKCE pair and callback capture. Attempts sharing a redirect port
    must not run concurrently.
    """

    def __init__(
        self,
        launcher: BrowserLauncher = launch_playwright,
        registrar: ClientRegistrar | None = None,
        exchanger: TokenExchanger | None = None,
        assembler: AuthDataAssembler | None = None,
        pkce_manager: PKCEManager | None = None,
        timings: DriverTimings | None = None,
    ):
        self.launcher = launcher
        self.registrar = registrar or ClientRegistrar()
        self.exchanger = exchanger or TokenExchanger()
        self.assembler = assembler or AuthDataAssembler()
        self.pkce_manager = pkce_manager or PKCEManager()
        self.timings = timings or DriverTimings()

    async def authenticate(
        self,
        credentials: TestCredentials,
        config: ProviderConfig,
        headless: bool = True,
    ) -> AuthResult:
        """Run one full authentication attempt.

        Never raises. The browser is closed on every exit path.

        Returns:
            AuthResult with the legacy token map and the complete auth data
            bundle on success, or a descriptive error on failure
        """
        browser: Browser | None = None
        try:
            logger.info(f"Starting authentication against {config.issuer_url}")
            browser = await self.launcher(headless)
            return await self._run_attempt(browser, credentials, config)
        except PodAuthError as e:
            logger.error(f"Authentication failed: {e}")
            return AuthResult.failed(str(e))
        except Exception as e:
            logger.exception("Unexpected error during authentication")
            return AuthResult.failed(f"Authentication failed: {e}")
        finally:
            if browser is not None:
                try:
                    await browser.close()
                except Exception as e:
                    logger.warning(f"Failed to close browser: {e}")

    async def _run_attempt(
        self,
        browser: Browser,
        credentials: TestCredentials,
        config: ProviderConfig,
    ) -> AuthResult:
        page = await browser.new_page()

        capture = CallbackCapture()
        interceptor = CallbackInterceptor(config.redirect_uri, capture)
        await page.intercept_requests(interceptor.handle)

        client_id = await self.registrar.register(page, config)
        if client_id is None:
            return AuthResult.failed("Failed to register OAuth client")

        pkce = self.pkce_manager.generate_pair()
        auth_url = build_authorization_url(
            config,
            client_id=client_id,
            code_challenge=pkce.challenge,
            state=self.pkce_manager.generate_state(),
        )

        driver = LoginDriver(
            page,
            config,
            capture,
            interceptor,
            timings=self.timings,
            pkce_manager=self.pkce_manager,
        )
        code = await driver.run(auth_url, credentials)

        exchange = await self.exchanger.exchange(
            page, config, code, client_id, pkce.verifier
        )
        if not exchange.success or exchange.tokens is None:
            return AuthResult.failed(f"Token exchange failed: {exchange.error}")
        tokens = exchange.tokens

        logger.info("Generating DPoP key pair")
        key_material = await asyncio.to_thread(generate_key_material)

        issuer_metadata = None
        if config.discover_issuer_metadata:
            issuer_metadata = await self._discover_issuer_metadata(config)

        bundle = self.assembler.assemble(
            tokens,
            client_id=client_id,
            issuer_url=config.issuer_url,
            logout_url=config.logout_url,
            key_material=key_material,
            issuer_metadata=issuer_metadata,
        )

        legacy_tokens: dict[str, Any] = {
            "access_token": tokens.access_token,
            "refresh_token": tokens.refresh_token,
            "id_token": tokens.id_token,
            "token_type": tokens.token_type or "Bearer",
            "expires_in": tokens.expires_in or DEFAULT_EXPIRES_IN,
            "webid": bundle.web_id,
            "issuer": config.issuer_url,
            "client_id": client_id,
            "authorization_code": code,
            "code_verifier": pkce.verifier,
        }
        if capture.state is not None:
            legacy_tokens["state"] = capture.state

        logger.info(f"Authentication successful for {bundle.web_id}")
        return AuthResult(
            success=True,
            tokens=legacy_tokens,
            complete_auth_data=bundle.to_json_dict(),
        )

    async def _discover_issuer_metadata(self, config: ProviderConfig) -> dict[str, Any]:
        discovery = IssuerDiscovery(timeout=config.timeout)
        try:
            return await discovery.discover(config.issuer_url)
        finally:
            await discovery.close()
