"""Playwright implementation of the browser capability interface.

Launches Chromium through the Playwright async API and translates Playwright
errors into BrowserError / BrowserTimeoutError.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from playwright.async_api import Browser as ChromiumBrowser
from playwright.async_api import ElementHandle, Page, Playwright, Route, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from podauth.browser.base import (
    Browser,
    BrowserPage,
    InterceptedRequest,
    PageElement,
    RequestHandler,
)
from podauth.models.errors import BrowserError, BrowserTimeoutError

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]
VIEWPORT = {"width": 1280, "height": 720}
ALL_REQUESTS = "**/*"


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise BrowserTimeoutError(f"{action} timed out: {e}") from e
    except PlaywrightError as e:
        raise BrowserError(f"{action} failed: {e}") from e


def _ms(seconds: float) -> float:
    return seconds * 1000


class PlaywrightRequest(InterceptedRequest):
    def __init__(self, route: Route):
        self._route = route

    @property
    def url(self) -> str:
        return self._route.request.url

    async def abort(self) -> None:
        with _translate_errors(f"Aborting {self.url}"):
            await self._route.abort()

    async def continue_(self) -> None:
        with _translate_errors(f"Continuing {self.url}"):
            await self._route.continue_()


class PlaywrightElement(PageElement):
    def __init__(self, handle: ElementHandle):
        self._handle = handle

    async def text_content(self) -> str:
        with _translate_errors("Reading element text"):
            return await self._handle.text_content() or ""

    async def input_value(self) -> str:
        with _translate_errors("Reading element value"):
            value = await self._handle.evaluate("el => el.value")
        return "" if value is None else str(value)

    async def click(self) -> None:
        with _translate_errors("Clicking element"):
            await self._handle.click()


class PlaywrightPage(BrowserPage):
    def __init__(self, page: Page):
        self._page = page
        self._route_handler = None

    @property
    def url(self) -> str:
        return self._page.url

    async def goto(self, url: str, timeout: float) -> None:
        with _translate_errors("Navigation"):
            await self._page.goto(url, wait_until="networkidle", timeout=_ms(timeout))

    async def wait_for_selector(self, selector: str, timeout: float) -> None:
        with _translate_errors(f"Waiting for {selector}"):
            await self._page.wait_for_selector(selector, timeout=_ms(timeout))

    async def type(self, selector: str, text: str) -> None:
        with _translate_errors(f"Typing into {selector}"):
            await self._page.locator(selector).first.fill(text)

    async def click(self, selector: str, timeout: float) -> None:
        with _translate_errors(f"Clicking {selector}"):
            await self._page.locator(selector).first.click(timeout=_ms(timeout))

    async def query_all(self, selector: str) -> list[PageElement]:
        with _translate_errors(f"Querying {selector}"):
            handles = await self._page.query_selector_all(selector)
        return [PlaywrightElement(handle) for handle in handles]

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        with _translate_errors("Script evaluation"):
            return await self._page.evaluate(script, arg)

    @asynccontextmanager
    async def expect_navigation(self, timeout: float) -> AsyncIterator[None]:
        with _translate_errors("Waiting for navigation"):
            async with self._page.expect_navigation(timeout=_ms(timeout)):
                yield

    async def intercept_requests(self, handler: RequestHandler) -> None:
        async def on_route(route: Route) -> None:
            await handler(PlaywrightRequest(route))

        await self.stop_intercepting()
        self._route_handler = on_route
        with _translate_errors("Enabling request interception"):
            await self._page.route(ALL_REQUESTS, on_route)

    async def stop_intercepting(self) -> None:
        if self._route_handler is None:
            return
        handler, self._route_handler = self._route_handler, None
        with _translate_errors("Disabling request interception"):
            await self._page.unroute(ALL_REQUESTS, handler)


class PlaywrightBrowser(Browser):
    """Chromium launched through Playwright."""

    def __init__(self, playwright: Playwright, browser: ChromiumBrowser):
        self._playwright = playwright
        self._browser = browser

    @classmethod
    async def launch(cls, headless: bool = True) -> PlaywrightBrowser:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=headless, args=LAUNCH_ARGS
            )
        except PlaywrightError as e:
            await playwright.stop()
            raise BrowserError(f"Failed to launch browser: {e}") from e

        logger.debug(f"Launched Chromium (headless={headless})")
        return cls(playwright, browser)

    async def new_page(self) -> BrowserPage:
        with _translate_errors("Opening page"):
            page = await self._browser.new_page(viewport=VIEWPORT)
        return PlaywrightPage(page)

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()
        logger.debug("Browser closed")


async def launch_playwright(headless: bool) -> Browser:
    """Default BrowserLauncher."""
    return await PlaywrightBrowser.launch(headless=headless)
