"""Browser capability interface used by the login automation.

The registrar, token exchanger, interceptor and login driver only talk to
these abstractions, so they can run against a real browser engine or a fake
one in tests.

All timeouts are in seconds. Waits that run out raise BrowserTimeoutError;
other engine failures raise BrowserError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from types import TracebackType
from typing import Any, Self


class InterceptedRequest(ABC):
    """An outgoing request held by the browser until it is continued or aborted."""

    @property
    @abstractmethod
    def url(self) -> str:
        """Full target URL of the request."""

    @abstractmethod
    async def abort(self) -> None:
        """Fail the request without sending it."""

    @abstractmethod
    async def continue_(self) -> None:
        """Send the request unmodified."""


RequestHandler = Callable[[InterceptedRequest], Awaitable[None]]


class PageElement(ABC):
    """Handle to an element found on the page."""

    @abstractmethod
    async def text_content(self) -> str:
        """Visible text of the element ("" if it has none)."""

    @abstractmethod
    async def input_value(self) -> str:
        """The element's ``value`` property ("" if it has none)."""

    @abstractmethod
    async def click(self) -> None:
        """Click the element."""


class BrowserPage(ABC):
    """A single browser tab."""

    @property
    @abstractmethod
    def url(self) -> str:
        """URL of the currently loaded document."""

    @abstractmethod
    async def goto(self, url: str, timeout: float) -> None:
        """Navigate and wait until the network is idle."""

    @abstractmethod
    async def wait_for_selector(self, selector: str, timeout: float) -> None:
        """Wait until an element matching ``selector`` is present."""

    @abstractmethod
    async def type(self, selector: str, text: str) -> None:
        """Enter text into the first element matching ``selector``."""

    @abstractmethod
    async def click(self, selector: str, timeout: float) -> None:
        """Click the first element matching ``selector``."""

    @abstractmethod
    async def query_all(self, selector: str) -> list[PageElement]:
        """All elements currently matching ``selector``."""

    @abstractmethod
    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run a JavaScript function in the page and return its JSON result.

        ``script`` must be a function expression taking a single argument.
        """

    @abstractmethod
    def expect_navigation(self, timeout: float) -> AbstractAsyncContextManager[None]:
        """Context manager that waits, on exit, for a main-frame navigation
        triggered inside the block."""

    @abstractmethod
    async def intercept_requests(self, handler: RequestHandler) -> None:
        """Route every outgoing request through ``handler``."""

    @abstractmethod
    async def stop_intercepting(self) -> None:
        """Remove the request handler; requests go straight to the network."""


class Browser(ABC):
    """A launched browser process. Must be closed on every exit path."""

    @abstractmethod
    async def new_page(self) -> BrowserPage:
        """Open a new tab."""

    @abstractmethod
    async def close(self) -> None:
        """Close the browser and release its process."""

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
        return None


BrowserLauncher = Callable[[bool], Awaitable[Browser]]
"""Launches a browser; the argument selects headless mode."""
