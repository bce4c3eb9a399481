"""Out-of-band capture of the OAuth redirect.

No server listens on the local redirect URI. The interceptor recognizes the
provider's redirect in the browser's request stream, records the callback
parameters, and aborts the request before it reaches the network.
"""

from __future__ import annotations

import logging

from podauth.browser.base import InterceptedRequest
from podauth.models.errors import BrowserError
from podauth.models.flow import CallbackCapture
from podauth.services.flow import parse_callback_url

logger = logging.getLogger(__name__)


class CallbackInterceptor:
    """Request handler that captures callbacks to ``redirect_uri``.

    Writes only to the attempt-scoped ``capture``. After ``deactivate()`` the
    handler lets every request through untouched and never writes again.
    """

    def __init__(self, redirect_uri: str, capture: CallbackCapture):
        self.redirect_uri = redirect_uri
        self.capture = capture

    @property
    def active(self) -> bool:
        return self.capture.active

    def deactivate(self) -> None:
        self.capture.deactivate()
        logger.debug("Callback interceptor deactivated")

    def is_callback(self, url: str) -> bool:
        return url.startswith(self.redirect_uri)

    async def handle(self, request: InterceptedRequest) -> None:
        """Abort and record callback requests; continue everything else."""
        try:
            if not self.capture.active:
                await request.continue_()
                return

            url = request.url
            if not self.is_callback(url):
                await request.continue_()
                return

            response = parse_callback_url(url)
            if self.capture.record(url, response):
                if response.is_error():
                    logger.warning(
                        f"Intercepted OAuth error callback: {response.error} "
                        f"({response.error_description})"
                    )
                else:
                    logger.info(
                        f"Intercepted OAuth callback (state: {response.state})"
                    )
            else:
                logger.debug(f"Ignoring duplicate OAuth callback: {url}")

            await request.abort()
        except BrowserError as e:
            # Page closed or request already handled
            logger.debug(f"Could not resolve intercepted request: {e}")
