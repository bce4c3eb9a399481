"""Issuer metadata discovery primitive.

Fetches the provider's OpenID Connect discovery document (falling back to
RFC 8414 Authorization Server Metadata) so the auth data bundle can carry the
issuer's real endpoint list instead of the derived one.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urljoin, urlparse

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from podauth.models.errors import DiscoveryError

logger = logging.getLogger(__name__)


class IssuerMetadata(BaseModel):
    """Subset of the discovery document the flow relies on.

    Every other member of the document is kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    registration_endpoint: str | None = None
    code_challenge_methods_supported: list[str] = Field(default=["S256"])


class IssuerDiscovery:
    """Fetches issuer metadata over plain HTTP.

    Unlike registration and token exchange, discovery documents are public
    and need no browser context.
    """

    def __init__(self, timeout: float = 30.0):
        """Initialize issuer discovery.

        Args:
            timeout: HTTP request timeout in seconds
        """
        self.timeout = timeout
        self._http_client = httpx.AsyncClient(timeout=timeout)

    async def discover(self, issuer_url: str) -> dict[str, Any]:
        """Fetch and validate the issuer's metadata document.

        Args:
            issuer_url: Issuer base URL

        Returns:
            The metadata document as a JSON-compatible dict

        Raises:
            DiscoveryError: If no discovery URL yields valid metadata
        """
        discovery_urls = self._build_discovery_urls(issuer_url)

        for url in discovery_urls:
            try:
                logger.debug(f"Trying issuer metadata discovery: {url}")
                response = await self._http_client.get(url)

                if response.status_code == 200:
                    metadata = IssuerMetadata.model_validate_json(response.text)
                    logger.info(f"Discovered issuer metadata from: {url}")
                    return metadata.model_dump(mode="json")
                elif response.status_code >= 500:
                    # Server error - don't try other URLs
                    break

            except ValidationError:
                # Invalid metadata - try next URL
                continue
            except httpx.RequestError:
                # Network error - try next URL
                continue

        raise DiscoveryError(
            f"Failed to discover issuer metadata for {issuer_url}. "
            f"Tried URLs: {discovery_urls}"
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http_client.aclose()

    def _build_discovery_urls(self, issuer_url: str) -> list[str]:
        """Build ordered list of discovery URLs to try.

        OIDC discovery appends the well-known suffix to the issuer path;
        RFC 8414 inserts it between host and path. Root documents come last.
        """
        parsed = urlparse(issuer_url)
        base_url = f"{parsed.scheme}://{parsed.netloc}"
        path = parsed.path.rstrip("/")
        urls = []

        if path:
            urls.append(f"{base_url}{path}/.well-known/openid-configuration")
            urls.append(
                urljoin(base_url, f"/.well-known/oauth-authorization-server{path}")
            )

        urls.append(urljoin(base_url, "/.well-known/openid-configuration"))
        urls.append(urljoin(base_url, "/.well-known/oauth-authorization-server"))

        return urls
