"""WebID extraction from OpenID Connect ID tokens.

The signature is not verified. The WebID is only copied into the auth data
bundle for convenience and is never used for trust decisions.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging

logger = logging.getLogger(__name__)

WEBID_CLAIM = "webid"


def extract_web_id(id_token: str) -> str | None:
    """Extract the WebID from an ID token JWT.

    ID tokens have 3 parts: header.payload.signature. The payload carries the
    ``webid`` claim, with ``sub`` as fallback.

    Returns:
        The WebID, or None if the token cannot be decoded or has no subject
    """
    parts = id_token.split(".")
    if len(parts) != 3:
        logger.warning("Invalid ID token format")
        return None

    try:
        claims = json.loads(_b64url_decode(parts[1]))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        logger.warning(f"Error extracting WebID from ID token: {e}")
        return None

    if not isinstance(claims, dict):
        logger.warning("ID token payload is not a JSON object")
        return None

    web_id = claims.get(WEBID_CLAIM)
    if web_id is None:
        web_id = claims.get("sub")
    return web_id if isinstance(web_id, str) else None


def _b64url_decode(segment: str) -> str:
    normalized = segment.replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    return base64.b64decode(normalized).decode("utf-8")
