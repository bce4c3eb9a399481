"""Security-related models for POD authentication.

Contains the PKCE pair used for one authorization attempt and the RSA key
material bound to the issued tokens for DPoP.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey


@dataclass(frozen=True)
class PKCEPair:
    """PKCE (Proof Key for Code Exchange) pair for one authorization attempt.

    The verifier stays local until the token request; only the challenge is
    sent with the authorization request (RFC 7636).
    """

    verifier: str = field(repr=False)
    challenge: str = field()
    method: str = field(default="S256")

    def __post_init__(self) -> None:
        """Validate PKCE parameters meet RFC 7636 requirements."""
        if not (43 <= len(self.verifier) <= 128):
            raise ValueError("code_verifier must be 43-128 characters")
        if self.method != "S256":
            raise ValueError("Only S256 code challenge method is supported")


@dataclass(frozen=True)
class KeyMaterial:
    """RSA keypair for DPoP proofs, with its JWK and PEM encodings."""

    private_key: RSAPrivateKey = field(repr=False)
    public_jwk: dict[str, Any]
    private_jwk: dict[str, Any] = field(repr=False)
    public_pem: str
    private_pem: str = field(repr=False)

    @property
    def modulus_bits(self) -> int:
        return self.private_key.key_size

    def to_rsa_info(self) -> dict[str, Any]:
        """Build the ``rsa_info`` structure stored in the auth data bundle.

        The ``rsa`` entry carries the PEM encodings in place of the live
        key object.
        """
        return {
            "rsa": {
                "public_key": self.public_pem,
                "private_key": self.private_pem,
            },
            "pubKeyJwk": dict(self.public_jwk),
            "prvKeyJwk": dict(self.private_jwk),
        }
