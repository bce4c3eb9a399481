"""RSA key material for DPoP (Demonstrating Proof of Possession).

Generates the 2048-bit keypair stored alongside the tokens and exports it as
JWKs and as PEM text. The PEM private key carries a PKCS#1 RSAPrivateKey body
(version, n, e, d, p, q, dP, dQ, qInv) under a ``PRIVATE KEY`` label, which is
the layout the client app's RSA library reads back.
"""

from __future__ import annotations

import base64
import logging
import textwrap
from typing import Any

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from podauth.models.errors import KeyGenerationError
from podauth.models.security import KeyMaterial

logger = logging.getLogger(__name__)

PUBLIC_EXPONENT = 65537
KEY_SIZE = 2048
SIGNING_ALGORITHM = "RS256"
PEM_LINE_WIDTH = 64


def generate_key_material(key_size: int = KEY_SIZE) -> KeyMaterial:
    """Generate an RSA keypair for DPoP token generation.

    Args:
        key_size: Modulus size in bits

    Returns:
        KeyMaterial with the live key, its JWKs and its PEM encodings

    Raises:
        KeyGenerationError: If generation or serialization fails
    """
    try:
        private_key = rsa.generate_private_key(
            public_exponent=PUBLIC_EXPONENT, key_size=key_size
        )
        public_key = private_key.public_key()

        material = KeyMaterial(
            private_key=private_key,
            public_jwk=public_key_to_jwk(public_key),
            private_jwk=private_key_to_jwk(private_key),
            public_pem=serialize_public_key(public_key),
            private_pem=serialize_private_key(private_key),
        )
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyGenerationError(f"Failed to generate RSA keypair: {e}") from e

    logger.debug(f"Generated {key_size}-bit RSA keypair for DPoP")
    return material


def public_key_to_jwk(public_key: rsa.RSAPublicKey) -> dict[str, Any]:
    numbers = public_key.public_numbers()
    return {
        "kty": "RSA",
        "n": _int_to_b64url(numbers.n),
        "e": _int_to_b64url(numbers.e),
        "alg": SIGNING_ALGORITHM,
    }


def private_key_to_jwk(private_key: rsa.RSAPrivateKey) -> dict[str, Any]:
    numbers = private_key.private_numbers()
    return {
        "kty": "RSA",
        "n": _int_to_b64url(numbers.public_numbers.n),
        "e": _int_to_b64url(numbers.public_numbers.e),
        "d": _int_to_b64url(numbers.d),
        "p": _int_to_b64url(numbers.p),
        "q": _int_to_b64url(numbers.q),
        "alg": SIGNING_ALGORITHM,
    }


def serialize_public_key(public_key: rsa.RSAPublicKey) -> str:
    """Serialize a public key as DER SubjectPublicKeyInfo wrapped in PEM."""
    der = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return _pem_wrap(der, "PUBLIC KEY")


def serialize_private_key(private_key: rsa.RSAPrivateKey) -> str:
    """Serialize a private key as DER PKCS#1 RSAPrivateKey wrapped in PEM.

    The CRT parameters (dP = d mod (p-1), dQ = d mod (q-1), qInv = q^-1 mod p)
    are part of the encoded sequence.
    """
    der = private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return _pem_wrap(der, "PRIVATE KEY")


def decode_pem(pem: str) -> bytes:
    """Return the DER bytes between a PEM header and footer."""
    lines = [line.strip() for line in pem.strip().splitlines()]
    if len(lines) < 3 or not lines[0].startswith("-----BEGIN "):
        raise ValueError("Not a PEM block")
    if not lines[-1].startswith("-----END "):
        raise ValueError("PEM block has no footer")
    return base64.b64decode("".join(lines[1:-1]))


def _pem_wrap(der: bytes, label: str) -> str:
    body = "\n".join(textwrap.wrap(base64.b64encode(der).decode("ascii"), PEM_LINE_WIDTH))
    return f"-----BEGIN {label}-----\n{body}\n-----END {label}-----"


def _int_to_b64url(value: int) -> str:
    raw = value.to_bytes((value.bit_length() + 7) // 8 or 1, "big")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
