"""
COSE_Sign1 signature verification.

ES256 only: ECDSA over P-256 (secp256r1) with SHA-256, as fixed by the
NZ COVID Pass specification.
"""

from __future__ import annotations

import base64

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from nzcp_verifier.cbor import encode
from nzcp_verifier.did_resolver import PublicKeyJWK

SIG_STRUCTURE_CONTEXT = "Signature1"
P256_COORDINATE_LENGTH = 32


def base64url_decode(data: str) -> bytes:
    """Decode base64url without padding.

    Args:
        data: Base64url encoded string.

    Returns:
        Decoded bytes.
    """
    # Add padding if needed
    padding = 4 - (len(data) % 4)
    if padding != 4:
        data += "=" * padding
    return base64.urlsafe_b64decode(data)


def public_key_from_jwk(jwk: PublicKeyJWK) -> ec.EllipticCurvePublicKey:
    """Build a P-256 public key from the JWK coordinates.

    The coordinates are joined into the uncompressed SEC1 point ``04 || x || y``.

    Raises:
        ValueError: If a coordinate is malformed or the point is not on the curve.
    """
    x_bytes = base64url_decode(jwk.x)
    y_bytes = base64url_decode(jwk.y)
    if len(x_bytes) != P256_COORDINATE_LENGTH or len(y_bytes) != P256_COORDINATE_LENGTH:
        raise ValueError(
            f"P-256 coordinates must be {P256_COORDINATE_LENGTH} bytes, "
            f"got {len(x_bytes)} and {len(y_bytes)}"
        )
    return ec.EllipticCurvePublicKey.from_encoded_point(
        ec.SECP256R1(), b"\x04" + x_bytes + y_bytes
    )


def build_sig_structure(protected: bytes, payload: bytes) -> bytes:
    """Encode the COSE ``Sig_structure`` that the issuer signed.

    ``["Signature1", protected, external_aad = h'', payload]`` (RFC 8152 section 4.4)
    """
    return encode([SIG_STRUCTURE_CONTEXT, protected, b"", payload])


def verify_signature(
    protected: bytes,
    payload: bytes,
    signature: bytes,
    public_key: ec.EllipticCurvePublicKey,
) -> bool:
    """Verify a COSE_Sign1 ES256 signature.

    COSE signatures are the raw concatenation ``r || s`` of two equal-length
    big-endian integers, not DER. They are re-wrapped as DER for
    ``cryptography``.

    Args:
        protected: Serialized protected header bytes.
        payload: Serialized CWT payload bytes.
        signature: Raw ``r || s`` signature.
        public_key: The issuer's P-256 key.

    Returns:
        True if signature is valid, False otherwise.
    """
    if not signature or len(signature) % 2:
        return False

    half = len(signature) // 2
    r = int.from_bytes(signature[:half], byteorder="big")
    s = int.from_bytes(signature[half:], byteorder="big")
    if r == 0 or s == 0:
        return False

    try:
        public_key.verify(
            encode_dss_signature(r, s),
            build_sig_structure(protected, payload),
            ec.ECDSA(hashes.SHA256()),
        )
        return True
    except InvalidSignature:
        return False
