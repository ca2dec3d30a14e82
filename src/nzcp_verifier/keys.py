"""
Issuer key validation.

Finds the key a pass was signed with in the issuer's DID Document and checks
it is authorised for assertions and usable for ES256. Works the same whether
the document was resolved over the network or supplied up front.
https://nzcp.covid19.health.nz/#issuer-identifier
"""

from __future__ import annotations

import binascii
import logging

from cryptography.hazmat.primitives.asymmetric import ec

from nzcp_verifier import violations
from nzcp_verifier.did_resolver import DIDDocument
from nzcp_verifier.signature import public_key_from_jwk
from nzcp_verifier.violations import Violation

logger = logging.getLogger(__name__)

SUPPORTED_KEY_TYPE = "JsonWebKey2020"
SUPPORTED_KTY = "EC"
SUPPORTED_CRV = "P-256"


def key_reference(issuer: str, kid: str) -> str:
    """Absolute verification method id, e.g. ``did:web:example.nz#key-1``."""
    return f"{issuer}#{kid}"


def resolve_signing_key(
    issuer: str, kid: str, document: DIDDocument
) -> ec.EllipticCurvePublicKey | Violation:
    """Resolve and validate the public key referenced by a pass.

    Args:
        issuer: The ``iss`` claim.
        kid: The ``kid`` protected header.
        document: The issuer's DID Document.

    Returns:
        The P-256 public key, or the violation describing why it is unusable.
    """
    reference = key_reference(issuer, kid)

    if not document.assertion_method:
        return violations.ASSERTION_METHOD_MISSING
    if reference not in document.assertion_method:
        logger.info("Key %s is not listed in assertionMethod of %s", reference, document.id)
        return violations.PUBLIC_KEY_NOT_FOUND.with_description(
            f"{reference} is not listed in assertionMethod"
        )

    if not document.verification_methods:
        return violations.VERIFICATION_METHOD_MISSING
    method = document.get_verification_method(reference)
    if method is None:
        return violations.VERIFICATION_METHOD_NOT_FOUND.with_description(
            f"No verificationMethod with id {reference}"
        )

    jwk = method.public_key_jwk
    if jwk is None or not jwk.x or not jwk.y:
        return violations.PUBLIC_KEY_INCOMPLETE
    if method.type != SUPPORTED_KEY_TYPE:
        return violations.PUBLIC_KEY_TYPE_UNSUPPORTED.with_description(
            f"Found type {method.type!r}"
        )
    if jwk.kty != SUPPORTED_KTY or jwk.crv != SUPPORTED_CRV:
        return violations.PUBLIC_KEY_CURVE_UNSUPPORTED.with_description(
            f"Found kty {jwk.kty!r} and crv {jwk.crv!r}"
        )

    try:
        return public_key_from_jwk(jwk)
    except (binascii.Error, ValueError, TypeError) as e:
        return violations.PUBLIC_KEY_INVALID.with_description(str(e))
