"""COSE_Sign1 envelope decoding (RFC 8152 section 4.2)."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from nzcp_verifier import violations
from nzcp_verifier.cbor import MalformedEncodingError, decode_prefix
from nzcp_verifier.violations import Violation

logger = logging.getLogger(__name__)

# Single-byte head of CBOR tag 18 (COSE_Sign1).
COSE_SIGN1_TAG = 0xD2


@dataclass(frozen=True)
class CoseSign1:
    """Decoded COSE_Sign1 structure."""

    protected: bytes
    unprotected: dict
    payload: bytes
    signature: bytes


def decode_cose_sign1(data: bytes) -> CoseSign1 | Violation:
    """Decode a tagged COSE_Sign1 structure.

    The structure must be ``18([protected, {}, payload, signature])`` with the
    three byte-string slots present and an empty unprotected header map.

    Args:
        data: Raw bytes recovered from the barcode.

    Returns:
        The CoseSign1 record, or COSE_STRUCTURE_INVALID describing what was wrong.
    """
    invalid = violations.COSE_STRUCTURE_INVALID

    if not data or data[0] != COSE_SIGN1_TAG:
        return invalid.with_description("Expected CBOR tag 18 (COSE_Sign1)")

    try:
        structure, end = decode_prefix(data, 1)
    except MalformedEncodingError as e:
        logger.debug("COSE_Sign1 body failed to decode: %s", e)
        return invalid.with_description(str(e))

    if end != len(data):
        return invalid.with_description("Trailing bytes after COSE_Sign1 structure")
    if not isinstance(structure, list) or len(structure) != 4:
        return invalid.with_description("COSE_Sign1 MUST be an array of 4 elements")

    protected, unprotected, payload, signature = structure
    if not isinstance(protected, bytes):
        return invalid.with_description("Protected headers MUST be a byte string")
    if not isinstance(unprotected, dict) or unprotected:
        return invalid.with_description("Unprotected headers MUST be an empty map")
    if not isinstance(payload, bytes):
        return invalid.with_description("Payload MUST be a byte string")
    if not isinstance(signature, bytes):
        return invalid.with_description("Signature MUST be a byte string")

    return CoseSign1(
        protected=protected,
        unprotected=unprotected,
        payload=payload,
        signature=signature,
    )
