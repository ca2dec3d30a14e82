"""
2D barcode payload parsing.

A pass is carried as ``NZCP:/<version-identifier>/<base32-encoded-CWT>`` with
the base32 padding stripped, since QR alphanumeric mode has no ``=``.
https://nzcp.covid19.health.nz/#2d-barcode-encoding
"""

from __future__ import annotations

import base64
import binascii

from nzcp_verifier import violations
from nzcp_verifier.violations import Violation

PAYLOAD_PREFIX = "NZCP:"
SUPPORTED_VERSION = 1


def add_base32_padding(data: str) -> str:
    """Restore the ``=`` padding removed for QR encoding."""
    return data + "=" * (-len(data) % 8)


def parse_barcode(uri: str) -> bytes | Violation:
    """Extract the COSE bytes from a barcode payload.

    Args:
        uri: The scanned QR code text.

    Returns:
        The base32-decoded body, or the envelope violation.
    """
    parts = uri.split("/")
    if len(parts) != 3:
        return violations.PASS_FORMAT_INVALID

    prefix, version_identifier, body = parts
    if prefix != PAYLOAD_PREFIX:
        return violations.PASS_PREFIX_INVALID

    if not (version_identifier.isascii() and version_identifier.isdigit()):
        return violations.PASS_VERSION_INVALID
    if int(version_identifier) != SUPPORTED_VERSION:
        return violations.PASS_VERSION_INVALID

    if not body:
        return violations.PASS_BASE32_INVALID.with_description("Empty payload")

    try:
        return base64.b32decode(add_base32_padding(body))
    except (binascii.Error, ValueError) as e:
        return violations.PASS_BASE32_INVALID.with_description(str(e))
