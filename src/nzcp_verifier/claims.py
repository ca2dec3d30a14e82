"""
CWT header and claim mapping.

Turns the integer/string-keyed CBOR maps of a pass into typed records. Mapping
is total: unknown keys are ignored and entries of the wrong type are dropped,
leaving the validators to report what is missing.
https://nzcp.covid19.health.nz/#cwt-claims
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from nzcp_verifier import violations
from nzcp_verifier.violations import Violation

logger = logging.getLogger(__name__)

# COSE header labels
HEADER_ALG = 1
HEADER_KID = 4

# CWT claim keys
CLAIM_ISS = 1
CLAIM_EXP = 4
CLAIM_NBF = 5
CLAIM_CTI = 7
CLAIM_VC = "vc"

CTI_LENGTH = 16

_KNOWN_CLAIMS = (CLAIM_ISS, CLAIM_EXP, CLAIM_NBF, CLAIM_CTI, CLAIM_VC)


@dataclass(frozen=True)
class UnvalidatedHeaders:
    """Protected header values as found, before validation."""

    kid: str | None = None
    alg: int | None = None


@dataclass(frozen=True)
class CredentialSubject:
    """The person a pass was issued to."""

    given_name: str | None = None
    family_name: str | None = None
    dob: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        data = {"givenName": self.given_name, "dob": self.dob}
        if self.family_name is not None:
            data["familyName"] = self.family_name
        return data


@dataclass(frozen=True)
class VerifiableCredential:
    """The `vc` claim of a pass."""

    context: list[Any] | None = None
    type: list[Any] | None = None
    version: str | None = None
    credential_subject: CredentialSubject | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "@context": self.context,
            "type": self.type,
            "version": self.version,
            "credentialSubject": (
                self.credential_subject.to_dict() if self.credential_subject else None
            ),
        }


@dataclass(frozen=True)
class UnvalidatedClaims:
    """CWT claims as found in the payload, before validation."""

    jti: str | None = None
    iss: str | None = None
    nbf: int | None = None
    exp: int | None = None
    vc: VerifiableCredential | None = None


def decode_cti_to_jti(cti: bytes) -> str | Violation:
    """Convert a 16 byte CWT Token ID into its ``urn:uuid:`` JWT ID form.

    The hex form is split along the RFC 4122 4-2-2-2-6 octet pattern.
    https://nzcp.covid19.health.nz/#mapping-jti-cti

    Args:
        cti: Raw value of the ``cti`` claim.

    Returns:
        The lower-case URN, or CTI_INVALID_LENGTH.
    """
    if len(cti) != CTI_LENGTH:
        return violations.CTI_INVALID_LENGTH.with_description(
            f"CTI must be {CTI_LENGTH} octets, but was {len(cti)} octets."
        )
    hex_uuid = cti.hex()
    uuid = "-".join(
        (hex_uuid[0:8], hex_uuid[8:12], hex_uuid[12:16], hex_uuid[16:20], hex_uuid[20:32])
    )
    return f"urn:uuid:{uuid}"


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _integer(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _list(value: Any) -> list[Any] | None:
    return value if isinstance(value, list) else None


def map_headers(raw: dict[Any, Any]) -> UnvalidatedHeaders:
    """Map decoded protected headers to named fields."""
    kid = raw.get(HEADER_KID)
    if isinstance(kid, bytes):
        try:
            kid = kid.decode("utf-8")
        except UnicodeDecodeError:
            kid = None
    return UnvalidatedHeaders(kid=_text(kid), alg=_integer(raw.get(HEADER_ALG)))


def map_credential_subject(raw: Any) -> CredentialSubject | None:
    if not isinstance(raw, dict):
        return None
    return CredentialSubject(
        given_name=_text(raw.get("givenName")),
        family_name=_text(raw.get("familyName")),
        dob=_text(raw.get("dob")),
    )


def map_credential(raw: Any) -> VerifiableCredential | None:
    """Map the ``vc`` claim to a VerifiableCredential record."""
    if not isinstance(raw, dict):
        return None
    return VerifiableCredential(
        context=_list(raw.get("@context")),
        type=_list(raw.get("type")),
        version=_text(raw.get("version")),
        credential_subject=map_credential_subject(raw.get("credentialSubject")),
    )


def map_claims(raw: dict[Any, Any]) -> UnvalidatedClaims | Violation:
    """Map a decoded CWT payload to named claims.

    Args:
        raw: The decoded CWT claims map.

    Returns:
        UnvalidatedClaims, or CTI_INVALID_LENGTH when the token ID is not 16 bytes.
    """
    jti = None
    cti = raw.get(CLAIM_CTI)
    if isinstance(cti, bytes):
        jti = decode_cti_to_jti(cti)
        if isinstance(jti, Violation):
            return jti

    unknown = [key for key in raw if key not in _KNOWN_CLAIMS]
    if unknown:
        logger.debug("Ignoring unrecognised CWT claims: %r", unknown)

    return UnvalidatedClaims(
        jti=jti,
        iss=_text(raw.get(CLAIM_ISS)),
        nbf=_integer(raw.get(CLAIM_NBF)),
        exp=_integer(raw.get(CLAIM_EXP)),
        vc=map_credential(raw.get(CLAIM_VC)),
    )
