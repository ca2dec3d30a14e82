"""
Header and claim validation.

Checks run in the order the NZ COVID Pass specification lists them and stop
at the first failure, so a given pass always reports the same violation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from nzcp_verifier import violations
from nzcp_verifier.claims import (
    CredentialSubject,
    UnvalidatedClaims,
    UnvalidatedHeaders,
    VerifiableCredential,
)
from nzcp_verifier.violations import Violation

ES256 = -7

CREDENTIALS_CONTEXT = "https://www.w3.org/2018/credentials/v1"
NZCP_CONTEXT = "https://nzcp.covid19.health.nz/contexts/v1"
VERIFIABLE_CREDENTIAL_TYPE = "VerifiableCredential"
PUBLIC_COVID_PASS_TYPE = "PublicCovidPass"
VC_VERSION = "1.0.0"


def _utc_datetime(timestamp: int) -> datetime | None:
    # None when the timestamp is outside the range datetime can represent
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        return None


@dataclass(frozen=True)
class CWTHeaders:
    """Protected headers of a pass with a usable key id and ES256."""

    kid: str
    alg: str


@dataclass(frozen=True)
class CWTClaims:
    """Claims of a pass that passed every structural and time check."""

    jti: str
    iss: str
    nbf: int
    exp: int
    vc: VerifiableCredential

    @property
    def credential_subject(self) -> CredentialSubject:
        return self.vc.credential_subject

    @property
    def valid_from(self) -> datetime | None:
        return _utc_datetime(self.nbf)

    @property
    def expires(self) -> datetime | None:
        return _utc_datetime(self.exp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "jti": self.jti,
            "iss": self.iss,
            "nbf": self.nbf,
            "exp": self.exp,
            "vc": self.vc.to_dict(),
        }


def validate_headers(headers: UnvalidatedHeaders) -> CWTHeaders | Violation:
    if not headers.kid:
        return violations.KID_MISSING
    if headers.alg is None:
        return violations.ALG_MISSING
    if headers.alg != ES256:
        return violations.ALG_NOT_ES256.with_description(
            f"Found algorithm {headers.alg}"
        )
    return CWTHeaders(kid=headers.kid, alg="ES256")


def _validate_credential(vc: VerifiableCredential) -> Violation | None:
    context = vc.context
    if not (
        context is not None
        and len(context) >= 2
        and context[0] == CREDENTIALS_CONTEXT
        and context[1] == NZCP_CONTEXT
    ):
        return violations.VC_CONTEXT_INVALID

    types = vc.type
    if not (
        types is not None
        and len(types) >= 2
        and types[0] == VERIFIABLE_CREDENTIAL_TYPE
        and types[1] == PUBLIC_COVID_PASS_TYPE
    ):
        return violations.VC_TYPE_INVALID

    if vc.version != VC_VERSION:
        return violations.VC_VERSION_INVALID

    subject = vc.credential_subject
    if subject is None:
        return violations.CREDENTIAL_SUBJECT_MISSING
    if not subject.given_name:
        return violations.GIVEN_NAME_MISSING
    if not subject.dob:
        return violations.DOB_MISSING
    return None


def validate_claims(claims: UnvalidatedClaims, now: float) -> CWTClaims | Violation:
    """Validate mapped CWT claims against the current time.

    The validity window is half-open: a pass is active from exactly ``nbf``
    up to, but not including, ``exp``.

    Args:
        claims: Output of the claim mapper.
        now: Current time in seconds since the Unix epoch.

    Returns:
        Fully typed CWTClaims, or the first violation found.
    """
    if claims.jti is None:
        return violations.CTI_MISSING
    if not claims.iss:
        return violations.ISSUER_MISSING
    if claims.nbf is None:
        return violations.NBF_MISSING
    if claims.exp is None:
        return violations.EXP_MISSING
    if now < claims.nbf:
        return violations.NBF_NOT_ACTIVE
    if now >= claims.exp:
        return violations.EXPIRED
    if claims.vc is None:
        return violations.VC_MISSING

    violation = _validate_credential(claims.vc)
    if violation is not None:
        return violation

    return CWTClaims(
        jti=claims.jti,
        iss=claims.iss,
        nbf=claims.nbf,
        exp=claims.exp,
        vc=claims.vc,
    )
