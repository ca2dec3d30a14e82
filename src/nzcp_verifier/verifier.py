"""
New Zealand COVID Pass verifier.

Implements the steps to verify a pass from the NZ COVID Pass technical
specification v1.
https://nzcp.covid19.health.nz/#steps-to-verify-a-new-zealand-covid-pass

Pipeline:
    barcode -> COSE_Sign1 -> protected headers -> CWT claims -> trusted issuer
    -> DID Document -> signing key -> signature -> claim validation

Every stage either advances or stops with a single Violation. The online and
offline modes share every stage except how the DID Document is obtained.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Union

from nzcp_verifier import cbor, violations
from nzcp_verifier.barcode import parse_barcode
from nzcp_verifier.claims import (
    CredentialSubject,
    UnvalidatedClaims,
    map_claims,
    map_headers,
)
from nzcp_verifier.cose import CoseSign1, decode_cose_sign1
from nzcp_verifier.did_resolver import (
    DIDDocument,
    DIDDocumentLike,
    DIDResolutionError,
    DIDResolver,
    StaticKeySource,
    to_did_document,
)
from nzcp_verifier.keys import resolve_signing_key
from nzcp_verifier.signature import verify_signature
from nzcp_verifier.trust import DEFAULT_DID_DOCUMENTS, DEFAULT_TRUSTED_ISSUERS
from nzcp_verifier.validation import CWTClaims, CWTHeaders, validate_claims, validate_headers
from nzcp_verifier.violations import Violation

logger = logging.getLogger(__name__)

TrustedIssuers = Union[str, Iterable[str]]
DIDDocuments = Union[DIDDocumentLike, Iterable[DIDDocumentLike]]


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying one pass."""

    success: bool
    violates: Violation | None = None
    credential_subject: CredentialSubject | None = None
    expires: datetime | None = None
    valid_from: datetime | None = None
    raw: CWTClaims | None = None

    @classmethod
    def accepted(cls, claims: CWTClaims) -> VerificationResult:
        return cls(
            success=True,
            credential_subject=claims.credential_subject,
            expires=claims.expires,
            valid_from=claims.valid_from,
            raw=claims,
        )

    @classmethod
    def rejected(cls, violation: Violation) -> VerificationResult:
        return cls(success=False, violates=violation)

    def to_dict(self) -> dict[str, Any]:
        """Render the result with the camelCase keys used on the wire."""
        return {
            "success": self.success,
            "violates": self.violates.to_dict() if self.violates else None,
            "credentialSubject": (
                self.credential_subject.to_dict() if self.credential_subject else None
            ),
            "expires": self.expires.isoformat() if self.expires else None,
            "validFrom": self.valid_from.isoformat() if self.valid_from else None,
            "raw": self.raw.to_dict() if self.raw else None,
        }


@dataclass(frozen=True)
class _DecodedPass:
    """A pass that got as far as a trusted issuer."""

    cose: CoseSign1
    headers: CWTHeaders
    claims: UnvalidatedClaims

    @property
    def issuer(self) -> str:
        return self.claims.iss


def _as_tuple(value: Any, single: tuple[type, ...]) -> tuple[Any, ...]:
    if isinstance(value, single):
        return (value,)
    return tuple(value)


def _decode_map(data: bytes, name: str) -> dict | Violation:
    try:
        decoded = cbor.decode(data)
    except cbor.MalformedEncodingError as e:
        return violations.COSE_STRUCTURE_INVALID.with_description(f"{name}: {e}")
    if not isinstance(decoded, dict):
        return violations.COSE_STRUCTURE_INVALID.with_description(
            f"{name} MUST be a CBOR map"
        )
    return decoded


class PassVerifier:
    """NZ COVID Pass verifier.

    Holds the trust configuration (trusted issuers, bundled DID Documents,
    resolver) and verifies passes against it. The configuration is read-only
    and no state is kept between verifications, so one instance can verify
    any number of passes concurrently.
    """

    def __init__(
        self,
        trusted_issuers: TrustedIssuers = DEFAULT_TRUSTED_ISSUERS,
        did_documents: DIDDocuments = DEFAULT_DID_DOCUMENTS,
        resolver: DIDResolver | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the verifier.

        Args:
            trusted_issuers: Issuer DID(s) whose passes are accepted.
            did_documents: DID Document(s) used by offline verification.
            resolver: did:web resolver for online verification. Created if not provided.
            clock: Returns the current time in seconds since the Unix epoch.
        """
        self.trusted_issuers = frozenset(_as_tuple(trusted_issuers, (str,)))
        self.key_source = StaticKeySource(
            _as_tuple(did_documents, (DIDDocument, Mapping))
        )
        self.resolver = resolver or DIDResolver()
        self.clock = clock

    def verify_offline(self, uri: str) -> VerificationResult:
        """Verify a pass against the configured DID Documents.

        Args:
            uri: The QR code payload, ``NZCP:/1/...``.

        Returns:
            VerificationResult with the credential subject or the violation.
        """
        try:
            decoded = self._decode(uri)
            if isinstance(decoded, Violation):
                return self._reject(decoded)

            document = self.key_source.resolve(decoded.issuer)
            if document is None:
                return self._reject(
                    violations.DID_DOCUMENT_UNAVAILABLE.with_description(
                        f"No DID Document supplied for {decoded.issuer}"
                    )
                )
            return self._complete(decoded, document)
        except Exception as e:
            return self._unexpected(e)

    async def verify_online(self, uri: str) -> VerificationResult:
        """Verify a pass, resolving the issuer's DID Document over the network.

        Args:
            uri: The QR code payload, ``NZCP:/1/...``.

        Returns:
            VerificationResult with the credential subject or the violation.
        """
        try:
            decoded = self._decode(uri)
            if isinstance(decoded, Violation):
                return self._reject(decoded)

            try:
                document = to_did_document(await self.resolver.resolve(decoded.issuer))
            except DIDResolutionError as e:
                return self._reject(violations.DID_RESOLUTION_FAILED.with_description(str(e)))

            if document.id != decoded.issuer:
                return self._reject(
                    violations.DID_RESOLUTION_FAILED.with_description(
                        f"DID Document id mismatch: expected {decoded.issuer}, got {document.id}"
                    )
                )
            return self._complete(decoded, document)
        except Exception as e:
            return self._unexpected(e)

    def _decode(self, uri: Any) -> _DecodedPass | Violation:
        """Run every stage that needs no key material."""
        if not isinstance(uri, str):
            return violations.PASS_NOT_STRING

        cose_bytes = parse_barcode(uri)
        if isinstance(cose_bytes, Violation):
            return cose_bytes

        cose = decode_cose_sign1(cose_bytes)
        if isinstance(cose, Violation):
            return cose
        logger.debug("Decoded COSE_Sign1 with %d byte payload", len(cose.payload))

        raw_headers = _decode_map(cose.protected, "Protected headers")
        if isinstance(raw_headers, Violation):
            return raw_headers
        headers = validate_headers(map_headers(raw_headers))
        if isinstance(headers, Violation):
            return headers

        raw_claims = _decode_map(cose.payload, "CWT payload")
        if isinstance(raw_claims, Violation):
            return raw_claims
        claims = map_claims(raw_claims)
        if isinstance(claims, Violation):
            return claims

        if not claims.iss:
            return violations.ISSUER_MISSING
        if claims.iss not in self.trusted_issuers:
            return violations.ISSUER_NOT_TRUSTED.with_description(
                f"{claims.iss} is not a trusted issuer"
            )
        logger.debug("Pass issued by trusted issuer %s with kid %s", claims.iss, headers.kid)

        return _DecodedPass(cose=cose, headers=headers, claims=claims)

    def _complete(self, decoded: _DecodedPass, document: DIDDocument) -> VerificationResult:
        """Check the key and signature, then validate the claims."""
        public_key = resolve_signing_key(decoded.issuer, decoded.headers.kid, document)
        if isinstance(public_key, Violation):
            return self._reject(public_key)

        cose = decoded.cose
        if not verify_signature(cose.protected, cose.payload, cose.signature, public_key):
            return self._reject(violations.SIGNATURE_INVALID)
        logger.debug("Signature verified for %s", decoded.claims.jti)

        claims = validate_claims(decoded.claims, self.clock())
        if isinstance(claims, Violation):
            return self._reject(claims)

        logger.info("Pass %s verified", claims.jti)
        return VerificationResult.accepted(claims)

    def _reject(self, violation: Violation) -> VerificationResult:
        logger.info("Pass rejected [%s]: %s", violation.section, violation.message)
        return VerificationResult.rejected(violation)

    def _unexpected(self, error: Exception) -> VerificationResult:
        logger.exception("Unexpected error verifying pass")
        return VerificationResult.rejected(
            violations.UNKNOWN_ERROR.with_description(f"{type(error).__name__}: {error}")
        )


def verify_pass_offline(
    uri: str,
    trusted_issuers: TrustedIssuers = DEFAULT_TRUSTED_ISSUERS,
    did_documents: DIDDocuments = DEFAULT_DID_DOCUMENTS,
) -> VerificationResult:
    """Convenience function to verify a pass without network access.

    Args:
        uri: The QR code payload.
        trusted_issuers: Issuer DID(s) to trust. Defaults to the live MoH issuer.
        did_documents: DID Document(s) to take keys from. Defaults to the
            bundled live MoH document.

    Returns:
        VerificationResult with details of the outcome.
    """
    verifier = PassVerifier(trusted_issuers=trusted_issuers, did_documents=did_documents)
    return verifier.verify_offline(uri)


async def verify_pass_online(
    uri: str,
    trusted_issuers: TrustedIssuers = DEFAULT_TRUSTED_ISSUERS,
    resolver: DIDResolver | None = None,
) -> VerificationResult:
    """Convenience function to verify a pass, resolving keys via did:web.

    Args:
        uri: The QR code payload.
        trusted_issuers: Issuer DID(s) to trust. Defaults to the live MoH issuer.
        resolver: Custom DID resolver. Created if not provided.

    Returns:
        VerificationResult with details of the outcome.
    """
    verifier = PassVerifier(trusted_issuers=trusted_issuers, resolver=resolver)
    return await verifier.verify_online(uri)
