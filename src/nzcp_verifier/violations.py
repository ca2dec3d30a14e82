"""
Violation catalogue.

Every rejected pass carries exactly one Violation citing the clause of the
New Zealand COVID Pass technical specification that it breaks.
https://nzcp.covid19.health.nz/
"""

from __future__ import annotations

from dataclasses import dataclass, replace

SPEC_URL = "https://nzcp.covid19.health.nz/"

_BARCODE = SPEC_URL + "#2d-barcode-encoding"
_HEADERS = SPEC_URL + "#cwt-headers"
_CLAIMS = SPEC_URL + "#cwt-claims"
_JTI_CTI = SPEC_URL + "#mapping-jti-cti"
_VC = SPEC_URL + "#verifiable-credential-claim-structure"
_PUBLIC_COVID_PASS = SPEC_URL + "#publiccovidpass"
_ISSUER = SPEC_URL + "#issuer-identifier"
_TRUSTED = SPEC_URL + "#trusted-issuers"
_STEPS = SPEC_URL + "#steps-to-verify-a-new-zealand-covid-pass"


@dataclass(frozen=True)
class Violation:
    """A single reason a pass was rejected."""

    message: str
    section: str
    link: str
    description: str | None = None

    def with_description(self, description: str) -> Violation:
        """Return a copy carrying extra human-readable detail."""
        return replace(self, description=description)

    def to_dict(self) -> dict[str, str]:
        data = {"message": self.message, "section": self.section, "link": self.link}
        if self.description is not None:
            data["description"] = self.description
        return data


# Envelope
PASS_NOT_STRING = Violation(
    "The payload of the QR Code MUST be a string", "4.3", _BARCODE
)
PASS_FORMAT_INVALID = Violation(
    "The payload of the QR Code MUST be in the form "
    "`NZCP:/<version-identifier>/<base32-encoded-CWT>`",
    "4.4",
    _BARCODE,
)
PASS_PREFIX_INVALID = Violation(
    "The payload of the QR Code MUST begin with the prefix of `NZCP:/`",
    "4.5",
    _BARCODE,
)
PASS_VERSION_INVALID = Violation(
    "The version-identifier portion of the payload for the current release "
    "of the specification MUST be 1",
    "4.6",
    _BARCODE,
)
PASS_BASE32_INVALID = Violation(
    "The payload of the QR Code MUST be base32 encoded", "4.7", _BARCODE
)
COSE_STRUCTURE_INVALID = Violation(
    "The decoded payload MUST be a valid `COSE_Sign1` CBOR structure",
    "4.8",
    _STEPS,
)

# Protected headers
KID_MISSING = Violation(
    "`kid` header MUST be present in the protected header section of the "
    "`COSE_Sign1` structure",
    "2.2.1.1",
    _HEADERS,
)
ALG_MISSING = Violation(
    "`alg` header MUST be present in the protected header section of the "
    "`COSE_Sign1` structure",
    "2.2.2.1",
    _HEADERS,
)
ALG_NOT_ES256 = Violation(
    "`alg` header value MUST be set to the value corresponding to the ES256 "
    "algorithm registration (-7)",
    "2.2.2.2",
    _HEADERS,
)

# CWT claims
CTI_MISSING = Violation("CWT Token ID claim MUST be present", "2.1.0.1.1", _CLAIMS)
CTI_INVALID_LENGTH = Violation(
    "CWT Token ID claim MUST be a 16 octet UUID", "2.1.0.1.10", _JTI_CTI
)
ISSUER_MISSING = Violation("Issuer claim MUST be present", "2.1.0.2.1", _CLAIMS)
NBF_MISSING = Violation("Not Before claim MUST be present", "2.1.0.3.1", _CLAIMS)
NBF_NOT_ACTIVE = Violation(
    "The current datetime MUST be after or equal to the value of the `nbf` claim",
    "2.1.0.3.3",
    _CLAIMS,
)
EXP_MISSING = Violation("Expiry claim MUST be present", "2.1.0.4.1", _CLAIMS)
EXPIRED = Violation(
    "The current datetime MUST be before the value of the `exp` claim",
    "2.1.0.4.3",
    _CLAIMS,
)
VC_MISSING = Violation(
    "Verifiable Credential CWT claim MUST be present", "2.1.0.5.1", _CLAIMS
)

# Verifiable credential
VC_CONTEXT_INVALID = Violation(
    "Verifiable Credential JSON-LD Context property MUST be an array whose first "
    "values are the W3C credentials context and the NZCP context",
    "2.3.2",
    _VC,
)
VC_TYPE_INVALID = Violation(
    "Verifiable Credential Type property MUST be an array whose first element is "
    "VerifiableCredential and second element is a supported pass type",
    "2.3.5",
    _VC,
)
VC_VERSION_INVALID = Violation(
    "Verifiable Credential Version property MUST be 1.0.0", "2.3.8", _VC
)
CREDENTIAL_SUBJECT_MISSING = Violation(
    "Verifiable Credential Credential Subject property MUST be present",
    "2.3.9",
    _VC,
)
GIVEN_NAME_MISSING = Violation(
    "Missing REQUIRED 'givenName' in credentialSubject property",
    "2.4.1.2.1",
    _PUBLIC_COVID_PASS,
)
DOB_MISSING = Violation(
    "Missing REQUIRED 'dob' in credentialSubject property",
    "2.4.1.2.2",
    _PUBLIC_COVID_PASS,
)

# Issuer trust and key resolution
ISSUER_NOT_TRUSTED = Violation(
    "`iss` value reported in the pass does not match one listed in the trusted issuers",
    "5.1",
    _TRUSTED,
)
DID_RESOLUTION_FAILED = Violation(
    "The issuer's DID document could not be resolved", "5.2", _ISSUER
)
DID_DOCUMENT_UNAVAILABLE = Violation(
    "No DID document was supplied for the issuer of the pass", "5.3", _ISSUER
)
ASSERTION_METHOD_MISSING = Violation(
    "The issuer's DID document MUST contain an `assertionMethod` list",
    "5.4",
    _ISSUER,
)
PUBLIC_KEY_NOT_FOUND = Violation(
    "New Zealand COVID Pass references a public key that is not found in the "
    "issuer's DID document",
    "5.5",
    _ISSUER,
)
VERIFICATION_METHOD_MISSING = Violation(
    "The issuer's DID document MUST contain a `verificationMethod` list",
    "5.6",
    _ISSUER,
)
VERIFICATION_METHOD_NOT_FOUND = Violation(
    "The key referenced by the pass has no matching `verificationMethod` entry",
    "5.7",
    _ISSUER,
)
PUBLIC_KEY_INCOMPLETE = Violation(
    "The public key MUST contain both `x` and `y` coordinates", "5.8", _ISSUER
)
PUBLIC_KEY_TYPE_UNSUPPORTED = Violation(
    "The verification method type MUST be JsonWebKey2020", "5.9", _ISSUER
)
PUBLIC_KEY_CURVE_UNSUPPORTED = Violation(
    "The public key MUST be an EC key on the P-256 curve", "5.10", _ISSUER
)
PUBLIC_KEY_INVALID = Violation(
    "The public key coordinates do not describe a valid P-256 point", "5.11", _ISSUER
)

# Signature
SIGNATURE_INVALID = Violation(
    "Retrieved public key does not validate `COSE_Sign1` structure", "6.1", _STEPS
)

UNKNOWN_ERROR = Violation(
    "An unexpected error occurred while verifying the pass", "0", _STEPS
)
