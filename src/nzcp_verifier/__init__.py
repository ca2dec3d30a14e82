"""
NZCP Verifier - New Zealand COVID Pass verification library.

Supports:
- NZCP:/1/ QR code payloads (base32 COSE_Sign1 / CWT)
- did:web issuer key resolution, online or from bundled DID Documents
- ES256 (ECDSA P-256 / SHA-256) signatures
"""

from nzcp_verifier.verifier import (
    PassVerifier,
    VerificationResult,
    verify_pass_offline,
    verify_pass_online,
)
from nzcp_verifier.did_resolver import DIDDocument, DIDResolver, DIDResolutionError
from nzcp_verifier.trust import DID_DOCUMENTS, TRUSTED_ISSUERS
from nzcp_verifier.violations import Violation

__version__ = "0.1.0"

__all__ = [
    "PassVerifier",
    "VerificationResult",
    "verify_pass_offline",
    "verify_pass_online",
    "DIDDocument",
    "DIDResolver",
    "DIDResolutionError",
    "DID_DOCUMENTS",
    "TRUSTED_ISSUERS",
    "Violation",
]
