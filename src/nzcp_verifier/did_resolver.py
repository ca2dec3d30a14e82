"""
Issuer key documents and did:web resolution.

Resolves did:web identifiers to DID Documents per W3C DID specification.
https://w3c-ccg.github.io/did-method-web/
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


class DIDResolutionError(Exception):
    """Raised when DID resolution fails."""


@dataclass(frozen=True)
class PublicKeyJWK:
    """EC public key in JWK format."""

    kty: str
    crv: str
    x: str
    y: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PublicKeyJWK:
        """Create PublicKeyJWK from a JWK dictionary."""
        return cls(
            kty=data.get("kty") or "",
            crv=data.get("crv") or "",
            x=data.get("x") or "",
            y=data.get("y") or "",
        )


@dataclass(frozen=True)
class VerificationMethod:
    """DID Document verification method."""

    id: str
    type: str
    controller: str
    public_key_jwk: PublicKeyJWK | None = None


@dataclass(frozen=True)
class DIDDocument:
    """W3C DID Document."""

    id: str
    verification_methods: tuple[VerificationMethod, ...]
    assertion_method: tuple[str, ...]

    def get_verification_method(self, method_id: str) -> VerificationMethod | None:
        """Get a verification method by ID."""
        for vm in self.verification_methods:
            if vm.id == method_id:
                return vm
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DIDDocument:
        """Parse a DID Document from JSON.

        Missing or malformed lists are kept empty so key validation can report
        exactly which part of the document is unusable.

        Raises:
            DIDResolutionError: If the data is not a JSON object.
        """
        if not isinstance(data, Mapping):
            raise DIDResolutionError("DID Document must be a JSON object")

        verification_methods: list[VerificationMethod] = []
        for vm_data in _as_list(data.get("verificationMethod")):
            if not isinstance(vm_data, Mapping):
                continue
            public_key_jwk = None
            if isinstance(vm_data.get("publicKeyJwk"), Mapping):
                public_key_jwk = PublicKeyJWK.from_dict(vm_data["publicKeyJwk"])

            verification_methods.append(
                VerificationMethod(
                    id=vm_data.get("id", ""),
                    type=vm_data.get("type", ""),
                    controller=vm_data.get("controller", ""),
                    public_key_jwk=public_key_jwk,
                )
            )

        return cls(
            id=data.get("id", ""),
            verification_methods=tuple(verification_methods),
            assertion_method=tuple(
                _parse_verification_relationship(data.get("assertionMethod"))
            ),
        )


DIDDocumentLike = Union[DIDDocument, Mapping[str, Any]]


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _parse_verification_relationship(items: Any) -> list[str]:
    """Parse a verification relationship array.

    Items can be either strings (references) or objects (embedded methods).
    We only extract the ID references.
    """
    result: list[str] = []
    for item in _as_list(items):
        if isinstance(item, str):
            result.append(item)
        elif isinstance(item, Mapping) and "id" in item:
            result.append(item["id"])
    return result


def to_did_document(document: DIDDocumentLike) -> DIDDocument:
    if isinstance(document, DIDDocument):
        return document
    return DIDDocument.from_dict(document)


def did_to_url(did: str) -> str:
    """Convert a did:web identifier to its resolution URL.

    did:web:example.com -> https://example.com/.well-known/did.json
    did:web:example.com:path:to:doc -> https://example.com/path/to/doc/did.json
    did:web:example.com%3A8080 -> https://example.com:8080/.well-known/did.json

    Args:
        did: The did:web identifier.

    Returns:
        The HTTPS URL to fetch the DID Document.

    Raises:
        DIDResolutionError: If the DID format is invalid.
    """
    if not did.startswith("did:web:"):
        raise DIDResolutionError(f"Invalid did:web identifier: {did}")

    # Remove the did:web: prefix and any fragment
    domain_path = did[8:].split("#")[0]

    # Split by colon to get path segments
    parts = domain_path.split(":")

    # First part is the domain (with potential port encoded as %3A)
    domain = parts[0].replace("%3A", ":")
    if not domain:
        raise DIDResolutionError(f"Invalid did:web identifier: {did}")

    # Remaining parts form the path
    if len(parts) > 1:
        path = "/" + "/".join(quote(p, safe="") for p in parts[1:]) + "/did.json"
    else:
        path = "/.well-known/did.json"

    return f"https://{domain}{path}"


class DIDResolver:
    """Resolver for did:web DID method."""

    def __init__(
        self,
        timeout: float = 30.0,
        verify_ssl: bool = True,
    ) -> None:
        """Initialize the DID resolver.

        Args:
            timeout: HTTP request timeout in seconds.
            verify_ssl: Whether to verify SSL certificates.
        """
        self.timeout = timeout
        self.verify_ssl = verify_ssl

    async def resolve(self, did: str) -> DIDDocument:
        """Resolve a did:web identifier to its DID Document.

        Args:
            did: The did:web identifier (e.g., "did:web:nzcp.identity.health.nz").

        Returns:
            The resolved DIDDocument.

        Raises:
            DIDResolutionError: If resolution fails.
        """
        base_did = did.split("#")[0]
        url = did_to_url(did)
        logger.debug("Resolving %s via %s", base_did, url)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, verify=self.verify_ssl
            ) as client:
                response = await client.get(
                    url,
                    headers={"Accept": "application/did+ld+json, application/json"},
                )
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            raise DIDResolutionError(
                f"HTTP error resolving {did}: {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise DIDResolutionError(f"Network error resolving {did}: {e}") from e
        except ValueError as e:
            raise DIDResolutionError(f"Invalid JSON in DID Document for {did}") from e

        document = DIDDocument.from_dict(data)
        if document.id != base_did:
            raise DIDResolutionError(
                f"DID Document id mismatch: expected {base_did}, got {document.id}"
            )
        return document


class StaticKeySource:
    """Offline key source backed by caller-supplied DID Documents."""

    def __init__(self, documents: Iterable[DIDDocumentLike]) -> None:
        self.documents = tuple(to_did_document(doc) for doc in documents)

    def resolve(self, did: str) -> DIDDocument | None:
        """Return the document whose id is ``did``, if one was supplied."""
        for document in self.documents:
            if document.id == did:
                return document
        return None
