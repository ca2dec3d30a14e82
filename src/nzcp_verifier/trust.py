"""
Trusted issuers and bundled DID Documents.

MOH_LIVE is the Ministry of Health issuer of real passes. MOH_EXAMPLE is the
issuer of the published NZCP worked examples and must not be trusted
in production.
https://nzcp.covid19.health.nz/#trusted-issuers
"""

from __future__ import annotations

from nzcp_verifier.did_resolver import DIDDocument


class TRUSTED_ISSUERS:
    MOH_LIVE = "did:web:nzcp.identity.health.nz"
    MOH_EXAMPLE = "did:web:nzcp.covid19.health.nz"


class DID_DOCUMENTS:
    # https://nzcp.identity.health.nz/.well-known/did.json
    MOH_LIVE = DIDDocument.from_dict(
        {
            "@context": [
                "https://w3.org/ns/did/v1",
                "https://w3id.org/security/suites/jws-2020/v1",
            ],
            "id": "did:web:nzcp.identity.health.nz",
            "verificationMethod": [
                {
                    "id": "did:web:nzcp.identity.health.nz#z12Kf7UQ",
                    "controller": "did:web:nzcp.identity.health.nz",
                    "type": "JsonWebKey2020",
                    "publicKeyJwk": {
                        "kty": "EC",
                        "crv": "P-256",
                        "x": "DQCKJusqMsT0u7CjpmhjVGkHln3A3fS-ayeH4Nu52tc",
                        "y": "lxgWzsLtVI8fqZmTPPo9nZ-kzGs7w7XO8-rUU68OxmI",
                    },
                }
            ],
            "assertionMethod": ["did:web:nzcp.identity.health.nz#z12Kf7UQ"],
        }
    )

    # https://nzcp.covid19.health.nz/.well-known/did.json
    MOH_EXAMPLE = DIDDocument.from_dict(
        {
            "@context": "https://w3.org/ns/did/v1",
            "id": "did:web:nzcp.covid19.health.nz",
            "verificationMethod": [
                {
                    "id": "did:web:nzcp.covid19.health.nz#key-1",
                    "controller": "did:web:nzcp.covid19.health.nz",
                    "type": "JsonWebKey2020",
                    "publicKeyJwk": {
                        "kty": "EC",
                        "crv": "P-256",
                        "x": "zRR-XGsCp12Vvbgui4DD6O6cqmhfPuXMhi1OxPl8760",
                        "y": "Iv5SU6FuW-TRYh5_GOrJlcV_gpF_GpFQhCOD8LSk3T0",
                    },
                }
            ],
            "assertionMethod": ["did:web:nzcp.covid19.health.nz#key-1"],
        }
    )


DEFAULT_TRUSTED_ISSUERS = (TRUSTED_ISSUERS.MOH_LIVE,)
DEFAULT_DID_DOCUMENTS = (DID_DOCUMENTS.MOH_LIVE,)
