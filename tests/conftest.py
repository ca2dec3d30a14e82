"""Shared fixtures: test keys, DID Documents and a pass factory."""

from __future__ import annotations

import base64

import cbor2
import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

# 2024-01-01T00:00:00Z. Inside the validity window of the published NZCP
# example pass, after the expired example and before the not-yet-active one.
NOW = 1704067200

ISSUER = "did:web:example.com"
KID = "key-1"
CTI = bytes.fromhex("60a4f54d4e304332be33ad78b1eafa4b")

# https://nzcp.covid19.health.nz/#valid-worked-example
EXAMPLE_PASS = (
    "NZCP:/1/2KCEVIQEIVVWK6JNGEASNICZAEP2KALYDZSGSZB2O5SWEOTOPJRXALTDN53GSZBRHEXGQZLBNR2GQLTOPICRUYMBTIFAIGTUKBAAUYTWMOSGQQDDN5XHIZLYOSBHQJTIOR2HA4Z2F4XXO53XFZ3TGLTPOJTS6MRQGE4C6Y3SMVSGK3TUNFQWY4ZPOYYXQKTIOR2HA4Z2F4XW46TDOAXGG33WNFSDCOJONBSWC3DUNAXG46RPMNXW45DFPB2HGL3WGFTXMZLSONUW63TFGEXDALRQMR2HS4DFQJ2FMZLSNFTGSYLCNRSUG4TFMRSW45DJMFWG6UDVMJWGSY2DN53GSZCQMFZXG4LDOJSWIZLOORUWC3CTOVRGUZLDOSRWSZ3JOZSW4TTBNVSWISTBMNVWUZTBNVUWY6KOMFWWKZ2TOBQXE4TPO5RWI33CNIYTSNRQFUYDILJRGYDVAYFE6VGU4MCDGK7DHLLYWHVPUS2YIDJOA6Y524TD3AZRM263WTY2BE4DPKIF27WKF3UDNNVSVWRDYIYVJ65IRJJJ6Z25M2DO4YZLBHWFQGVQR5ZLIWEQJOZTS3IQ7JTNCFDX"
)

EXAMPLE_PASS_HEX = (
    "d2844aa204456b65792d310126a059011fa501781e6469643a7765623a6e7a63702e636f76696431392e6865616c74682e6e7a051a61819a0a041a7450400a627663a46840636f6e7465787482782668747470733a2f2f7777772e77332e6f72672f323031382f63726564656e7469616c732f7631782a68747470733a2f2f6e7a63702e636f76696431392e6865616c74682e6e7a2f636f6e74657874732f76316776657273696f6e65312e302e306474797065827456657269666961626c6543726564656e7469616c6f5075626c6963436f766964506173737163726564656e7469616c5375626a656374a369676976656e4e616d65644a61636b6a66616d696c794e616d656753706172726f7763646f626a313936302d30342d3136075060a4f54d4e304332be33ad78b1eafa4b5840d2e07b1dd7263d833166bdbb4f1a093837a905d7eca2ee836b6b2ada23c23154fba88a529f675d6686ee632b09ec581ab08f72b458904bb3396d10fa66d11477"
)

# https://nzcp.covid19.health.nz/.well-known/did.json
EXAMPLE_DID_DOCUMENT = {
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


def b32_without_padding(data: bytes) -> str:
    return base64.b32encode(data).decode().rstrip("=")


def pass_to_bytes(uri: str) -> bytes:
    body = uri.split("/")[2]
    return base64.b32decode(body + "=" * (-len(body) % 8))


def bytes_to_pass(data: bytes) -> str:
    return "NZCP:/1/" + b32_without_padding(data)


def credential(**subject_overrides) -> dict:
    subject = {"givenName": "Jack", "familyName": "Sparrow", "dob": "1960-04-16"}
    subject.update(subject_overrides)
    return {
        "@context": [
            "https://www.w3.org/2018/credentials/v1",
            "https://nzcp.covid19.health.nz/contexts/v1",
        ],
        "version": "1.0.0",
        "type": ["VerifiableCredential", "PublicCovidPass"],
        "credentialSubject": subject,
    }


def default_claims(nbf: int = NOW - 3600, exp: int = NOW + 3600) -> dict:
    return {1: ISSUER, 5: nbf, 4: exp, "vc": credential(), 7: CTI}


def sign_pass(
    private_key,
    claims: dict | None = None,
    headers: dict | None = None,
) -> str:
    """Build and sign a pass the way an issuer would."""
    if headers is None:
        headers = {4: KID.encode(), 1: -7}
    if claims is None:
        claims = default_claims()

    protected = cbor2.dumps(headers)
    payload = cbor2.dumps(claims)
    to_be_signed = cbor2.dumps(["Signature1", protected, b"", payload])

    der_signature = private_key.sign(to_be_signed, ec.ECDSA(hashes.SHA256()))
    r, s = decode_dss_signature(der_signature)
    signature = r.to_bytes(32, "big") + s.to_bytes(32, "big")

    cose = cbor2.dumps(cbor2.CBORTag(18, [protected, {}, payload, signature]))
    return bytes_to_pass(cose)


@pytest.fixture
def ec_key_pair():
    """Generate a test EC P-256 key pair."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    return private_key, private_key.public_key()


@pytest.fixture
def public_key_jwk(ec_key_pair):
    """Get the public key as JWK."""
    _, public_key = ec_key_pair
    public_numbers = public_key.public_numbers()

    x_bytes = public_numbers.x.to_bytes(32, byteorder="big")
    y_bytes = public_numbers.y.to_bytes(32, byteorder="big")

    return {
        "kty": "EC",
        "crv": "P-256",
        "x": base64.urlsafe_b64encode(x_bytes).decode().rstrip("="),
        "y": base64.urlsafe_b64encode(y_bytes).decode().rstrip("="),
    }


@pytest.fixture
def did_document(public_key_jwk):
    """Create a test DID Document for ISSUER."""
    return {
        "@context": [
            "https://www.w3.org/ns/did/v1",
            "https://w3id.org/security/suites/jws-2020/v1",
        ],
        "id": ISSUER,
        "verificationMethod": [
            {
                "id": f"{ISSUER}#{KID}",
                "type": "JsonWebKey2020",
                "controller": ISSUER,
                "publicKeyJwk": public_key_jwk,
            }
        ],
        "assertionMethod": [f"{ISSUER}#{KID}"],
    }


@pytest.fixture
def make_pass(ec_key_pair):
    """Sign passes with the fixture key."""
    private_key, _ = ec_key_pair

    def _make(claims: dict | None = None, headers: dict | None = None) -> str:
        return sign_pass(private_key, claims=claims, headers=headers)

    return _make
