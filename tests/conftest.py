"""Shared fixtures: an in-memory credential store, identity provider and test PKI."""

from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID
from rich.console import Console

from credcli.exceptions import CreationConflictError, CredentialRevokedError, TransportError
from credcli.models import CreateRequest, CredentialRecord, CredentialType, Material
from credcli.session import SessionBuilder

P12_PASSWORD = b"correcthorse"


# ---------------------------------------------------------------------------
# PKI
# ---------------------------------------------------------------------------


@dataclass
class Pki:
    key: rsa.RSAPrivateKey
    cert: x509.Certificate
    key_pem: bytes
    cert_pem: bytes
    ca_pem: bytes
    p12: bytes
    password: bytes = P12_PASSWORD


def _self_signed(common_name: str) -> tuple[rsa.RSAPrivateKey, x509.Certificate]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .sign(key, hashes.SHA256())
    )
    return key, cert


@pytest.fixture(scope="session")
def pki() -> Pki:
    key, cert = _self_signed("alice@example.com")
    _, ca = _self_signed("Example CA")
    return Pki(
        key=key,
        cert=cert,
        key_pem=key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ),
        cert_pem=cert.public_bytes(serialization.Encoding.PEM),
        ca_pem=ca.public_bytes(serialization.Encoding.PEM),
        p12=pkcs12.serialize_key_and_certificates(
            b"alice", key, cert, None, serialization.BestAvailableEncryption(P12_PASSWORD)
        ),
    )


@pytest.fixture(scope="session")
def signing_files(tmp_path_factory):
    """A signing key/cert pair written to disk."""
    key, cert = _self_signed("Example Signer")
    d = tmp_path_factory.mktemp("signing")
    key_path = d / "signer.key"
    cert_path = d / "signer.crt"
    key_path.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.TraditionalOpenSSL,
            serialization.NoEncryption(),
        )
    )
    cert_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    return key_path, cert_path, cert


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class FakeProvider:
    def __init__(self, email: str = "alice@example.com") -> None:
        self.email = email
        self.calls = 0

    def get_email_address(self) -> str:
        self.calls += 1
        return self.email


class FakeStore:
    """In-memory store.

    Revoked credentials stay in ``list`` results unless ``hide_revoked`` is
    set; fetching one raises CredentialRevokedError. Creating a live
    (type, identity) pair twice is a conflict.
    """

    def __init__(self) -> None:
        self.records: list[CredentialRecord] = []
        self.material: dict[tuple[str, str], Material] = {}
        self.revoked: set[str] = set()
        self.calls: list[tuple] = []
        self.fail_list = False
        self.hide_revoked = False
        self.fail_fetch = False
        self.fail_revoke: set[CredentialType] = set()
        self.issue_parts: dict[str, bytes] = {}

    def add(self, record: CredentialRecord, **material: dict[str, bytes]) -> CredentialRecord:
        self.records.append(record)
        for format_id, parts in material.items():
            self.material[(record.id, format_id)] = Material(parts=parts)
        return record

    def list(self, identity: str) -> list[CredentialRecord]:
        self.calls.append(("list", identity))
        if self.fail_list:
            raise TransportError("connection refused")
        return [
            r for r in self.records
            if r.owner == identity and not (self.hide_revoked and r.id in self.revoked)
        ]

    def fetch(self, credential_id: str, format_id: str) -> Material:
        self.calls.append(("fetch", credential_id, format_id))
        if self.fail_fetch:
            raise TransportError("read timed out")
        if credential_id in self.revoked:
            raise CredentialRevokedError(credential_id)
        return self.material.get((credential_id, format_id), Material())

    def create(self, request: CreateRequest) -> None:
        self.calls.append(("create", request))
        for r in self.records:
            if r.type == request.type and r.identity == request.identity and r.id not in self.revoked:
                raise CreationConflictError(request.type.label, request.identity)
        cred_id = f"{request.type.value}-{request.identity}"
        self.add(
            CredentialRecord(
                id=cred_id,
                type=request.type,
                owner=request.user,
                identity=request.identity,
                hostname=request.hostname,
                allocator=request.allocator,
                endpoint=request.endpoint,
            ),
            pem=self.issue_parts,
        )

    def revoke(self, cred_type: CredentialType, user: str, identity: Optional[str]) -> None:
        self.calls.append(("revoke", cred_type, user, identity))
        if cred_type in self.fail_revoke:
            raise TransportError("service unavailable")
        for r in self.records:
            if r.owner == user and r.type == cred_type and (identity is None or r.identity == identity):
                self.revoked.add(r.id)

    def remote_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] != "list"]


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def session(store, provider):
    return SessionBuilder().build(store, provider)


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=200)
