"""Credential variants and their download formats.

Each variant is a :class:`Credential` subclass registered against its
:class:`~credcli.models.CredentialType`. A variant declares

* ``catalog``             the formats it can be downloaded in, default first;
* ``required_attributes`` the creation attributes the store needs;
* ``signed_formats``      formats whose stored payloads are signed when the
                          session has signing configured;

and implements one ``_encode_<format>`` method per catalog entry, turning the
material fetched from the store into payloads.

Material parts
--------------
``pem``   cert, key, ca (optional)
``p12``   p12, password, ca (optional)
``ovpn``  ovpn

``mobileconfig`` is built locally from ``p12`` material.
"""

from __future__ import annotations

import logging
import plistlib
import uuid
from typing import ClassVar, Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12
from rich.console import Console
from rich.markup import escape

from .exceptions import (
    FormatEncodingError,
    RemoteFetchError,
    TransportError,
    UnsupportedFormatError,
)
from .models import (
    CredentialRecord,
    CredentialType,
    Disposition,
    FormatDescriptor,
    Material,
    Payload,
)
from .session import Session

logger = logging.getLogger(__name__)

_PEM = FormatDescriptor(id="pem", description="PEM certificate, key and CA files")
_P12 = FormatDescriptor(id="p12", description="PKCS#12 bundle with its password")


class Credential:
    """Base class for all credential variants. Read-only once constructed."""

    type: ClassVar[CredentialType]
    catalog: ClassVar[tuple[FormatDescriptor, ...]] = ()
    required_attributes: ClassVar[tuple[str, ...]] = ("identity",)
    signed_formats: ClassVar[frozenset[str]] = frozenset()
    # Formats assembled locally from another format's material.
    sources: ClassVar[dict[str, str]] = {}

    def __init__(self, record: CredentialRecord) -> None:
        self._record = record

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"

    @property
    def id(self) -> str:
        return self._record.id

    @property
    def record(self) -> CredentialRecord:
        return self._record

    @property
    def owner(self) -> str:
        return self._record.owner

    @property
    def identity(self) -> Optional[str]:
        return self._record.identity

    def attributes(self) -> dict[str, Optional[str]]:
        """Type-specific creation attributes carried by this credential."""
        return {name: getattr(self._record, name) for name in self.required_attributes}

    # ------------------------------------------------------------------
    # Format catalog
    # ------------------------------------------------------------------

    def formats(self) -> list[FormatDescriptor]:
        return list(self.catalog)

    def supports(self, format_id: str) -> bool:
        return any(f.id == format_id for f in self.catalog)

    @property
    def default_format(self) -> str:
        return self.catalog[0].id

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    def get(self, session: Session, format_id: Optional[str] = None) -> list[Payload]:
        """Fetch this credential's material and encode it as *format_id*.

        With no *format_id* the first catalog entry is used. An unsupported
        format fails before the store is contacted.
        """
        format_id = format_id or self.default_format
        if not self.supports(format_id):
            raise UnsupportedFormatError(self.id, format_id)

        source = self.sources.get(format_id, format_id)
        logger.debug("Fetching %s as %s (source %s)", self.id, format_id, source)
        try:
            material = session.store.fetch(self.id, source)
        except TransportError as exc:
            raise RemoteFetchError(self.id, format_id, str(exc)) from exc

        encode = getattr(self, f"_encode_{format_id.replace('-', '_')}")
        payloads = encode(session, material)

        signer = session.signer()
        if signer is not None and format_id in self.signed_formats:
            payloads = [
                p.model_copy(update={"data": signer.sign(p.data)})
                if p.disposition is Disposition.STORE
                else p
                for p in payloads
            ]
        return payloads

    def _require(self, material: Material, part: str, format_id: str) -> bytes:
        data = material.part(part)
        if not data:
            raise FormatEncodingError(self.id, format_id, f"store returned no '{part}'")
        return data

    def _encode_pem(self, session: Session, material: Material) -> list[Payload]:
        payloads = [
            Payload(
                description="Certificate",
                disposition=Disposition.STORE,
                filename=f"{self.id}.crt",
                data=self._require(material, "cert", "pem"),
            ),
            Payload(
                description="Private key",
                disposition=Disposition.STORE,
                filename=f"{self.id}.key",
                data=self._require(material, "key", "pem"),
            ),
        ]
        ca = material.part("ca")
        if ca:
            payloads.append(
                Payload(
                    description="CA certificate",
                    disposition=Disposition.STORE,
                    filename=f"{self.id}-ca.crt",
                    data=ca,
                )
            )
        return payloads

    def _encode_p12(self, session: Session, material: Material) -> list[Payload]:
        return [
            Payload(
                description="PKCS#12 bundle",
                disposition=Disposition.STORE,
                filename=f"{self.id}.p12",
                data=self._require(material, "p12", "p12"),
            ),
            Payload(
                description="Password",
                disposition=Disposition.SHOW,
                data=self._require(material, "password", "p12"),
            ),
        ]

    # ------------------------------------------------------------------
    # Describe
    # ------------------------------------------------------------------

    def summary(self) -> str:
        if self._record.description:
            return self._record.description
        return f"{self.type.label} credential for {self.identity or self.owner}"

    def describe(self, sink: Console, verbose: bool = False) -> None:
        """Write a one-line description, plus attributes when *verbose*."""
        sink.print(f"[bold]{escape(self.id):<30}[/bold] {escape(self.summary())}")
        if not verbose:
            return
        sink.print(f"  [dim]type[/dim]      {self.type.value}")
        sink.print(f"  [dim]owner[/dim]     {escape(self.owner)}")
        for name, value in self.attributes().items():
            if value:
                sink.print(f"  [dim]{name:<9}[/dim] {escape(value)}")
        sink.print(f"  [dim]formats[/dim]   {', '.join(f.id for f in self.catalog)}")


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------


class WebCredential(Credential):
    """Browser client certificate."""

    type = CredentialType.WEB
    catalog = (
        FormatDescriptor(id="pem", description="PEM certificate and key, displayed"),
        _P12,
    )

    def _encode_pem(self, session: Session, material: Material) -> list[Payload]:
        data = self._require(material, "cert", "pem")
        key = material.part("key")
        if key:
            data = data.rstrip(b"\n") + b"\n" + key
        return [Payload(description="Certificate", disposition=Disposition.SHOW, data=data)]


class VpnCredential(Credential):
    """Client credential for the VPN."""

    type = CredentialType.VPN
    catalog = (
        FormatDescriptor(id="ovpn", description="OpenVPN configuration file"),
        FormatDescriptor(id="mobileconfig", description="Apple configuration profile"),
        _P12,
        _PEM,
    )
    signed_formats = frozenset({"mobileconfig"})
    sources = {"mobileconfig": "p12"}

    def _encode_ovpn(self, session: Session, material: Material) -> list[Payload]:
        return [
            Payload(
                description="OpenVPN configuration",
                disposition=Disposition.STORE,
                filename=f"{self.id}.ovpn",
                data=self._require(material, "ovpn", "ovpn"),
            )
        ]

    def _encode_mobileconfig(self, session: Session, material: Material) -> list[Payload]:
        profile = build_mobileconfig(self, session, material)
        return [
            Payload(
                description="Apple configuration profile",
                disposition=Disposition.STORE,
                filename=f"{self.id}.mobileconfig",
                data=profile,
            )
        ]


class VpnServiceCredential(Credential):
    """Server-side credential for a VPN endpoint."""

    type = CredentialType.VPN_SERVICE
    catalog = (_PEM, _P12)
    required_attributes = ("identity", "hostname", "allocator")


class ProbeCredential(Credential):
    """Credential for a network probe delivering to an endpoint."""

    type = CredentialType.PROBE
    catalog = (_PEM, _P12)
    required_attributes = ("identity", "endpoint")


_VARIANTS: dict[CredentialType, type[Credential]] = {
    cls.type: cls
    for cls in (WebCredential, VpnCredential, VpnServiceCredential, ProbeCredential)
}


def credential_class(cred_type: CredentialType) -> type[Credential]:
    return _VARIANTS[cred_type]


def from_record(record: CredentialRecord) -> Credential:
    """Hydrate an index record into its variant."""
    return _VARIANTS[record.type](record)


# ---------------------------------------------------------------------------
# Apple configuration profiles
# ---------------------------------------------------------------------------


def _payload_uuid(identifier: str, credential_id: str, kind: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{identifier}/{credential_id}/{kind}")).upper()


def build_mobileconfig(cred: Credential, session: Session, material: Material) -> bytes:
    """Render an XML configuration profile installing the PKCS#12 identity.

    UUIDs are derived from the profile identifier and credential id, so the
    output only changes when the material or device profile does.
    """
    p12 = cred._require(material, "p12", "mobileconfig")
    password = cred._require(material, "password", "mobileconfig")
    try:
        pkcs12.load_key_and_certificates(p12, password)
    except ValueError as exc:
        raise FormatEncodingError(
            cred.id, "mobileconfig", "PKCS#12 bundle does not open with its password"
        ) from exc

    device = session.config.device_profile
    base = f"{device.identifier}.{cred.id}"
    content = [
        {
            "PayloadType": "com.apple.security.pkcs12",
            "PayloadVersion": 1,
            "PayloadIdentifier": f"{base}.pkcs12",
            "PayloadUUID": _payload_uuid(device.identifier, cred.id, "pkcs12"),
            "PayloadDisplayName": cred.id,
            "PayloadContent": p12,
            "Password": password.decode("utf-8"),
        }
    ]

    ca = material.part("ca")
    if ca:
        try:
            ca_der = x509.load_pem_x509_certificate(ca).public_bytes(serialization.Encoding.DER)
        except ValueError as exc:
            raise FormatEncodingError(cred.id, "mobileconfig", "CA certificate is not PEM") from exc
        content.append(
            {
                "PayloadType": "com.apple.security.root",
                "PayloadVersion": 1,
                "PayloadIdentifier": f"{base}.ca",
                "PayloadUUID": _payload_uuid(device.identifier, cred.id, "ca"),
                "PayloadDisplayName": f"{cred.id} CA",
                "PayloadContent": ca_der,
            }
        )

    profile = {
        "PayloadType": "Configuration",
        "PayloadVersion": 1,
        "PayloadIdentifier": base,
        "PayloadUUID": _payload_uuid(device.identifier, cred.id, "profile"),
        "PayloadDisplayName": device.name,
        "PayloadDescription": device.description,
        "PayloadContent": content,
    }
    return plistlib.dumps(profile, fmt=plistlib.FMT_XML, sort_keys=True)
