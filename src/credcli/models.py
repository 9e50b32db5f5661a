"""Domain models for credcli."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CredentialType(str, Enum):
    """The fixed set of credential variants."""

    WEB = "web"
    VPN = "vpn"
    VPN_SERVICE = "vpn-service"
    PROBE = "probe"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    CredentialType.WEB: "Web",
    CredentialType.VPN: "VPN",
    CredentialType.VPN_SERVICE: "VPN service",
    CredentialType.PROBE: "Probe",
}


class Disposition(str, Enum):
    """How a payload fragment is delivered."""

    STORE = "store"
    SHOW = "show"


# ---------------------------------------------------------------------------
# Index / download
# ---------------------------------------------------------------------------


class CredentialRecord(BaseModel):
    """One entry of the credential index, as reported by the store."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: CredentialType
    owner: str
    identity: Optional[str] = None
    hostname: Optional[str] = None
    allocator: Optional[str] = None
    endpoint: Optional[str] = None
    description: Optional[str] = None


class FormatDescriptor(BaseModel):
    """An output encoding a credential can be downloaded in."""

    model_config = ConfigDict(frozen=True)

    id: str
    description: str


class Payload(BaseModel):
    """A deliverable fragment produced by :meth:`Credential.get`."""

    model_config = ConfigDict(frozen=True)

    description: str
    disposition: Disposition
    filename: Optional[str] = None
    data: bytes

    @model_validator(mode="after")
    def _check_filename(self) -> "Payload":
        if self.disposition is Disposition.STORE and not self.filename:
            raise ValueError("store payloads require a filename")
        if self.disposition is Disposition.SHOW and self.filename:
            raise ValueError("show payloads must not carry a filename")
        return self

    def text(self) -> str:
        """Return *data* decoded for display."""
        return self.data.decode("utf-8", errors="replace")


class Material(BaseModel):
    """Raw credential material returned by the store for one format."""

    model_config = ConfigDict(frozen=True)

    parts: dict[str, bytes] = Field(default_factory=dict)

    def part(self, name: str) -> Optional[bytes]:
        return self.parts.get(name)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class CreateRequest(BaseModel):
    """Everything the store needs to issue a new credential."""

    model_config = ConfigDict(frozen=True)

    type: CredentialType
    user: str
    identity: str
    hostname: Optional[str] = None
    allocator: Optional[str] = None
    endpoint: Optional[str] = None
    soc: Optional[str] = None


class RevocationOutcome(BaseModel):
    """Result of revoking one credential type during a revoke-all."""

    type: CredentialType
    ok: bool
    error: Optional[str] = None
