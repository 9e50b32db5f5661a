"""Session: authenticated identity plus immutable configuration.

Identity resolution order
-------------------------
1. An explicit user override (``--user`` on the command line).
2. The identity provider's email address for the authenticated operator.

The result is resolved at most once per :class:`Session` and cached. No
remote call is made until something asks for the identity.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict

from .backends import CredentialStore, IdentityProvider, Signer
from .exceptions import IdentityResolutionError, TransportError
from .signing import Pkcs7Signer

logger = logging.getLogger(__name__)


class SigningConfig(BaseModel):
    """Key and certificate used to sign downloadable material."""

    model_config = ConfigDict(frozen=True)

    key_ref: Path
    cert_ref: Path


class DeviceProfile(BaseModel):
    """Metadata stamped into Apple configuration profiles."""

    model_config = ConfigDict(frozen=True)

    identifier: str = "com.example.credentials"
    name: str = "VPN"
    description: str = "VPN configuration"


class SessionConfig(BaseModel):
    """Fully-specified session options. Never mutated once built."""

    model_config = ConfigDict(frozen=True)

    project: str = "example"
    bucket: str = "example-credentials"
    user: Optional[str] = None
    signing: Optional[SigningConfig] = None
    device_profile: DeviceProfile = DeviceProfile()
    soc: Optional[str] = None


SignerFactory = Callable[[SigningConfig], Signer]


def _default_signer(signing: SigningConfig) -> Signer:
    return Pkcs7Signer(signing.key_ref, signing.cert_ref)


class Session:
    """One process invocation's view of the credential service."""

    def __init__(
        self,
        config: SessionConfig,
        store: CredentialStore,
        identity_provider: Optional[IdentityProvider] = None,
        signer_factory: SignerFactory = _default_signer,
    ) -> None:
        self.config = config
        self.store = store
        self._identity_provider = identity_provider
        self._signer_factory = signer_factory
        self._identity: Optional[str] = None
        self._signer: Optional[Signer] = None

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def resolve_identity(self) -> str:
        """Return the session identity, resolving it on first call."""
        if self._identity is not None:
            return self._identity

        if self.config.user:
            self._identity = self.config.user
            return self._identity

        if self._identity_provider is None:
            raise IdentityResolutionError(
                "No user specified and no identity provider is configured."
            )

        logger.debug("Resolving identity from provider")
        try:
            email = self._identity_provider.get_email_address()
        except TransportError as exc:
            raise IdentityResolutionError(f"Identity provider lookup failed: {exc}") from exc
        if not email:
            raise IdentityResolutionError("Identity provider returned no email address.")

        self._identity = email
        return self._identity

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def signer(self) -> Optional[Signer]:
        """Return the configured signer, or ``None`` when signing is off."""
        if self.config.signing is None:
            return None
        if self._signer is None:
            self._signer = self._signer_factory(self.config.signing)
        return self._signer


class SessionBuilder:
    """Chainable, idempotent construction of a :class:`SessionConfig`.

    Example::

        session = (
            SessionBuilder()
            .project("example")
            .bucket("example-credentials")
            .signing(Path("sign.key"), Path("sign.crt"))
            .build(store, provider)
        )
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def _set(self, name: str, value: Any) -> "SessionBuilder":
        if self._values.get(name) != value:
            self._values[name] = value
        return self

    def project(self, project: str) -> "SessionBuilder":
        return self._set("project", project)

    def bucket(self, bucket: str) -> "SessionBuilder":
        return self._set("bucket", bucket)

    def user(self, user: Optional[str]) -> "SessionBuilder":
        """Act as *user*; a blank value keeps the current setting."""
        if not user:
            return self
        return self._set("user", user)

    def signing(self, key_ref: Path, cert_ref: Path) -> "SessionBuilder":
        return self._set("signing", SigningConfig(key_ref=key_ref, cert_ref=cert_ref))

    def device_profile(
        self,
        identifier: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> "SessionBuilder":
        """Override device-profile fields; blank values keep the current ones."""
        current: DeviceProfile = self._values.get("device_profile", DeviceProfile())
        fields = {
            k: v
            for k, v in (("identifier", identifier), ("name", name), ("description", description))
            if v
        }
        return self._set("device_profile", current.model_copy(update=fields))

    def soc(self, soc: Optional[str]) -> "SessionBuilder":
        if not soc:
            return self
        return self._set("soc", soc)

    def config(self) -> SessionConfig:
        return SessionConfig(**self._values)

    def build(
        self,
        store: CredentialStore,
        identity_provider: Optional[IdentityProvider] = None,
        signer_factory: SignerFactory = _default_signer,
    ) -> Session:
        return Session(self.config(), store, identity_provider, signer_factory)
