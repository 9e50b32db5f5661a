"""Collaborator interfaces consumed by the core.

The identity provider and the credential store are supplied by a *backend*:
a ``module:callable`` factory that receives :class:`BackendOptions` and
returns a :class:`Backend`. credcli ships no backend of its own; the transport
and the authentication handshake belong to whoever implements one.

Backend contract
----------------
* Transport failures are raised as :class:`~credcli.exceptions.TransportError`.
* ``store.create`` raises :class:`~credcli.exceptions.CreationConflictError`
  when the store rejects a duplicate (type, identity) pair. Stores that treat
  create as idempotent simply return.
* ``store.fetch`` on a revoked credential either raises
  :class:`~credcli.exceptions.CredentialRevokedError`, or the store omits
  revoked credentials from ``list`` so they are never fetched. Each backend
  documents which.
* ``store.revoke`` with ``identity=None`` revokes every credential of that
  type owned by *user*.
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from .exceptions import BackendError
from .models import CreateRequest, CredentialRecord, CredentialType, Material

logger = logging.getLogger(__name__)


@runtime_checkable
class IdentityProvider(Protocol):
    """Resolves the email address of the authenticated operator."""

    def get_email_address(self) -> str: ...


@runtime_checkable
class CredentialStore(Protocol):
    """Client-side view of the remote credential store."""

    def list(self, identity: str) -> list[CredentialRecord]: ...

    def fetch(self, credential_id: str, format_id: str) -> Material: ...

    def create(self, request: CreateRequest) -> None: ...

    def revoke(
        self, cred_type: CredentialType, user: str, identity: Optional[str]
    ) -> None: ...


@runtime_checkable
class Signer(Protocol):
    """Turns raw credential material into a signed encoding."""

    def sign(self, data: bytes) -> bytes: ...


class BackendOptions(BaseModel):
    """What the CLI knows about authentication and placement."""

    model_config = ConfigDict(frozen=True)

    token_file: Path
    service_account_key: Optional[Path] = None
    project: str = "example"
    bucket: str = "example-credentials"


@dataclass(frozen=True)
class Backend:
    """The collaborators a backend factory hands to the CLI.

    *authenticator*, when present, runs the backend's interactive sign-in
    and writes the resulting token to the given path.
    """

    identity_provider: Optional[IdentityProvider]
    store: CredentialStore
    authenticator: Optional[Callable[[Path], None]] = None


BackendFactory = Callable[[BackendOptions], Backend]


def load_backend(reference: str, options: BackendOptions) -> Backend:
    """Import the factory named by *reference* (``module:callable``) and call it."""
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise BackendError(
            f"Invalid backend reference '{reference}'; expected 'module:callable'."
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise BackendError(f"Cannot import backend module '{module_name}': {exc}") from exc

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise BackendError(f"Backend '{reference}' is not a callable.")

    logger.debug("Loading backend %s", reference)
    try:
        backend = factory(options)
    except BackendError:
        raise
    except Exception as exc:
        raise BackendError(f"Backend '{reference}' failed to initialise: {exc}") from exc

    if not isinstance(backend, Backend):
        raise BackendError(f"Backend '{reference}' did not return a Backend.")
    return backend
