"""Creation and revocation of credentials.

A credential moves Absent -> Active (create) -> Revoked (revoke). Required
attributes are checked locally before any remote call, so a rejected request
never leaves partial state in the store. What happens when an absent or
already-revoked credential is revoked is up to the store.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .credentials import credential_class
from .exceptions import (
    CreationError,
    CredentialsError,
    MissingAttributeError,
    RevocationError,
    TransportError,
)
from .models import CreateRequest, CredentialType, RevocationOutcome
from .session import Session

logger = logging.getLogger(__name__)


def _owner(session: Session, user: Optional[str]) -> str:
    return user or session.resolve_identity()


def create(
    session: Session,
    cred_type: CredentialType,
    identity: Optional[str],
    *,
    user: Optional[str] = None,
    hostname: Optional[str] = None,
    allocator: Optional[str] = None,
    endpoint: Optional[str] = None,
) -> CreateRequest:
    """Ask the store to issue a *cred_type* credential for *identity*.

    *user* (the owner) defaults to the session identity. Returns the request
    that was sent.
    """
    attrs = {
        "identity": identity,
        "hostname": hostname,
        "allocator": allocator,
        "endpoint": endpoint,
    }
    for name in credential_class(cred_type).required_attributes:
        if not attrs[name]:
            raise MissingAttributeError(name, cred_type.label)

    request = CreateRequest(
        type=cred_type,
        user=_owner(session, user),
        identity=identity,
        hostname=hostname,
        allocator=allocator,
        endpoint=endpoint,
        soc=session.config.soc,
    )

    logger.debug("Creating %s credential for %s", cred_type.value, identity)
    try:
        session.store.create(request)
    except TransportError as exc:
        raise CreationError(cred_type.label, identity, str(exc)) from exc
    return request


def revoke(
    session: Session,
    cred_type: CredentialType,
    identity: Optional[str],
    *,
    user: Optional[str] = None,
) -> None:
    """Revoke the *cred_type* credential issued to *identity*."""
    if not identity:
        raise MissingAttributeError("identity", cred_type.label)
    owner = _owner(session, user)

    logger.debug("Revoking %s credential for %s", cred_type.value, identity)
    try:
        session.store.revoke(cred_type, owner, identity)
    except TransportError as exc:
        raise RevocationError(cred_type.label, identity, str(exc)) from exc


def revoke_all(session: Session, *, user: Optional[str] = None) -> list[RevocationOutcome]:
    """Revoke every credential the owner holds, one credential type at a time.

    Every type is revoked independently, without consulting the index, and
    gets its own outcome; one failure does not stop the others, so the caller
    can retry just the failed types.
    """
    owner = _owner(session, user)

    outcomes = []
    for cred_type in CredentialType:
        try:
            session.store.revoke(cred_type, owner, None)
        except CredentialsError as exc:
            logger.warning("Revoking %s credentials for %s failed: %s", cred_type.value, owner, exc)
            outcomes.append(RevocationOutcome(type=cred_type, ok=False, error=str(exc)))
        else:
            outcomes.append(RevocationOutcome(type=cred_type, ok=True))
    return outcomes


def all_ok(outcomes: Iterable[RevocationOutcome]) -> bool:
    return all(o.ok for o in outcomes)
