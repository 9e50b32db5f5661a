"""Credential index: the credentials an identity owns, hydrated by type."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .credentials import Credential, from_record
from .exceptions import CredentialNotFoundError, IndexUnavailableError, TransportError
from .session import Session

logger = logging.getLogger(__name__)


def get_index(session: Session, identity: Optional[str] = None) -> list[Credential]:
    """Query the store for the credentials owned by *identity*.

    *identity* defaults to the session identity. Order follows the store's
    response. An identity with no credentials gets an empty list.
    """
    identity = identity or session.resolve_identity()
    logger.debug("Fetching credential index for %s", identity)
    try:
        records = session.store.list(identity)
    except TransportError as exc:
        raise IndexUnavailableError(identity, str(exc)) from exc

    return [from_record(record) for record in records]


def find_by_id(index: Iterable[Credential], credential_id: str) -> Credential:
    """Return the credential whose id equals *credential_id*.

    Ids are unique under a well-behaved store. If the index nonetheless holds
    duplicates, the last one wins and a warning is logged.
    """
    selected = None
    matches = 0
    for cred in index:
        if cred.id == credential_id:
            selected = cred
            matches += 1

    if selected is None:
        raise CredentialNotFoundError(credential_id)
    if matches > 1:
        logger.warning(
            "Credential index holds %d entries with id %s; using the last one",
            matches,
            credential_id,
        )
    return selected
