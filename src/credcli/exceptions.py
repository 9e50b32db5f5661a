"""Error taxonomy for credcli.

Every failure raised by the library derives from :class:`CredentialsError` and
carries the context needed to act on it (credential id, type, format,
filename or attribute name) as attributes as well as in its message.
"""

from __future__ import annotations

from typing import Optional


class CredentialsError(Exception):
    """Base class for all credcli errors."""


# ---------------------------------------------------------------------------
# Identity / transport
# ---------------------------------------------------------------------------


class IdentityResolutionError(CredentialsError):
    """Raised when no identity can be resolved for the session."""


class TransportError(CredentialsError):
    """Raised by backends when the remote service cannot be reached.

    The core translates this into the operation-specific error
    (:class:`IndexUnavailableError`, :class:`RemoteFetchError`, ...).
    """


class BackendError(CredentialsError):
    """Raised when a backend reference cannot be loaded."""


# ---------------------------------------------------------------------------
# Index / lookup
# ---------------------------------------------------------------------------


class IndexUnavailableError(CredentialsError):
    """Raised when the credential index cannot be retrieved."""

    def __init__(self, identity: str, reason: str) -> None:
        super().__init__(f"Credential index for '{identity}' unavailable: {reason}")
        self.identity = identity


class CredentialNotFoundError(CredentialsError):
    """Raised when no credential in the index has the requested id."""

    def __init__(self, credential_id: str) -> None:
        super().__init__(f"Credential '{credential_id}' not found.")
        self.credential_id = credential_id


class CredentialRevokedError(CredentialsError):
    """Raised by a store when material is requested for a revoked credential."""

    def __init__(self, credential_id: str) -> None:
        super().__init__(f"Credential '{credential_id}' has been revoked.")
        self.credential_id = credential_id


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------


class UnsupportedFormatError(CredentialsError):
    """Raised when a credential is asked for a format it does not offer."""

    def __init__(self, credential_id: str, format_id: str) -> None:
        super().__init__(
            f"Credential '{credential_id}' does not support format '{format_id}'."
        )
        self.credential_id = credential_id
        self.format_id = format_id


class RemoteFetchError(CredentialsError):
    """Raised when credential material cannot be fetched from the store."""

    def __init__(self, credential_id: str, format_id: str, reason: str) -> None:
        super().__init__(
            f"Fetching '{credential_id}' as '{format_id}' failed: {reason}"
        )
        self.credential_id = credential_id
        self.format_id = format_id


class SigningError(CredentialsError):
    """Raised when signing material is missing or the signer rejects it."""


class FormatEncodingError(CredentialsError):
    """Raised when fetched material cannot be encoded into the requested format."""

    def __init__(self, credential_id: str, format_id: str, reason: str) -> None:
        super().__init__(
            f"Cannot encode '{credential_id}' as '{format_id}': {reason}"
        )
        self.credential_id = credential_id
        self.format_id = format_id


class DeliveryError(CredentialsError):
    """Raised when a payload cannot be written to its target file."""

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"Could not write '{filename}': {reason}")
        self.filename = filename


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class MissingAttributeError(CredentialsError):
    """Raised before any remote call when a required creation attribute is absent."""

    def __init__(self, field: str, cred_type: Optional[str] = None) -> None:
        if cred_type:
            message = f"Must specify {field} for {cred_type} credentials."
        else:
            message = f"Must specify {field}."
        super().__init__(message)
        self.field = field
        self.cred_type = cred_type


class CreationConflictError(CredentialsError):
    """Raised by a store when the (type, identity) pair already exists."""

    def __init__(self, cred_type: str, identity: str) -> None:
        super().__init__(
            f"A {cred_type} credential for '{identity}' already exists."
        )
        self.cred_type = cred_type
        self.identity = identity


class CreationError(CredentialsError):
    """Raised when the store could not be reached to create a credential."""

    def __init__(self, cred_type: str, identity: str, reason: str) -> None:
        super().__init__(
            f"Creating {cred_type} credential for '{identity}' failed: {reason}"
        )
        self.cred_type = cred_type
        self.identity = identity


class RevocationError(CredentialsError):
    """Raised when a revocation is rejected or cannot be delivered."""

    def __init__(self, cred_type: str, identity: Optional[str], reason: str) -> None:
        target = f"'{identity}'" if identity else "all identities"
        super().__init__(f"Revoking {cred_type} credential for {target} failed: {reason}")
        self.cred_type = cred_type
        self.identity = identity
