"""credcli: create, download and revoke typed credentials from a remote store."""

__version__ = "0.1.0"

from .backends import Backend, BackendOptions, CredentialStore, IdentityProvider, Signer, load_backend  # noqa: E402
from .credentials import (  # noqa: E402
    Credential,
    ProbeCredential,
    VpnCredential,
    VpnServiceCredential,
    WebCredential,
)
from .index import find_by_id, get_index  # noqa: E402
from .lifecycle import create, revoke, revoke_all  # noqa: E402
from .models import CredentialType, Disposition, FormatDescriptor, Payload  # noqa: E402
from .operations import download_credential, list_credentials, list_formats  # noqa: E402
from .session import Session, SessionBuilder  # noqa: E402

__all__ = [
    "Backend",
    "BackendOptions",
    "Credential",
    "CredentialStore",
    "CredentialType",
    "Disposition",
    "FormatDescriptor",
    "IdentityProvider",
    "Payload",
    "ProbeCredential",
    "Session",
    "SessionBuilder",
    "Signer",
    "VpnCredential",
    "VpnServiceCredential",
    "WebCredential",
    "create",
    "download_credential",
    "find_by_id",
    "get_index",
    "list_credentials",
    "list_formats",
    "load_backend",
    "revoke",
    "revoke_all",
]
