"""Signing of downloadable credential material.

Signature:  PKCS#7 / CMS SignedData, DER encoded, content attached.
Digest:     SHA-256.

Signed attributes (signing time, capabilities) are omitted so that signing
the same bytes twice with an RSA key yields identical output.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import pkcs7

from .exceptions import SigningError

logger = logging.getLogger(__name__)

_OPTIONS = [pkcs7.PKCS7Options.NoAttributes]


def load_signing_key(path: Path, password: Optional[bytes] = None):
    """Load a PEM private key suitable for PKCS#7 signing."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise SigningError(f"Cannot read signing key '{path}': {exc}") from exc
    try:
        key = serialization.load_pem_private_key(raw, password=password)
    except (ValueError, TypeError) as exc:
        raise SigningError(f"Signing key '{path}' is not a usable PEM private key.") from exc
    if not isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        raise SigningError(f"Signing key '{path}' must be an RSA or EC key.")
    return key


def load_signing_cert(path: Path) -> x509.Certificate:
    """Load the PEM certificate matching the signing key."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise SigningError(f"Cannot read signing certificate '{path}': {exc}") from exc
    try:
        return x509.load_pem_x509_certificate(raw)
    except ValueError as exc:
        raise SigningError(f"Signing certificate '{path}' is not a PEM certificate.") from exc


class Pkcs7Signer:
    """Signs payload data with a key/certificate pair read from disk.

    The files are read on first use, so constructing a signer never touches
    the filesystem.
    """

    def __init__(self, key_path: Path, cert_path: Path, password: Optional[bytes] = None) -> None:
        self.key_path = key_path
        self.cert_path = cert_path
        self._password = password
        self._key = None
        self._cert: Optional[x509.Certificate] = None

    def _load(self) -> None:
        if self._key is None:
            self._key = load_signing_key(self.key_path, self._password)
            self._cert = load_signing_cert(self.cert_path)
            if self._cert.public_key().public_numbers() != self._key.public_key().public_numbers():
                raise SigningError(
                    f"Signing key '{self.key_path}' does not match certificate '{self.cert_path}'."
                )

    def sign(self, data: bytes) -> bytes:
        """Return *data* wrapped in a DER PKCS#7 SignedData structure."""
        self._load()
        logger.debug("Signing %d bytes with %s", len(data), self.cert_path)
        try:
            return (
                pkcs7.PKCS7SignatureBuilder()
                .set_data(data)
                .add_signer(self._cert, self._key, hashes.SHA256())
                .sign(serialization.Encoding.DER, _OPTIONS)
            )
        except (ValueError, TypeError) as exc:
            raise SigningError(f"Signer rejected the payload: {exc}") from exc
