"""Delivery of downloaded payloads to files and the console.

Stored payloads are written to a temporary file beside the target, restricted
to owner read/write, then renamed over the target. A failed write removes the
temporary file and leaves any existing target as it was.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable

from rich.console import Console

from .exceptions import DeliveryError
from .models import Disposition, Payload

logger = logging.getLogger(__name__)


def deliver(payloads: Iterable[Payload], console: Console, directory: Path = Path(".")) -> list[Path]:
    """Deliver *payloads* in order; returns the paths written."""
    written: list[Path] = []
    for payload in payloads:
        if payload.disposition is Disposition.STORE:
            path = write_payload(payload, directory)
            written.append(path)
            console.print(f"{payload.description} written to {path}", markup=False, highlight=False)
        else:
            console.print(
                f"{payload.description}: {payload.text()}",
                markup=False,
                highlight=False,
                soft_wrap=True,
            )
    return written


def write_payload(payload: Payload, directory: Path) -> Path:
    """Atomically write one store-disposition payload under *directory*."""
    name = payload.filename or ""
    if not name or Path(name).name != name or name in (".", ".."):
        raise DeliveryError(name, "filename must be a plain file name")

    target = directory / name
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{name}.", suffix=".tmp")
    except OSError as exc:
        raise DeliveryError(name, exc.strerror or str(exc)) from exc

    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload.data)
        # Restrict permissions: owner read/write only
        os.chmod(tmp, 0o600)
        os.replace(tmp, target)
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        raise DeliveryError(name, exc.strerror or str(exc)) from exc

    logger.debug("Wrote %d bytes to %s", len(payload.data), target)
    return target
