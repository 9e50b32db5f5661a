"""Use cases exposed to the command line: list, download, list formats.

Every call rebuilds the index from the store; nothing is cached between
invocations.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console

from .delivery import deliver
from .index import find_by_id, get_index
from .session import Session


def list_credentials(session: Session, console: Console, verbose: bool = False) -> int:
    """Describe every credential the session identity owns; returns the count."""
    index = get_index(session)
    for cred in index:
        cred.describe(console, verbose)
    return len(index)


def download_credential(
    session: Session,
    credential_id: str,
    format_id: Optional[str],
    console: Console,
    directory: Path = Path("."),
) -> list[Path]:
    """Fetch one credential as *format_id* and deliver its payloads."""
    cred = find_by_id(get_index(session), credential_id)
    return deliver(cred.get(session, format_id), console, directory)


def download_credentials(
    session: Session,
    credential_ids: Iterable[str],
    format_id: Optional[str],
    console: Console,
    directory: Path = Path("."),
) -> list[Path]:
    """Download several credentials in order, stopping at the first failure."""
    written: list[Path] = []
    for credential_id in credential_ids:
        written.extend(download_credential(session, credential_id, format_id, console, directory))
    return written


def list_formats(session: Session, credential_id: str, console: Console) -> None:
    """Print ``id - description`` for each format the credential offers."""
    cred = find_by_id(get_index(session), credential_id)
    for fmt in cred.formats():
        console.print(f"{fmt.id:<20} - {fmt.description}", markup=False, highlight=False)
