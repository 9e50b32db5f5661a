"""credcli: manage web, VPN, VPN-service and probe credentials.

Commands
--------
  authenticate  Run the backend's sign-in flow and save a token
  list          List credentials you own
  formats       List the download formats a credential offers
  download      Download one or more credentials
  create        Create a credential (web, vpn, vpn-service, probe)
  revoke        Revoke a credential, or all of a user's credentials

The credential store and identity provider come from a backend named with
``--backend module:callable`` or ``CREDCLI_BACKEND``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.theme import Theme

from . import __version__
from .backends import Backend, BackendOptions, load_backend
from .exceptions import CredentialsError
from .lifecycle import all_ok, create, revoke, revoke_all
from .models import CredentialType, RevocationOutcome
from .operations import download_credentials, list_credentials, list_formats
from .session import Session, SessionBuilder

# ---------------------------------------------------------------------------
# App & consoles
# ---------------------------------------------------------------------------

_THEME = Theme(
    {
        "success": "bold green",
        "warning": "bold yellow",
        "danger": "bold red",
        "muted": "dim",
        "label": "cyan",
        "highlight": "bold white",
    }
)

console = Console(theme=_THEME)
err = Console(stderr=True, theme=_THEME)

app = typer.Typer(
    name="credcli",
    help="[bold cyan]credcli[/bold cyan]: create, download and revoke credentials.",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
)
create_app = typer.Typer(name="create", help="Create a credential.", no_args_is_help=True)
revoke_app = typer.Typer(name="revoke", help="Revoke credentials.", no_args_is_help=True)
app.add_typer(create_app, name="create")
app.add_typer(revoke_app, name="revoke")

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


@dataclass
class _State:
    backend_ref: Optional[str]
    backend_options: BackendOptions
    builder: SessionBuilder
    verbose: bool


def _configure_logging(verbose: bool) -> None:
    log = logging.getLogger("credcli")
    log.handlers[:] = [RichHandler(console=err, show_path=False)]
    log.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _backend(state: _State) -> Backend:
    if not state.backend_ref:
        err.print(
            "[danger]No backend configured.[/danger] "
            "Pass [bold]--backend module:callable[/bold] or set [bold]CREDCLI_BACKEND[/bold]."
        )
        raise typer.Exit(1)
    try:
        return load_backend(state.backend_ref, state.backend_options)
    except CredentialsError as exc:
        _fail(exc)


def _session(ctx: typer.Context) -> Session:
    state: _State = ctx.obj
    backend = _backend(state)
    return state.builder.build(backend.store, backend.identity_provider)


def _fail(exc: CredentialsError) -> NoReturn:
    err.print(f"[danger]Error:[/danger] {exc}", highlight=False)
    raise typer.Exit(1) from exc


def _render_outcomes(outcomes: list[RevocationOutcome]) -> None:
    table = Table(box=box.ROUNDED, header_style="bold cyan", title="Revocation", title_style="bold")
    table.add_column("Type", style="bold white")
    table.add_column("Result")
    table.add_column("Detail", style="muted")
    for o in outcomes:
        result = "[success]revoked[/success]" if o.ok else "[danger]failed[/danger]"
        table.add_row(o.type.value, result, o.error or "")
    console.print(table)


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


def _version(value: bool) -> None:
    if value:
        console.print(f"credcli {__version__}")
        raise typer.Exit(0)


@app.callback()
def main_options(
    ctx: typer.Context,
    backend: Annotated[Optional[str], typer.Option("--backend", envvar="CREDCLI_BACKEND", help="Backend factory, module:callable.")] = None,
    token: Annotated[Path, typer.Option("--token", "-t", envvar="CREDCLI_TOKEN_FILE", help="Name of token file.")] = Path(".credentials-cli-auth"),
    svc_key: Annotated[Optional[Path], typer.Option("--svc-key", "-k", envvar="CREDCLI_SVC_KEY", help="Service account JSON key file.")] = None,
    project: Annotated[str, typer.Option("--project", "-p", envvar="CREDCLI_PROJECT", help="Project hosting the credential services.")] = "example",
    bucket: Annotated[str, typer.Option("--bucket", "-b", envvar="CREDCLI_BUCKET", help="Name of credentials bucket.")] = "example-credentials",
    user: Annotated[Optional[str], typer.Option("--user", "-u", envvar="CREDCLI_USER", help="Act as this user instead of the signed-in one.")] = None,
    sign: Annotated[bool, typer.Option("--sign", "-S", help="Sign downloads that support signing.")] = False,
    signing_key: Annotated[Optional[Path], typer.Option("--signing-key", "-K", help="PEM signing key.")] = None,
    signing_cert: Annotated[Optional[Path], typer.Option("--signing-cert", "-C", help="PEM signing certificate.")] = None,
    mc_identifier: Annotated[Optional[str], typer.Option("--mc-identifier", help="mobileconfig identifier.")] = None,
    mc_name: Annotated[Optional[str], typer.Option("--mc-name", help="mobileconfig display name.")] = None,
    mc_description: Annotated[Optional[str], typer.Option("--mc-description", help="mobileconfig description.")] = None,
    soc: Annotated[Optional[str], typer.Option("--soc", help="SOC id for credential creation.")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output.")] = False,
    version: Annotated[bool, typer.Option("--version", callback=_version, is_eager=True, help="Show version and exit.")] = False,
) -> None:
    """Global options shared by every command."""
    _configure_logging(verbose)

    builder = (
        SessionBuilder()
        .project(project)
        .bucket(bucket)
        .user(user)
        .device_profile(mc_identifier, mc_name, mc_description)
        .soc(soc)
    )
    if sign:
        if not signing_key or not signing_cert:
            err.print("[danger]--sign needs both --signing-key and --signing-cert.[/danger]")
            raise typer.Exit(1)
        builder.signing(signing_key, signing_cert)

    ctx.obj = _State(
        backend_ref=backend,
        backend_options=BackendOptions(
            token_file=token,
            service_account_key=svc_key,
            project=project,
            bucket=bucket,
        ),
        builder=builder,
        verbose=verbose,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def authenticate(ctx: typer.Context) -> None:
    """Sign in through the backend and save a token file."""
    state: _State = ctx.obj
    backend = _backend(state)
    if backend.authenticator is None:
        err.print("[danger]This backend has no interactive sign-in.[/danger]")
        raise typer.Exit(1)
    try:
        backend.authenticator(state.backend_options.token_file)
    except CredentialsError as exc:
        _fail(exc)
    console.print(
        f"[success]Token written to[/success] [bold]{state.backend_options.token_file}[/bold]\n"
        "[muted]Treat it like a password.[/muted]"
    )


@app.command("list")
def list_cmd(ctx: typer.Context) -> None:
    """List credentials you own."""
    state: _State = ctx.obj
    session = _session(ctx)
    try:
        count = list_credentials(session, console, state.verbose)
    except CredentialsError as exc:
        _fail(exc)
    if not count:
        console.print("[muted]No credentials.[/muted]")


@app.command()
def formats(
    ctx: typer.Context,
    credentials: Annotated[list[str], typer.Argument(help="Credential ids.")],
) -> None:
    """List available formats for one or more credentials."""
    session = _session(ctx)
    try:
        for credential_id in credentials:
            list_formats(session, credential_id, console)
    except CredentialsError as exc:
        _fail(exc)


@app.command()
def download(
    ctx: typer.Context,
    credentials: Annotated[list[str], typer.Argument(help="Credential ids.")],
    fmt: Annotated[Optional[str], typer.Option("--format", "-f", help="Output format, e.g. pem or p12.")] = None,
    output_dir: Annotated[Path, typer.Option("--output-dir", "-o", help="Directory for downloaded files.")] = Path("."),
) -> None:
    """Download one or more credentials."""
    session = _session(ctx)
    try:
        download_credentials(session, credentials, fmt, console, output_dir)
    except CredentialsError as exc:
        _fail(exc)


# ---------------------------------------------------------------------------
# create / revoke
# ---------------------------------------------------------------------------

_IdentityOpt = Annotated[Optional[str], typer.Option("--identity", "-i", help="Identity, e.g. web/VPN name.")]


def _create(ctx: typer.Context, cred_type: CredentialType, identity: Optional[str], **attrs: Optional[str]) -> None:
    session = _session(ctx)
    try:
        create(session, cred_type, identity, **attrs)
    except CredentialsError as exc:
        _fail(exc)
    console.print(f"[success]{cred_type.label} credential for '[bold]{identity}[/bold]' created.[/success]")


def _revoke(ctx: typer.Context, cred_type: CredentialType, identity: Optional[str]) -> None:
    session = _session(ctx)
    try:
        revoke(session, cred_type, identity)
    except CredentialsError as exc:
        _fail(exc)
    console.print(f"[success]{cred_type.label} credential for '[bold]{identity}[/bold]' revoked.[/success]")


@create_app.command("web")
def create_web(ctx: typer.Context, identity: _IdentityOpt = None) -> None:
    """Create a web credential."""
    _create(ctx, CredentialType.WEB, identity)


@create_app.command("vpn")
def create_vpn(ctx: typer.Context, identity: _IdentityOpt = None) -> None:
    """Create a VPN credential."""
    _create(ctx, CredentialType.VPN, identity)


@create_app.command("vpn-service")
def create_vpn_service(
    ctx: typer.Context,
    identity: _IdentityOpt = None,
    hostname: Annotated[Optional[str], typer.Option("--hostname", help="Host for the VPN service.")] = None,
    allocator: Annotated[Optional[str], typer.Option("--allocator", help="Address allocator host.")] = None,
) -> None:
    """Create a VPN service credential."""
    _create(ctx, CredentialType.VPN_SERVICE, identity, hostname=hostname, allocator=allocator)


@create_app.command("probe")
def create_probe(
    ctx: typer.Context,
    identity: _IdentityOpt = None,
    endpoint: Annotated[Optional[str], typer.Option("--endpoint", help="host:port the probe delivers to.")] = None,
) -> None:
    """Create a probe credential."""
    _create(ctx, CredentialType.PROBE, identity, endpoint=endpoint)


@revoke_app.command("web")
def revoke_web(ctx: typer.Context, identity: _IdentityOpt = None) -> None:
    """Revoke a web credential."""
    _revoke(ctx, CredentialType.WEB, identity)


@revoke_app.command("vpn")
def revoke_vpn(ctx: typer.Context, identity: _IdentityOpt = None) -> None:
    """Revoke a VPN credential."""
    _revoke(ctx, CredentialType.VPN, identity)


@revoke_app.command("vpn-service")
def revoke_vpn_service(ctx: typer.Context, identity: _IdentityOpt = None) -> None:
    """Revoke a VPN service credential."""
    _revoke(ctx, CredentialType.VPN_SERVICE, identity)


@revoke_app.command("probe")
def revoke_probe(ctx: typer.Context, identity: _IdentityOpt = None) -> None:
    """Revoke a probe credential."""
    _revoke(ctx, CredentialType.PROBE, identity)


@revoke_app.command("all")
def revoke_all_cmd(ctx: typer.Context) -> None:
    """Revoke every credential the user owns."""
    session = _session(ctx)
    try:
        outcomes = revoke_all(session)
    except CredentialsError as exc:
        _fail(exc)

    _render_outcomes(outcomes)
    if not all_ok(outcomes):
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    app()


if __name__ == "__main__":
    main()
