"""CLI commands for the authenticated identity mode.

Signing in stores a session token for a subject confirmed by the external
identity provider. While signed in, the session subject replaces the
anonymous identity for every record command.
"""

import sys

import click  # type: ignore[import-not-found]
from rich.console import Console  # type: ignore[import-not-found]

from daywatch.cli.context import AppContext, pass_app

console = Console()
error_console = Console(stderr=True)


@click.group()
def auth() -> None:
    """Sign in and out of the authenticated identity mode."""
    pass


@auth.command()
@click.option("--subject", required=True, help="Subject confirmed by the identity provider")
@pass_app
def login(app: AppContext, subject: str) -> None:
    """Start a session for SUBJECT.

    Example:
        daywatch auth login --subject 0b7d3a7e-5d3c-4c55-9f0e-0d8a3c2f1a11
    """
    try:
        session = app.auth().sign_in(subject.strip())
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Signed in as {session.subject}")
    console.print(f"  Expires: {session.expires_at.strftime('%Y-%m-%d %H:%M:%S %Z')}")
    if not app.authenticated:
        console.print(
            "[yellow]Identity mode is anonymous; run "
            "'daywatch config set identity.mode authenticated' to use this session[/yellow]"
        )


@auth.command()
@pass_app
def logout(app: AppContext) -> None:
    """End the current session."""
    manager = app.auth()
    if manager.get_session() is None:
        console.print("[yellow]Not signed in[/yellow]")
        return
    manager.sign_out()
    console.print("[green]✓[/green] Signed out")


@auth.command()
@pass_app
def status(app: AppContext) -> None:
    """Show the current session."""
    session = app.auth().get_session()
    mode = app.config.get("identity.mode", "anonymous")
    if session is None:
        console.print(f"[yellow]Not signed in[/yellow] (mode: {mode})")
        return

    console.print(f"Signed in as [bold]{session.subject}[/bold] (mode: {mode})")
    console.print(f"  Expires: {session.expires_at.strftime('%Y-%m-%d %H:%M:%S %Z')}")
