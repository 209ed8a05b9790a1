"""CLI commands for API management.

This module provides commands for running the Daywatch REST API,
issuing session tokens and checking the server configuration.
"""

import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

import click  # type: ignore[import-not-found]

from daywatch.api.auth import create_token_for_user
from daywatch.cli.context import AppContext, pass_app


@click.group()
def api() -> None:
    """API server management commands."""
    pass


@api.command()
@click.option("--host", default=None, help="Host address (default: from config)")
@click.option("--port", type=int, default=None, help="Port number (default: from config)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.option("--ssl-cert", type=click.Path(exists=True), help="Path to SSL certificate file")
@click.option("--ssl-key", type=click.Path(exists=True), help="Path to SSL key file")
@pass_app
def serve(
    app: AppContext,
    host: Optional[str],
    port: Optional[int],
    reload: bool,
    ssl_cert: Optional[str],
    ssl_key: Optional[str],
) -> None:
    """Start the API server.

    Examples:
        daywatch api serve
        daywatch api serve --host 0.0.0.0 --port 8080
        daywatch api serve --reload  # Development mode
        daywatch api serve --ssl-cert cert.pem --ssl-key key.pem
    """
    from daywatch.api.server import run_server

    config = app.stored_config()
    if config.get("identity.mode") == "authenticated":
        config.ensure_secret_key()

    final_host = host or config.get("api.host", "localhost")
    final_port = port or config.get("api.port", 8000)

    ssl_cert_path = Path(ssl_cert) if ssl_cert and ssl_key else None
    ssl_key_path = Path(ssl_key) if ssl_cert and ssl_key else None

    protocol = "https" if ssl_cert_path else "http"
    click.echo("Starting Daywatch API server...")
    click.echo(f"   URL: {protocol}://{final_host}:{final_port}")
    click.echo(f"   Docs: {protocol}://{final_host}:{final_port}/docs")
    click.echo(f"   Identity: {config.get('identity.mode', 'anonymous')}")
    if reload:
        click.echo("   Mode: Development (auto-reload enabled)")
    click.echo()

    try:
        run_server(
            config=config,
            host=final_host,
            port=final_port,
            reload=reload,
            ssl_certfile=ssl_cert_path,
            ssl_keyfile=ssl_key_path,
        )
    except KeyboardInterrupt:
        click.echo("\n\nShutting down API server...")
    except Exception as e:
        click.echo(click.style(f"Error starting server: {e}", fg="red"), err=True)
        sys.exit(1)


@api.group()
def token() -> None:
    """Manage session tokens for the authenticated mode."""
    pass


@token.command("create")
@click.option("--user-id", required=True, help="Subject confirmed by the identity provider")
@click.option(
    "--expires",
    type=int,
    help="Token expiry time in hours (default: from config)",
)
@pass_app
def create_token_cmd(app: AppContext, user_id: str, expires: Optional[int]) -> None:
    """Create a bearer token for a subject.

    Examples:
        daywatch api token create --user-id 0b7d3a7e
        daywatch api token create --user-id 0b7d3a7e --expires 48
    """
    config = app.stored_config()
    if expires is None:
        expires = config.get("auth.token_expiry_hours", 24)

    token_data = create_token_for_user(
        config, user_id=user_id, expires_delta=timedelta(hours=expires)
    )

    click.echo("Token created successfully!")
    click.echo()
    click.echo(f"Token: {token_data['access_token']}")
    click.echo(f"Expires in: {expires} hours")
    click.echo()
    click.echo("Use this token in API requests:")
    click.echo(f"  Authorization: Bearer {token_data['access_token']}")
    click.echo()
    click.echo("Example curl command:")
    host = config.get("api.host", "localhost")
    port = config.get("api.port", 8000)
    click.echo(
        f'  curl -H "Authorization: Bearer {token_data["access_token"]}" '
        f"http://{host}:{port}/api/v1/records/"
    )


@api.command()
@pass_app
def status(app: AppContext) -> None:
    """Show API configuration status.

    Examples:
        daywatch api status
    """
    config = app.stored_config()

    click.echo("Daywatch API Status")
    click.echo("=" * 50)

    click.echo("\nServer Configuration:")
    host = config.get("api.host", "localhost")
    port = config.get("api.port", 8000)
    click.echo(f"  Host: {host}")
    click.echo(f"  Port: {port}")

    click.echo("\nIdentity:")
    mode = config.get("identity.mode", "anonymous")
    click.echo(f"  Mode: {mode}")
    if mode == "authenticated":
        expiry = config.get("auth.token_expiry_hours", 24)
        has_secret = bool(config.get("auth.secret_key"))
        click.echo(f"  Token Expiry: {expiry} hours")
        click.echo(f"  Secret Key: {'Set' if has_secret else 'Not set'}")
        if not has_secret:
            click.echo(click.style("  Run 'daywatch api serve' to generate", fg="yellow"))
    else:
        click.echo(f"  Share Base URL: {config.get('identity.share_base_url')}")

    click.echo("\nStorage:")
    click.echo(f"  Backend: {config.get('storage.backend', 'csv')}")

    click.echo("\nCORS:")
    cors_enabled = config.get("api.cors.enabled", True)
    click.echo(f"  Enabled: {cors_enabled}")
    if cors_enabled:
        origins = config.get("api.cors.origins", [])
        click.echo(f"  Allowed Origins: {len(origins)}")
        for origin in origins:
            click.echo(f"    - {origin}")

    click.echo("\nQuick Start:")
    click.echo("  1. Start server: daywatch api serve")
    click.echo(f"  2. Open docs: http://{host}:{port}/docs")
