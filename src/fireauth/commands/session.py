"""Session commands -- sign users in and run the unauthenticated helpers.

Each sign-in style command prints the resulting session to stdout.  Tokens
are redacted unless the root ``--show-tokens`` flag is given, since the
refresh token is a long-lived credential.

Example::

    fireauth sign-in ada@example.com --password-source env:ADA_PASSWORD
    fireauth --show-tokens anonymous
    fireauth providers ada@example.com
"""

from __future__ import annotations

from typing import Optional

import typer

from fireauth.commands.common import (
    open_client,
    read_password,
    require_email,
    session_summary,
    show_tokens,
)
from fireauth.output import format_response, info, print_table, success, suggest


def sign_up_command(
    ctx: typer.Context,
    email: str = typer.Argument(help="Email address for the new account."),
    password_source: str = typer.Option(
        "prompt",
        "--password-source",
        help="Where to read the password: env:VAR, file:/path, or prompt.",
    ),
) -> None:
    """Create an email/password account and print its session."""
    email = require_email(email)
    password = read_password(password_source)
    with open_client(ctx) as client:
        session = client.sign_up_with_email_password(email, password)
    success(f"Created account {session.local_id}")
    format_response(session_summary(session, show_tokens(ctx)))


def sign_in_command(
    ctx: typer.Context,
    email: str = typer.Argument(help="Email address of the account."),
    password_source: str = typer.Option(
        "prompt",
        "--password-source",
        help="Where to read the password: env:VAR, file:/path, or prompt.",
    ),
) -> None:
    """Sign in with email and password and print the session."""
    email = require_email(email)
    password = read_password(password_source)
    with open_client(ctx) as client:
        session = client.sign_in_with_email_password(email, password)
    success(f"Signed in as {session.local_id}")
    format_response(session_summary(session, show_tokens(ctx)))


def anonymous_command(ctx: typer.Context) -> None:
    """Create an anonymous account and print its session."""
    with open_client(ctx) as client:
        session = client.sign_in_anonymously()
    success(f"Signed in anonymously as {session.local_id}")
    format_response(session_summary(session, show_tokens(ctx)))
    if not show_tokens(ctx):
        suggest("Pass --show-tokens to print the refresh token for later use")


def custom_token_command(
    ctx: typer.Context,
    token: str = typer.Argument(help="Custom token minted by your server."),
) -> None:
    """Exchange a server-minted custom token for a session."""
    with open_client(ctx) as client:
        session = client.exchange_custom_token(token)
    success(f"Signed in as {session.local_id}")
    format_response(session_summary(session, show_tokens(ctx)))


def reset_password_command(
    ctx: typer.Context,
    email: str = typer.Argument(help="Email address of the account."),
    locale: Optional[str] = typer.Option(
        None, "--locale", help="Language code for the email, e.g. 'fr'."
    ),
) -> None:
    """Send a password reset email."""
    email = require_email(email)
    with open_client(ctx) as client:
        client.send_password_reset_email(email, locale)
    success(f"Password reset email sent to {email}")


def providers_command(
    ctx: typer.Context,
    email: str = typer.Argument(help="Email address to look up."),
    continue_uri: str = typer.Option(
        "http://localhost",
        "--continue-uri",
        help="Continue URI sent with the lookup (any URI authorised for the project).",
    ),
) -> None:
    """List the sign-in providers registered for an email address."""
    email = require_email(email)
    with open_client(ctx) as client:
        providers = client.fetch_providers_for_email(email, continue_uri)
    if not providers:
        info(f"No providers registered for {email}")
        return
    print_table(["Provider"], [[p] for p in providers], title=f"Providers for {email}")
