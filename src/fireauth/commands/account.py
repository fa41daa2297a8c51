"""Account commands -- act on a signed-in account.

fireauth never stores sessions, so each command starts from a refresh token
supplied through ``--refresh-token-source`` (default
``env:FIREAUTH_REFRESH_TOKEN``), mints a session from it, and runs the
operation through the session manager.

Example::

    export FIREAUTH_REFRESH_TOKEN=...
    fireauth whoami
    fireauth update-profile --display-name "Ada Lovelace"
    fireauth delete-account --yes
"""

from __future__ import annotations

from typing import Optional

import typer

from fireauth.commands.common import (
    DEFAULT_REFRESH_TOKEN_SOURCE,
    bootstrap_session,
    open_client,
    session_summary,
    show_tokens,
)
from fireauth.exceptions import InvalidUsageError
from fireauth.models import DeleteAttribute, dump_payload
from fireauth.output import debug, format_response, info, success, warning

_REFRESH_TOKEN_HELP = "Where to read the refresh token: env:VAR, file:/path, or prompt."


def whoami_command(
    ctx: typer.Context,
    refresh_token_source: str = typer.Option(
        DEFAULT_REFRESH_TOKEN_SOURCE, "--refresh-token-source", help=_REFRESH_TOKEN_HELP
    ),
) -> None:
    """Print the account data of the signed-in user."""
    with open_client(ctx) as client:
        session = bootstrap_session(client, refresh_token_source)
        user, session = client.get_user_data(session)
    debug(f"Session: {session_summary(session, show_tokens(ctx))}")
    format_response(dump_payload(user))


def update_profile_command(
    ctx: typer.Context,
    display_name: Optional[str] = typer.Option(None, "--display-name", help="New display name."),
    photo_url: Optional[str] = typer.Option(None, "--photo-url", help="New photo URL."),
    clear_display_name: bool = typer.Option(
        False, "--clear-display-name", help="Remove the display name."
    ),
    clear_photo_url: bool = typer.Option(False, "--clear-photo-url", help="Remove the photo URL."),
    refresh_token_source: str = typer.Option(
        DEFAULT_REFRESH_TOKEN_SOURCE, "--refresh-token-source", help=_REFRESH_TOKEN_HELP
    ),
) -> None:
    """Set or clear the display name and photo URL."""
    if display_name is not None and clear_display_name:
        raise InvalidUsageError("--display-name and --clear-display-name are mutually exclusive")
    if photo_url is not None and clear_photo_url:
        raise InvalidUsageError("--photo-url and --clear-photo-url are mutually exclusive")

    delete_attributes = []
    if clear_display_name:
        delete_attributes.append(DeleteAttribute.DISPLAY_NAME)
    if clear_photo_url:
        delete_attributes.append(DeleteAttribute.PHOTO_URL)
    if display_name is None and photo_url is None and not delete_attributes:
        raise InvalidUsageError("Nothing to update: pass --display-name, --photo-url or a --clear-* flag")

    with open_client(ctx) as client:
        session = bootstrap_session(client, refresh_token_source)
        result, session = client.update_profile(
            session,
            display_name=display_name,
            photo_url=photo_url,
            delete_attributes=delete_attributes,
        )
    success(f"Updated profile of {session.local_id}")
    format_response(dump_payload(result))


def verify_email_command(
    ctx: typer.Context,
    locale: Optional[str] = typer.Option(
        None, "--locale", help="Language code for the email, e.g. 'fr'."
    ),
    refresh_token_source: str = typer.Option(
        DEFAULT_REFRESH_TOKEN_SOURCE, "--refresh-token-source", help=_REFRESH_TOKEN_HELP
    ),
) -> None:
    """Send a verification email to the signed-in user's address."""
    with open_client(ctx) as client:
        session = bootstrap_session(client, refresh_token_source)
        result, session = client.send_email_verification(session, locale)
    success(f"Verification email sent to {result.email or session.local_id}")


def delete_account_command(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    refresh_token_source: str = typer.Option(
        DEFAULT_REFRESH_TOKEN_SOURCE, "--refresh-token-source", help=_REFRESH_TOKEN_HELP
    ),
) -> None:
    """Delete the signed-in account. This cannot be undone."""
    if not yes:
        confirmed = typer.confirm("Delete this account permanently?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    with open_client(ctx) as client:
        session = bootstrap_session(client, refresh_token_source)
        client.delete_account(session)
    success(f"Deleted account {session.local_id}")
    warning("The refresh token you supplied is no longer valid")
