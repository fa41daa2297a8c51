"""Helpers shared by the command modules."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import typer

from fireauth.auth import AuthClient, utc_now
from fireauth.config import resolve_config, resolve_credential
from fireauth.credential import MIN_PASSWORD_LENGTH, is_valid_email, is_valid_password
from fireauth.exceptions import InvalidUsageError
from fireauth.session import Session

REDACTED = "<redacted>"

DEFAULT_REFRESH_TOKEN_SOURCE = "env:FIREAUTH_REFRESH_TOKEN"


def _options(ctx: typer.Context) -> dict[str, Any]:
    return ctx.obj if isinstance(ctx.obj, dict) else {}


def open_client(ctx: typer.Context) -> AuthClient:
    """Build an :class:`AuthClient` from the resolved configuration.

    The caller is responsible for using it as a context manager.
    """
    config = resolve_config(cli_api_key=_options(ctx).get("api_key"))
    return AuthClient(config)


def require_email(email: str) -> str:
    if not is_valid_email(email):
        raise InvalidUsageError(f"Not a valid email address: {email}")
    return email


def read_password(source: str) -> str:
    """Resolve a password from *source* and check its length."""
    password = resolve_credential(source, prompt="Password: ")
    if not is_valid_password(password):
        raise InvalidUsageError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return password


def bootstrap_session(client: AuthClient, refresh_token_source: str) -> Session:
    """Start a session from a refresh token kept outside fireauth."""
    refresh_token = resolve_credential(refresh_token_source, prompt="Refresh token: ")
    if not refresh_token:
        raise InvalidUsageError(f"Empty refresh token (source: {refresh_token_source})")
    return client.session_from_refresh_token(refresh_token)


def session_summary(
    session: Session,
    show_tokens: bool = False,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Render *session* for display; tokens are redacted unless *show_tokens*."""
    now = now or utc_now()
    return {
        "local_id": session.local_id,
        "expires_at": session.expires_at.isoformat(),
        "expires_in": int(session.seconds_remaining(now)),
        "identity_token": session.identity_token if show_tokens else REDACTED,
        "refresh_token": session.refresh_token if show_tokens else REDACTED,
    }


def show_tokens(ctx: typer.Context) -> bool:
    return bool(_options(ctx).get("show_tokens", False))
