"""fireauth -- client-side binding to the Firebase Authentication REST API.

The package signs users in against a Firebase project and keeps their
credentials usable: every authenticated call goes through a session manager
that refreshes the short-lived identity token when, and only when, it has
expired.  Sessions are immutable values; each call hands back the session
to use next.

Typical use::

    from fireauth import AuthClient, ClientConfig

    with AuthClient(ClientConfig(api_key="AIza...")) as auth:
        session = auth.sign_in_with_email_password("ada@example.com", "secret")
        user, session = auth.get_user_data(session)

Modules:
    auth: :class:`AuthClient`, the high-level entry point.
    session: The immutable :class:`Session` value.
    manager: :class:`SessionManager`, the refresh-on-expiry wrapper.
    client: HTTP transport and one raw function per endpoint.
    models: Pydantic models for config, requests and responses.
    exceptions: Error taxonomy with exit-code mapping.
    config: XDG-aware configuration for the CLI.
    app: Typer application and CLI entry point.
"""

from fireauth.auth import AuthClient
from fireauth.exceptions import (
    DecodeError,
    ErrorCode,
    FireauthError,
    RefreshFailed,
    RemoteRejected,
    TransportError,
)
from fireauth.manager import SessionManager
from fireauth.models import ClientConfig, IdpPostBody, TokenGrant
from fireauth.session import Session

__version__ = "0.1.0"

__all__ = [
    "AuthClient",
    "ClientConfig",
    "DecodeError",
    "ErrorCode",
    "FireauthError",
    "IdpPostBody",
    "RefreshFailed",
    "RemoteRejected",
    "Session",
    "SessionManager",
    "TokenGrant",
    "TransportError",
    "__version__",
]
