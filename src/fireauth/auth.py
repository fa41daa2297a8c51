"""High-level client -- entry points that produce sessions, and calls that consume them.

:class:`AuthClient` is what applications normally use.  It owns a
:class:`~fireauth.client.transport.Transport` and a
:class:`~fireauth.manager.SessionManager`, and exposes two surfaces:

**Entry points** (unauthenticated) turn raw credentials into the first
:class:`~fireauth.session.Session` of a lineage: email/password sign-up and
sign-in, anonymous sign-in, OAuth credential sign-in, custom token exchange
and bootstrapping from a stored refresh token.  The password-reset and
provider-lookup helpers live here too, although they yield no session.

**Authenticated calls** take the newest session and return
``(result, session)``.  Each one goes through
:meth:`SessionManager.with_valid_session` with ``now`` read from the
client's clock, so an expired identity token is refreshed first.
:meth:`AuthClient.delete_account` is the exception: it ends the lineage and
returns nothing to continue with.

Example::

    with AuthClient(ClientConfig(api_key="...")) as auth:
        session = auth.sign_in_with_email_password("ada@example.com", "secret")
        user, session = auth.get_user_data(session)
        _, session = auth.update_profile(session, display_name="Ada")
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

import httpx

from fireauth.client import operations
from fireauth.client.transport import Transport
from fireauth.manager import SessionManager
from fireauth.models import (
    AccountUpdateResponse,
    ClientConfig,
    DeleteAttribute,
    EmailVerificationResult,
    IdpPostBody,
    IdpResponse,
    OobCodeResponse,
    PasswordResetResponse,
    ProviderId,
    TokenGrant,
    UserData,
)
from fireauth.session import Session

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class AuthClient:
    """Sign users in and perform account operations on their behalf.

    Must be used as a context manager (or :meth:`open` / :meth:`close`
    called explicitly) so the HTTP connection pool is released.

    Args:
        config: Resolved client settings.
        transport: Optional :class:`httpx.BaseTransport` for the underlying
            HTTP client, e.g. :class:`httpx.MockTransport` in tests.
        clock: Callable returning the current time.  Injected so expiry
            behaviour is deterministic under test.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._transport = Transport(config, transport=transport)
        self._clock = clock or utc_now
        self._manager = SessionManager(operations.make_refresher(self._transport))

    @property
    def manager(self) -> SessionManager:
        """The session manager used for authenticated calls."""
        return self._manager

    def __enter__(self) -> AuthClient:
        self.open()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def open(self) -> None:
        self._transport.open()

    def close(self) -> None:
        self._transport.close()

    # ------------------------------------------------------------------ #
    # Entry points
    # ------------------------------------------------------------------ #

    def sign_up_with_email_password(self, email: str, password: str) -> Session:
        """Create an email/password account and return its first session."""
        now = self._clock()
        response = operations.sign_up_with_email_password(self._transport, email, password)
        return self._issue(response.to_grant(), now)

    def sign_in_with_email_password(self, email: str, password: str) -> Session:
        """Sign in with email and password."""
        now = self._clock()
        response = operations.sign_in_with_email_password(self._transport, email, password)
        return self._issue(response.to_grant(), now)

    def sign_in_anonymously(self) -> Session:
        """Create an anonymous account and return its first session."""
        now = self._clock()
        response = operations.sign_in_anonymously(self._transport)
        return self._issue(response.to_grant(), now)

    def sign_in_with_oauth_credential(self, request_uri: str, post_body: IdpPostBody) -> Session:
        """Sign in with a credential obtained from an external provider.

        Args:
            request_uri: The URI the provider redirected back to.
            post_body: The provider credential.
        """
        now = self._clock()
        response = operations.sign_in_with_oauth_credential(self._transport, request_uri, post_body)
        return self._issue(response.to_grant(), now)

    def exchange_custom_token(self, token: str) -> Session:
        """Exchange a server-minted custom token for a session.

        The endpoint does not report the account identifier, so one extra
        ``accounts:lookup`` call is made with the new identity token.
        """
        now = self._clock()
        grant = operations.exchange_custom_token(self._transport, token).to_grant()
        user = operations.get_user_data(self._transport, grant.id_token)
        return self._issue(grant.model_copy(update={"local_id": user.local_id}), now)

    def session_from_refresh_token(self, refresh_token: str) -> Session:
        """Start a lineage from a refresh token kept by the application.

        Raises:
            RemoteRejected: If the refresh token is no longer accepted.
        """
        now = self._clock()
        response = operations.exchange_refresh_token(self._transport, refresh_token)
        return self._issue(response.to_grant(), now)

    def fetch_providers_for_email(self, email: str, continue_uri: str) -> list[str]:
        """Return the provider IDs registered for *email*."""
        return operations.fetch_providers_for_email(self._transport, email, continue_uri).all_providers

    def send_password_reset_email(self, email: str, locale: Optional[str] = None) -> OobCodeResponse:
        return operations.send_password_reset_email(self._transport, email, locale)

    def verify_password_reset_code(self, oob_code: str) -> PasswordResetResponse:
        return operations.verify_password_reset_code(self._transport, oob_code)

    def confirm_password_reset(self, oob_code: str, new_password: str) -> PasswordResetResponse:
        return operations.confirm_password_reset(self._transport, oob_code, new_password)

    def confirm_email_verification(self, oob_code: str) -> EmailVerificationResult:
        return operations.confirm_email_verification(self._transport, oob_code)

    # ------------------------------------------------------------------ #
    # Authenticated calls
    # ------------------------------------------------------------------ #

    def get_user_data(self, session: Session) -> tuple[UserData, Session]:
        """Fetch the signed-in account's data."""
        return self._manager.with_valid_session(
            session,
            self._clock(),
            lambda token: operations.get_user_data(self._transport, token),
        )

    def change_email(
        self, session: Session, email: str, locale: Optional[str] = None
    ) -> tuple[AccountUpdateResponse, Session]:
        return self._manager.with_valid_session(
            session,
            self._clock(),
            lambda token: operations.change_email(self._transport, token, email, locale),
        )

    def change_password(
        self, session: Session, password: str
    ) -> tuple[AccountUpdateResponse, Session]:
        return self._manager.with_valid_session(
            session,
            self._clock(),
            lambda token: operations.change_password(self._transport, token, password),
        )

    def update_profile(
        self,
        session: Session,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
        delete_attributes: Iterable[DeleteAttribute] = (),
    ) -> tuple[AccountUpdateResponse, Session]:
        """Set or clear the display name and photo URL."""
        attributes = tuple(delete_attributes)
        return self._manager.with_valid_session(
            session,
            self._clock(),
            lambda token: operations.update_profile(
                self._transport, token, display_name, photo_url, attributes
            ),
        )

    def unlink_provider(
        self, session: Session, providers: Iterable[ProviderId]
    ) -> tuple[AccountUpdateResponse, Session]:
        selected = tuple(providers)
        return self._manager.with_valid_session(
            session,
            self._clock(),
            lambda token: operations.unlink_provider(self._transport, token, selected),
        )

    def send_email_verification(
        self, session: Session, locale: Optional[str] = None
    ) -> tuple[OobCodeResponse, Session]:
        return self._manager.with_valid_session(
            session,
            self._clock(),
            lambda token: operations.send_email_verification(self._transport, token, locale),
        )

    def link_with_email_password(
        self, session: Session, email: str, password: str
    ) -> tuple[AccountUpdateResponse, Session]:
        """Attach an email/password credential to the account.

        The provider reissues the token pair on success; the returned
        session carries the new tokens for the same ``local_id``.
        """
        now = self._clock()
        response, used = self._manager.with_valid_session(
            session,
            now,
            lambda token: operations.link_with_email_password(self._transport, token, email, password),
        )
        return response, self._adopt(used, response.to_grant(), now)

    def link_with_oauth_credential(
        self, session: Session, request_uri: str, post_body: IdpPostBody
    ) -> tuple[IdpResponse, Session]:
        """Attach an external provider credential to the account.

        Like :meth:`link_with_email_password`, the returned session carries
        the reissued tokens.
        """
        now = self._clock()
        response, used = self._manager.with_valid_session(
            session,
            now,
            lambda token: operations.link_with_oauth_credential(
                self._transport, token, request_uri, post_body
            ),
        )
        return response, self._adopt(used, response.to_grant(), now)

    def delete_account(self, session: Session) -> None:
        """Delete the account.  The session lineage ends here."""
        self._manager.with_valid_session_terminal(
            session,
            self._clock(),
            lambda token: operations.delete_account(self._transport, token),
        )
        logger.info("Deleted account %s", session.local_id)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _issue(self, grant: TokenGrant, now: datetime) -> Session:
        session = Session.issue(grant, now)
        logger.debug("Issued session for %s", session.local_id)
        return session

    @staticmethod
    def _adopt(used: Session, grant: Optional[TokenGrant], now: datetime) -> Session:
        """Carry reissued tokens into the successor of *used*, if any were returned."""
        if grant is None:
            return used
        return used.refreshed(grant, now)
