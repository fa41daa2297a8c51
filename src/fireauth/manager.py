"""Session manager -- keeps identity tokens valid across authenticated calls.

The :class:`SessionManager` sits between the caller and the raw operations
of :mod:`fireauth.client.operations`.  For every authenticated call it:

1. checks the session against the clock reading it was given;
2. refreshes the identity token when, and only when, it has expired
   (one refresh round trip at most);
3. invokes the operation with the valid token;
4. hands back the operation's result together with the session that was
   used, which the caller must keep for the next call.

It holds no session state of its own.  Lineage exists only through the
values it returns, so two sessions for two accounts can be used from
different threads without locking.  Two concurrent calls on the *same*
expired session will each refresh; serialise calls per lineage if that
matters.

Failure handling:

- A failed refresh raises :class:`~fireauth.exceptions.RefreshFailed` and
  the operation is not invoked.  The input session stays the caller's
  valid reference; :attr:`RefreshFailed.requires_reauthentication` tells
  whether it is worth retrying.
- An operation failure propagates unchanged.  No second refresh is
  attempted, even for ``INVALID_ID_TOKEN``, so a persistently rejected
  credential cannot cause a refresh loop.

Example::

    manager = SessionManager(operations.make_refresher(transport))
    user, session = manager.with_valid_session(
        session,
        datetime.now(timezone.utc),
        lambda token: operations.get_user_data(transport, token),
    )
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, TypeVar

from fireauth.exceptions import DecodeError, RefreshFailed, RemoteRejected, TransportError
from fireauth.models import TokenGrant
from fireauth.session import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")

Refresher = Callable[[str], TokenGrant]
Operation = Callable[[str], T]


class SessionManager:
    """Guarantees a non-expired identity token for every authenticated call.

    Args:
        refresher: The refresh raw operation: takes a refresh token and
            returns the :class:`~fireauth.models.TokenGrant` the server
            issued, or raises a classified error.
    """

    def __init__(self, refresher: Refresher) -> None:
        self._refresher = refresher

    def ensure_fresh(self, session: Session, now: datetime) -> Session:
        """Return *session* if still valid at *now*, otherwise its refreshed successor.

        Args:
            session: The newest session of the lineage.
            now: Current clock reading.

        Returns:
            *session* itself, or a new :class:`~fireauth.session.Session`
            with a new identity token and ``expires_at`` after *now*.

        Raises:
            RefreshFailed: If the refresh round trip failed or returned an
                unusable grant.
        """
        if not session.is_expired(now):
            logger.debug(
                "Identity token for %s valid for %.0fs, no refresh",
                session.local_id,
                session.seconds_remaining(now),
            )
            return session

        logger.debug("Identity token for %s expired, refreshing", session.local_id)
        try:
            grant = self._refresher(session.refresh_token)
            fresh = session.refreshed(grant, now)
        except (TransportError, RemoteRejected, DecodeError) as exc:
            logger.warning("Token refresh for %s failed: %s", session.local_id, exc)
            raise RefreshFailed(exc) from exc

        if fresh.refresh_token != session.refresh_token:
            logger.debug("Refresh token for %s was reissued", session.local_id)
        return fresh

    def with_valid_session(
        self,
        session: Session,
        now: datetime,
        operation: Operation[T],
    ) -> tuple[T, Session]:
        """Run *operation* with a valid identity token.

        Args:
            session: The newest session of the lineage.
            now: Current clock reading; decides whether a refresh happens.
            operation: Callable taking the identity token and performing
                one authenticated round trip.

        Returns:
            ``(result, session_used)`` -- the operation's return value and
            the session whose token was sent.  ``session_used`` is *session*
            itself when no refresh was needed.

        Raises:
            RefreshFailed: If the token had to be refreshed and could not be.
            TransportError: Propagated from *operation*.
            RemoteRejected: Propagated from *operation*.
            DecodeError: Propagated from *operation*.
        """
        current = self.ensure_fresh(session, now)
        result = operation(current.identity_token)
        return result, current

    def with_valid_session_terminal(
        self,
        session: Session,
        now: datetime,
        operation: Operation[T],
    ) -> T:
        """Run an operation that ends the lineage (account deletion).

        Same refresh rules as :meth:`with_valid_session`, but no successor
        session is returned: after success there is nothing left to use.
        """
        current = self.ensure_fresh(session, now)
        result = operation(current.identity_token)
        logger.debug("Session lineage for %s terminated", current.local_id)
        return result
