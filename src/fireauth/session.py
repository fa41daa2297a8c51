"""Immutable credential state for one signed-in account.

A :class:`Session` bundles the short-lived identity token, its absolute
expiry, the refresh token and the account's ``local_id``.  It is a frozen
Pydantic model: nothing mutates it, and every operation that changes the
credentials produces a new value instead.

Within fireauth, sessions are produced only by two constructors:

- :meth:`Session.issue` -- after a sign-up, sign-in, anonymous, OAuth or
  custom-token exchange (see :class:`~fireauth.auth.AuthClient`).
- :meth:`Session.refreshed` -- after a refresh round trip performed by
  :class:`~fireauth.manager.SessionManager`, or after an operation that
  reissues tokens for the same account (provider linking).

Building a :class:`Session` directly from its fields is also possible, to
restore a session saved by the application or to set one up in tests.
Such a session is trusted as given; nothing checks it against the server.

Callers must keep the newest session returned to them and pass it to the
next call.  Reusing an older one still works until its token expires, but
the refresh it then triggers is wasted work.

Example::

    session = Session.issue(grant, now=datetime.now(timezone.utc))
    if session.is_expired(later):
        ...
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field

from fireauth.exceptions import DecodeError
from fireauth.models import TokenGrant


def as_utc(moment: datetime) -> datetime:
    """Return *moment* as an aware UTC datetime; naive values are taken as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _expiry(grant: TokenGrant, now: datetime) -> datetime:
    if grant.expires_in <= 0:
        raise DecodeError(f"Server declared a non-positive token lifetime: {grant.expires_in}")
    return as_utc(now) + timedelta(seconds=grant.expires_in)


class Session(BaseModel):
    """Credential state of one account at one point of its lineage.

    Attributes:
        identity_token: Bearer token sent with every authenticated call.
        refresh_token: Token exchanged for a new identity token.
        expires_at: UTC instant at which ``identity_token`` stops being
            valid, computed from the server-declared lifetime when the
            token was minted.
        local_id: Stable account identifier; identical across the lineage.
    """

    model_config = ConfigDict(frozen=True)

    identity_token: str = Field(repr=False)
    refresh_token: str = Field(repr=False)
    expires_at: datetime
    local_id: str

    @classmethod
    def issue(cls, grant: TokenGrant, now: datetime) -> Session:
        """Start a new lineage from a sign-in style token grant.

        Args:
            grant: Tokens returned by the sign-in endpoint.
            now: The clock reading at which the grant was received.

        Returns:
            A fresh :class:`Session`.

        Raises:
            DecodeError: If the grant carries no ``local_id`` or declares a
                non-positive lifetime.
        """
        if not grant.local_id:
            raise DecodeError("Token grant does not identify the account (missing localId)")
        return cls(
            identity_token=grant.id_token,
            refresh_token=grant.refresh_token,
            expires_at=_expiry(grant, now),
            local_id=grant.local_id,
        )

    def refreshed(self, grant: TokenGrant, now: datetime) -> Session:
        """Return the successor session carrying *grant*'s tokens.

        The refresh token is whatever the server reported, reissued or
        unchanged.  ``local_id`` is carried over.

        Raises:
            DecodeError: If *grant* names a different account, or declares a
                non-positive lifetime.
        """
        if grant.local_id is not None and grant.local_id != self.local_id:
            raise DecodeError(
                f"Token grant is for account {grant.local_id!r}, "
                f"expected {self.local_id!r}"
            )
        return Session(
            identity_token=grant.id_token,
            refresh_token=grant.refresh_token,
            expires_at=_expiry(grant, now),
            local_id=self.local_id,
        )

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` once ``now`` has reached :attr:`expires_at`."""
        return as_utc(now) >= as_utc(self.expires_at)

    def seconds_remaining(self, now: datetime) -> float:
        """Seconds until expiry (negative once expired)."""
        return (as_utc(self.expires_at) - as_utc(now)).total_seconds()
