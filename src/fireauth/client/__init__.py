"""Raw operation layer for fireauth.

Provides the HTTP transport and one stateless function per identity
provider endpoint.  Nothing in this package tracks token freshness; wrap
authenticated calls with :class:`~fireauth.manager.SessionManager` (or use
:class:`~fireauth.auth.AuthClient`, which does it for you).

Classes:
    :class:`Transport` -- blocking transport backed by :class:`httpx.Client`.

Example::

    from fireauth.client import Transport, operations

    with Transport(config) as transport:
        user = operations.get_user_data(transport, session.identity_token)
"""

from fireauth.client import operations
from fireauth.client.transport import Transport

__all__ = ["Transport", "operations"]
