"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~fireauth.exceptions.FireauthError` subclass.
Shell wrappers can inspect the exit code to tell a rejected credential
from a network outage without parsing stderr.

Example::

    $ fireauth whoami --refresh-token-source env:FIREAUTH_REFRESH_TOKEN
    $ echo $?
    8   # EXIT_REAUTHENTICATE -- the refresh token is no longer accepted
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_REMOTE_REJECTED = 3
"""The identity provider rejected the request with an error code."""

EXIT_DECODE_ERROR = 5
"""The identity provider returned a response of an unexpected shape."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_REFRESH_FAILED = 7
"""The identity token could not be refreshed; retrying may succeed."""

EXIT_REAUTHENTICATE = 8
"""The refresh token was invalidated; the user must sign in again."""
