"""Exception hierarchy and error-code classification for fireauth.

All exceptions inherit from :class:`FireauthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`fireauth.exit_codes`.
The CLI entry point in :func:`fireauth.app.main` catches ``FireauthError``
and exits with the matching code.

The identity provider reports failures as a string in
``{"error": {"message": "..."}}``.  :meth:`ErrorCode.from_message` is the
single place where those strings are turned into an enumeration, so call
sites branch on :class:`ErrorCode` members instead of comparing strings.

Subclass hierarchy::

    FireauthError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 1)
    +-- TransportError      (exit 6)
    +-- RemoteRejected      (exit 3)
    +-- DecodeError         (exit 5)
    +-- RefreshFailed       (exit 7, or 8 when re-authentication is required)
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from fireauth.exit_codes import (
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_REAUTHENTICATE,
    EXIT_REFRESH_FAILED,
    EXIT_REMOTE_REJECTED,
    EXIT_TRANSPORT_ERROR,
)


class ErrorCode(str, Enum):
    """Error codes returned by the Identity Toolkit and Secure Token APIs.

    ``UNKNOWN`` covers any message not listed here; the raw message is
    kept on :class:`RemoteRejected` so nothing is lost.
    """

    OPERATION_NOT_ALLOWED = "OPERATION_NOT_ALLOWED"
    TOO_MANY_ATTEMPTS_TRY_LATER = "TOO_MANY_ATTEMPTS_TRY_LATER"
    INVALID_API_KEY = "INVALID_API_KEY"
    INVALID_CUSTOM_TOKEN = "INVALID_CUSTOM_TOKEN"
    INVALID_ID_TOKEN = "INVALID_ID_TOKEN"
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
    INVALID_JSON_PAYLOAD = "INVALID_JSON_PAYLOAD"
    INVALID_GRANT_TYPE = "INVALID_GRANT_TYPE"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    INVALID_IDP_RESPONSE = "INVALID_IDP_RESPONSE"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_LOGIN_CREDENTIALS = "INVALID_LOGIN_CREDENTIALS"
    CREDENTIAL_MISMATCH = "CREDENTIAL_MISMATCH"
    CREDENTIAL_TOO_OLD_LOGIN_AGAIN = "CREDENTIAL_TOO_OLD_LOGIN_AGAIN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    USER_DISABLED = "USER_DISABLED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    MISSING_REFRESH_TOKEN = "MISSING_REFRESH_TOKEN"
    EMAIL_EXISTS = "EMAIL_EXISTS"
    EMAIL_NOT_FOUND = "EMAIL_NOT_FOUND"
    WEAK_PASSWORD = "WEAK_PASSWORD"
    FEDERATED_USER_ID_ALREADY_LINKED = "FEDERATED_USER_ID_ALREADY_LINKED"
    EXPIRED_OOB_CODE = "EXPIRED_OOB_CODE"
    INVALID_OOB_CODE = "INVALID_OOB_CODE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_message(cls, message: str) -> ErrorCode:
        """Classify a raw ``error.message`` string.

        The API sometimes appends a human-readable detail after ``" : "``
        (``"WEAK_PASSWORD : Password should be at least 6 characters"``);
        only the part before it is matched.

        Args:
            message: The ``error.message`` value from the response body.

        Returns:
            The matching :class:`ErrorCode`, or :attr:`UNKNOWN`.
        """
        text = message.strip()
        if text.startswith("Invalid JSON payload received. Unknown name"):
            return cls.INVALID_JSON_PAYLOAD
        if text.startswith("API key not valid"):
            return cls.INVALID_API_KEY
        head = text.split(" : ", 1)[0].strip()
        try:
            return cls(head)
        except ValueError:
            return cls.UNKNOWN


#: Codes meaning the refresh token can no longer mint identity tokens.
REFRESH_TOKEN_INVALIDATING_CODES = frozenset(
    {
        ErrorCode.INVALID_REFRESH_TOKEN,
        ErrorCode.TOKEN_EXPIRED,
        ErrorCode.USER_DISABLED,
        ErrorCode.USER_NOT_FOUND,
        ErrorCode.MISSING_REFRESH_TOKEN,
        ErrorCode.INVALID_GRANT_TYPE,
    }
)


class FireauthError(Exception):
    """Base exception for all fireauth errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(FireauthError):
    """Raised for invalid CLI arguments or obviously malformed input."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(FireauthError):
    """Raised for configuration problems (invalid JSON, missing API key, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class TransportError(FireauthError):
    """Raised when the remote API could not be reached or the exchange broke mid-way.

    Never retried by fireauth itself; retry policy belongs to the caller.
    """

    exit_code = EXIT_TRANSPORT_ERROR


class RemoteRejected(FireauthError):
    """Raised when the remote API answered with a well-formed error body.

    Args:
        code: The classified error code.
        status_code: HTTP status of the error response.
        message: The raw ``error.message`` string from the body.
    """

    exit_code = EXIT_REMOTE_REJECTED

    def __init__(self, code: ErrorCode, status_code: int, message: str):
        super().__init__(f"HTTP {status_code}: {message}")
        self.code = code
        self.status_code = status_code
        self.raw_message = message

    @property
    def invalidates_refresh_token(self) -> bool:
        """Whether this rejection ends the session lineage."""
        return self.code in REFRESH_TOKEN_INVALIDATING_CODES


class DecodeError(FireauthError):
    """Raised when a response body does not have the expected shape.

    This points at a defect (or an API change) rather than a transient
    condition, so it is never retried.
    """

    exit_code = EXIT_DECODE_ERROR


class RefreshFailed(FireauthError):
    """Raised when the implicit refresh step of the session manager fails.

    The target operation was not invoked.  Inspect
    :attr:`requires_reauthentication` to decide between retrying with the
    same session and signing the user in again.

    Args:
        cause: The :class:`TransportError`, :class:`RemoteRejected` or
            :class:`DecodeError` raised by the refresh round trip.
    """

    exit_code = EXIT_REFRESH_FAILED

    def __init__(self, cause: FireauthError):
        super().__init__(f"Identity token refresh failed: {cause}")
        self.cause = cause
        if self.requires_reauthentication:
            self.exit_code = EXIT_REAUTHENTICATE

    @property
    def code(self) -> Optional[ErrorCode]:
        """The remote error code, when the refresh was rejected remotely."""
        if isinstance(self.cause, RemoteRejected):
            return self.cause.code
        return None

    @property
    def requires_reauthentication(self) -> bool:
        """``True`` when the refresh token itself was invalidated."""
        return isinstance(self.cause, RemoteRejected) and self.cause.invalidates_refresh_token
