"""Raw operations -- one stateless function per identity provider endpoint.

Each function builds the request body, performs exactly one round trip
through a :class:`~fireauth.client.transport.Transport`, and validates the
response with the matching model from :mod:`fireauth.models`.  None of them
knows about sessions or expiry; that is the job of
:class:`~fireauth.manager.SessionManager`.

Authenticated operations take the identity token as their first argument
after the transport, so they can be bound with :func:`functools.partial`
(or a lambda) into the ``operation(token)`` shape the session manager
expects.

Errors:
    Every function may raise :class:`~fireauth.exceptions.TransportError`,
    :class:`~fireauth.exceptions.RemoteRejected` or
    :class:`~fireauth.exceptions.DecodeError`.  The common rejection codes
    of each endpoint are listed in its docstring.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from fireauth.client.transport import Transport
from fireauth.exceptions import DecodeError
from fireauth.models import (
    AccountUpdateResponse,
    CustomTokenResponse,
    DeleteAttribute,
    EmailVerificationResult,
    IdpPostBody,
    IdpResponse,
    LookupResponse,
    OobCodeResponse,
    PasswordResetResponse,
    ProviderId,
    ProvidersForEmail,
    RefreshTokenResponse,
    SignInResponse,
    TokenGrant,
    UserData,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model: type[ModelT], body: dict[str, Any], endpoint: str) -> ModelT:
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise DecodeError(
            f"Unexpected {endpoint} response ({exc.error_count()} validation errors): {exc}"
        ) from exc


# --- Unauthenticated ---


def sign_up_with_email_password(
    transport: Transport, email: str, password: str
) -> SignInResponse:
    """Create an email/password account and sign it in.

    Common codes: ``EMAIL_EXISTS``, ``OPERATION_NOT_ALLOWED``,
    ``TOO_MANY_ATTEMPTS_TRY_LATER``, ``WEAK_PASSWORD``.
    """
    body = transport.post(
        "accounts:signUp",
        {"email": email, "password": password, "returnSecureToken": True},
    )
    return _parse(SignInResponse, body, "accounts:signUp")


def sign_in_with_email_password(
    transport: Transport, email: str, password: str
) -> SignInResponse:
    """Sign in with email and password.

    Common codes: ``EMAIL_NOT_FOUND``, ``INVALID_PASSWORD``,
    ``INVALID_LOGIN_CREDENTIALS``, ``USER_DISABLED``.
    """
    body = transport.post(
        "accounts:signInWithPassword",
        {"email": email, "password": password, "returnSecureToken": True},
    )
    return _parse(SignInResponse, body, "accounts:signInWithPassword")


def sign_in_anonymously(transport: Transport) -> SignInResponse:
    """Create and sign in an anonymous account.

    Common codes: ``OPERATION_NOT_ALLOWED``.
    """
    body = transport.post("accounts:signUp", {"returnSecureToken": True})
    return _parse(SignInResponse, body, "accounts:signUp")


def sign_in_with_oauth_credential(
    transport: Transport,
    request_uri: str,
    post_body: IdpPostBody,
    return_idp_credential: bool = False,
) -> IdpResponse:
    """Sign in with a credential issued by an external identity provider.

    Common codes: ``OPERATION_NOT_ALLOWED``, ``INVALID_IDP_RESPONSE``.
    """
    body = transport.post(
        "accounts:signInWithIdp",
        {
            "requestUri": request_uri,
            "postBody": post_body.render(),
            "returnSecureToken": True,
            "returnIdpCredential": return_idp_credential,
        },
    )
    return _parse(IdpResponse, body, "accounts:signInWithIdp")


def exchange_custom_token(transport: Transport, token: str) -> CustomTokenResponse:
    """Exchange a server-minted custom token for an identity/refresh token pair.

    Common codes: ``INVALID_CUSTOM_TOKEN``, ``CREDENTIAL_MISMATCH``.
    """
    body = transport.post(
        "accounts:signInWithCustomToken",
        {"token": token, "returnSecureToken": True},
    )
    return _parse(CustomTokenResponse, body, "accounts:signInWithCustomToken")


def exchange_refresh_token(transport: Transport, refresh_token: str) -> RefreshTokenResponse:
    """Exchange a refresh token for a new identity token.

    The response carries the refresh token to use next, which may or may
    not equal the one sent.

    Common codes: ``TOKEN_EXPIRED``, ``USER_DISABLED``, ``USER_NOT_FOUND``,
    ``INVALID_REFRESH_TOKEN``, ``INVALID_GRANT_TYPE``,
    ``MISSING_REFRESH_TOKEN``.
    """
    body = transport.post_token(
        {"grant_type": "refresh_token", "refresh_token": refresh_token}
    )
    return _parse(RefreshTokenResponse, body, "token")


def make_refresher(transport: Transport) -> Callable[[str], TokenGrant]:
    """Bind :func:`exchange_refresh_token` into the refresher the session manager consumes."""

    def refresh(refresh_token: str) -> TokenGrant:
        return exchange_refresh_token(transport, refresh_token).to_grant()

    return refresh


def fetch_providers_for_email(
    transport: Transport, email: str, continue_uri: str
) -> ProvidersForEmail:
    """List the sign-in providers registered for *email*.

    Common codes: ``INVALID_EMAIL``.
    """
    body = transport.post(
        "accounts:createAuthUri",
        {"identifier": email, "continueUri": continue_uri},
    )
    return _parse(ProvidersForEmail, body, "accounts:createAuthUri")


def send_password_reset_email(
    transport: Transport, email: str, locale: Optional[str] = None
) -> OobCodeResponse:
    """Send a password reset email.

    Common codes: ``EMAIL_NOT_FOUND``.
    """
    body = transport.post(
        "accounts:sendOobCode",
        {"requestType": "PASSWORD_RESET", "email": email},
        locale=locale,
    )
    return _parse(OobCodeResponse, body, "accounts:sendOobCode")


def verify_password_reset_code(transport: Transport, oob_code: str) -> PasswordResetResponse:
    """Check a password reset code without consuming it.

    Common codes: ``OPERATION_NOT_ALLOWED``, ``EXPIRED_OOB_CODE``,
    ``INVALID_OOB_CODE``.
    """
    body = transport.post("accounts:resetPassword", {"oobCode": oob_code})
    return _parse(PasswordResetResponse, body, "accounts:resetPassword")


def confirm_password_reset(
    transport: Transport, oob_code: str, new_password: str
) -> PasswordResetResponse:
    """Apply a password reset code.

    Common codes: ``OPERATION_NOT_ALLOWED``, ``EXPIRED_OOB_CODE``,
    ``INVALID_OOB_CODE``, ``USER_DISABLED``.
    """
    body = transport.post(
        "accounts:resetPassword",
        {"oobCode": oob_code, "newPassword": new_password},
    )
    return _parse(PasswordResetResponse, body, "accounts:resetPassword")


def confirm_email_verification(transport: Transport, oob_code: str) -> EmailVerificationResult:
    """Apply an email verification code.

    Common codes: ``EXPIRED_OOB_CODE``, ``INVALID_OOB_CODE``,
    ``USER_DISABLED``, ``EMAIL_NOT_FOUND``.
    """
    body = transport.post("accounts:update", {"oobCode": oob_code})
    return _parse(EmailVerificationResult, body, "accounts:update")


# --- Authenticated ---


def get_user_data(transport: Transport, id_token: str) -> UserData:
    """Fetch the account the identity token belongs to.

    Common codes: ``INVALID_ID_TOKEN``, ``USER_NOT_FOUND``.

    Raises:
        DecodeError: If the response lists no user.
    """
    body = transport.post("accounts:lookup", {"idToken": id_token})
    lookup = _parse(LookupResponse, body, "accounts:lookup")
    if not lookup.users:
        raise DecodeError("accounts:lookup returned no user for the identity token")
    return lookup.users[0]


def change_email(
    transport: Transport,
    id_token: str,
    email: str,
    locale: Optional[str] = None,
    return_secure_token: bool = False,
) -> AccountUpdateResponse:
    """Change the account's email address.

    Common codes: ``EMAIL_EXISTS``, ``INVALID_ID_TOKEN``.
    """
    body = transport.post(
        "accounts:update",
        {"idToken": id_token, "email": email, "returnSecureToken": return_secure_token},
        locale=locale,
    )
    return _parse(AccountUpdateResponse, body, "accounts:update")


def change_password(
    transport: Transport,
    id_token: str,
    password: str,
    return_secure_token: bool = False,
) -> AccountUpdateResponse:
    """Change the account's password.

    Common codes: ``INVALID_ID_TOKEN``, ``WEAK_PASSWORD``.
    """
    body = transport.post(
        "accounts:update",
        {"idToken": id_token, "password": password, "returnSecureToken": return_secure_token},
    )
    return _parse(AccountUpdateResponse, body, "accounts:update")


def update_profile(
    transport: Transport,
    id_token: str,
    display_name: Optional[str] = None,
    photo_url: Optional[str] = None,
    delete_attributes: Iterable[DeleteAttribute] = (),
    return_secure_token: bool = False,
) -> AccountUpdateResponse:
    """Update display name and/or photo URL, or clear them.

    Common codes: ``INVALID_ID_TOKEN``.
    """
    payload: dict[str, Any] = {"idToken": id_token, "returnSecureToken": return_secure_token}
    if display_name is not None:
        payload["displayName"] = display_name
    if photo_url is not None:
        payload["photoUrl"] = photo_url
    deleted = sorted({attr.value for attr in delete_attributes})
    if deleted:
        payload["deleteAttribute"] = deleted
    body = transport.post("accounts:update", payload)
    return _parse(AccountUpdateResponse, body, "accounts:update")


def link_with_email_password(
    transport: Transport, id_token: str, email: str, password: str
) -> AccountUpdateResponse:
    """Attach an email/password credential to the account.

    The response reissues the token pair.

    Common codes: ``CREDENTIAL_TOO_OLD_LOGIN_AGAIN``, ``TOKEN_EXPIRED``,
    ``INVALID_ID_TOKEN``, ``WEAK_PASSWORD``.
    """
    body = transport.post(
        "accounts:update",
        {"idToken": id_token, "email": email, "password": password, "returnSecureToken": True},
    )
    return _parse(AccountUpdateResponse, body, "accounts:update")


def link_with_oauth_credential(
    transport: Transport,
    id_token: str,
    request_uri: str,
    post_body: IdpPostBody,
    return_idp_credential: bool = False,
) -> IdpResponse:
    """Attach an external provider credential to the account.

    Common codes: ``OPERATION_NOT_ALLOWED``, ``INVALID_IDP_RESPONSE``,
    ``INVALID_ID_TOKEN``, ``FEDERATED_USER_ID_ALREADY_LINKED``,
    ``EMAIL_EXISTS``.
    """
    body = transport.post(
        "accounts:signInWithIdp",
        {
            "idToken": id_token,
            "requestUri": request_uri,
            "postBody": post_body.render(),
            "returnSecureToken": True,
            "returnIdpCredential": return_idp_credential,
        },
    )
    return _parse(IdpResponse, body, "accounts:signInWithIdp")


def unlink_provider(
    transport: Transport, id_token: str, providers: Iterable[ProviderId]
) -> AccountUpdateResponse:
    """Detach one or more providers from the account.

    Common codes: ``INVALID_ID_TOKEN``.
    """
    delete_provider = sorted({provider.value for provider in providers})
    body = transport.post(
        "accounts:update",
        {"idToken": id_token, "deleteProvider": delete_provider},
    )
    return _parse(AccountUpdateResponse, body, "accounts:update")


def send_email_verification(
    transport: Transport, id_token: str, locale: Optional[str] = None
) -> OobCodeResponse:
    """Send an email verification message to the account's address.

    Common codes: ``INVALID_ID_TOKEN``, ``USER_NOT_FOUND``.
    """
    body = transport.post(
        "accounts:sendOobCode",
        {"requestType": "VERIFY_EMAIL", "idToken": id_token},
        locale=locale,
    )
    return _parse(OobCodeResponse, body, "accounts:sendOobCode")


def delete_account(transport: Transport, id_token: str) -> None:
    """Delete the account.

    Common codes: ``INVALID_ID_TOKEN``, ``USER_NOT_FOUND``.
    """
    transport.post("accounts:delete", {"idToken": id_token})
