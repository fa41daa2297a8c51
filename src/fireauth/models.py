"""Canonical Pydantic models shared across all fireauth modules.

The models fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory
or built at runtime:
    :class:`RequestConfig`, :class:`OutputConfig`, :class:`GlobalConfig`,
    and :class:`ClientConfig`.

**Request-side values** -- typed inputs to the raw operations:
    :class:`ProviderId`, :class:`DeleteAttribute`, :class:`IdpPostBody`.

**Response payloads** -- the JSON bodies returned by the Identity Toolkit and
Secure Token endpoints, validated by :mod:`fireauth.client.operations`.
Every token-minting payload offers ``to_grant()`` returning a
:class:`TokenGrant`, the only input from which a
:class:`~fireauth.session.Session` can be built.

Response models accept the API's camelCase names through aliases and ignore
unknown keys so that additive API changes do not break decoding.
"""

from __future__ import annotations

import enum
from typing import Any, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field, model_validator


DEFAULT_IDENTITY_BASE_URL = "https://identitytoolkit.googleapis.com/v1"
DEFAULT_SECURE_TOKEN_BASE_URL = "https://securetoken.googleapis.com/v1"


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP transport settings applied to every round trip."""

    timeout: float = Field(default=60.0, description="Request timeout in seconds")
    connect_timeout: float = Field(default=10.0, description="Connection timeout in seconds")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/fireauth/config.json``.

    Loaded and saved by :func:`~fireauth.config.load_global_config` and
    :func:`~fireauth.config.save_global_config`.  Fields here have the
    lowest precedence; see :func:`~fireauth.config.resolve_config`.
    """

    api_key_source: Optional[str] = Field(
        default=None,
        description="Where to read the project API key: env:VAR, file:/path, prompt",
    )
    identity_base_url: str = DEFAULT_IDENTITY_BASE_URL
    secure_token_base_url: str = DEFAULT_SECURE_TOKEN_BASE_URL
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


class ClientConfig(BaseModel):
    """Resolved settings needed to talk to the identity provider.

    Example::

        ClientConfig(api_key="AIza...")
    """

    api_key: str = Field(min_length=1, description="Project web API key")
    identity_base_url: str = DEFAULT_IDENTITY_BASE_URL
    secure_token_base_url: str = DEFAULT_SECURE_TOKEN_BASE_URL
    request: RequestConfig = Field(default_factory=RequestConfig)


# --- Request-side values ---


class ProviderId(str, enum.Enum):
    """Identity provider identifiers as used on the wire."""

    PASSWORD = "password"
    GOOGLE = "google.com"
    FACEBOOK = "facebook.com"
    TWITTER = "twitter.com"
    GITHUB = "github.com"
    APPLE = "apple.com"


class DeleteAttribute(str, enum.Enum):
    """Profile attributes that ``update_profile`` can clear."""

    DISPLAY_NAME = "DISPLAY_NAME"
    PHOTO_URL = "PHOTO_URL"


class IdpPostBody(BaseModel):
    """OAuth credential handed to ``accounts:signInWithIdp``.

    The credential itself (an OIDC ID token or an OAuth access token) is
    obtained by the caller from the provider; this model only carries it.
    """

    model_config = ConfigDict(frozen=True)

    provider_id: ProviderId
    id_token: Optional[str] = None
    access_token: Optional[str] = None
    oauth_token_secret: Optional[str] = None

    @model_validator(mode="after")
    def _require_credential(self) -> IdpPostBody:
        if not self.id_token and not self.access_token:
            raise ValueError("either id_token or access_token is required")
        return self

    @classmethod
    def google(cls, id_token: str) -> IdpPostBody:
        return cls(provider_id=ProviderId.GOOGLE, id_token=id_token)

    @classmethod
    def facebook(cls, access_token: str) -> IdpPostBody:
        return cls(provider_id=ProviderId.FACEBOOK, access_token=access_token)

    @classmethod
    def twitter(cls, access_token: str, oauth_token_secret: str) -> IdpPostBody:
        return cls(
            provider_id=ProviderId.TWITTER,
            access_token=access_token,
            oauth_token_secret=oauth_token_secret,
        )

    def render(self) -> str:
        """Render the form-encoded ``postBody`` string the API expects."""
        pairs: list[tuple[str, str]] = []
        if self.id_token:
            pairs.append(("id_token", self.id_token))
        if self.access_token:
            pairs.append(("access_token", self.access_token))
        if self.oauth_token_secret:
            pairs.append(("oauth_token_secret", self.oauth_token_secret))
        pairs.append(("providerId", self.provider_id.value))
        return urlencode(pairs)


# --- Response payloads ---


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TokenGrant(BaseModel):
    """A freshly minted token triple, as declared by the server.

    Attributes:
        id_token: The short-lived identity token.
        refresh_token: The refresh token to use next (reissued or unchanged).
        expires_in: Server-declared time-to-live of ``id_token`` in seconds.
        local_id: Account identifier, when the endpoint reports one.
    """

    model_config = ConfigDict(frozen=True)

    id_token: str
    refresh_token: str
    expires_in: int
    local_id: Optional[str] = None


class ProviderUserInfo(_Payload):
    """One linked provider entry of an account."""

    provider_id: str = Field(alias="providerId")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    photo_url: Optional[str] = Field(default=None, alias="photoUrl")
    federated_id: Optional[str] = Field(default=None, alias="federatedId")
    email: Optional[str] = None
    raw_id: Optional[str] = Field(default=None, alias="rawId")
    screen_name: Optional[str] = Field(default=None, alias="screenName")


class UserData(_Payload):
    """Account data returned by ``accounts:lookup``.

    Timestamps are kept as the strings the API sends (milliseconds, or
    seconds for ``valid_since``).
    """

    local_id: str = Field(alias="localId")
    email: Optional[str] = None
    email_verified: Optional[bool] = Field(default=None, alias="emailVerified")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    provider_user_info: list[ProviderUserInfo] = Field(
        default_factory=list, alias="providerUserInfo"
    )
    photo_url: Optional[str] = Field(default=None, alias="photoUrl")
    password_hash: Optional[str] = Field(default=None, alias="passwordHash")
    password_updated_at: Optional[float] = Field(default=None, alias="passwordUpdatedAt")
    valid_since: Optional[str] = Field(default=None, alias="validSince")
    disabled: Optional[bool] = None
    last_login_at: Optional[str] = Field(default=None, alias="lastLoginAt")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    last_refresh_at: Optional[str] = Field(default=None, alias="lastRefreshAt")
    custom_auth: Optional[bool] = Field(default=None, alias="customAuth")


class LookupResponse(_Payload):
    users: list[UserData] = Field(default_factory=list)


class SignInResponse(_Payload):
    """Body of ``accounts:signUp``, ``accounts:signInWithPassword`` and anonymous sign-in."""

    id_token: str = Field(alias="idToken")
    refresh_token: str = Field(alias="refreshToken")
    expires_in: int = Field(alias="expiresIn")
    local_id: str = Field(alias="localId")
    email: Optional[str] = None
    registered: Optional[bool] = None

    def to_grant(self) -> TokenGrant:
        return TokenGrant(
            id_token=self.id_token,
            refresh_token=self.refresh_token,
            expires_in=self.expires_in,
            local_id=self.local_id,
        )


class CustomTokenResponse(_Payload):
    """Body of ``accounts:signInWithCustomToken`` (no account identifier)."""

    id_token: str = Field(alias="idToken")
    refresh_token: str = Field(alias="refreshToken")
    expires_in: int = Field(alias="expiresIn")

    def to_grant(self) -> TokenGrant:
        return TokenGrant(
            id_token=self.id_token,
            refresh_token=self.refresh_token,
            expires_in=self.expires_in,
        )


class RefreshTokenResponse(_Payload):
    """Body of the Secure Token ``token`` exchange (snake_case on the wire)."""

    id_token: str
    refresh_token: str
    expires_in: int
    user_id: str
    token_type: Optional[str] = None
    project_id: Optional[str] = None

    def to_grant(self) -> TokenGrant:
        return TokenGrant(
            id_token=self.id_token,
            refresh_token=self.refresh_token,
            expires_in=self.expires_in,
            local_id=self.user_id,
        )


class IdpResponse(_Payload):
    """Body of ``accounts:signInWithIdp`` for both sign-in and linking."""

    local_id: str = Field(alias="localId")
    id_token: str = Field(alias="idToken")
    refresh_token: str = Field(alias="refreshToken")
    expires_in: int = Field(alias="expiresIn")
    provider_id: Optional[str] = Field(default=None, alias="providerId")
    federated_id: Optional[str] = Field(default=None, alias="federatedId")
    email: Optional[str] = None
    email_verified: Optional[bool] = Field(default=None, alias="emailVerified")
    oauth_id_token: Optional[str] = Field(default=None, alias="oauthIdToken")
    oauth_access_token: Optional[str] = Field(default=None, alias="oauthAccessToken")
    oauth_token_secret: Optional[str] = Field(default=None, alias="oauthTokenSecret")
    raw_user_info: Optional[str] = Field(default=None, alias="rawUserInfo")
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    full_name: Optional[str] = Field(default=None, alias="fullName")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    photo_url: Optional[str] = Field(default=None, alias="photoUrl")
    need_confirmation: Optional[bool] = Field(default=None, alias="needConfirmation")

    def to_grant(self) -> TokenGrant:
        return TokenGrant(
            id_token=self.id_token,
            refresh_token=self.refresh_token,
            expires_in=self.expires_in,
            local_id=self.local_id,
        )


class AccountUpdateResponse(_Payload):
    """Body of ``accounts:update`` (email/password/profile change, linking, unlinking).

    Token fields are present only when ``returnSecureToken`` was requested.
    """

    local_id: str = Field(alias="localId")
    email: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    photo_url: Optional[str] = Field(default=None, alias="photoUrl")
    password_hash: Optional[str] = Field(default=None, alias="passwordHash")
    provider_user_info: list[ProviderUserInfo] = Field(
        default_factory=list, alias="providerUserInfo"
    )
    email_verified: Optional[bool] = Field(default=None, alias="emailVerified")
    id_token: Optional[str] = Field(default=None, alias="idToken")
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")
    expires_in: Optional[int] = Field(default=None, alias="expiresIn")

    def to_grant(self) -> Optional[TokenGrant]:
        """Return the reissued tokens, or ``None`` when none were returned."""
        if self.id_token is None or self.refresh_token is None or self.expires_in is None:
            return None
        return TokenGrant(
            id_token=self.id_token,
            refresh_token=self.refresh_token,
            expires_in=self.expires_in,
            local_id=self.local_id,
        )


class EmailVerificationResult(_Payload):
    """Body of ``accounts:update`` when confirming an email verification code."""

    email: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    photo_url: Optional[str] = Field(default=None, alias="photoUrl")
    password_hash: Optional[str] = Field(default=None, alias="passwordHash")
    provider_user_info: list[ProviderUserInfo] = Field(
        default_factory=list, alias="providerUserInfo"
    )
    email_verified: Optional[bool] = Field(default=None, alias="emailVerified")


class ProvidersForEmail(_Payload):
    """Body of ``accounts:createAuthUri``."""

    all_providers: list[str] = Field(default_factory=list, alias="allProviders")
    registered: Optional[bool] = None


class OobCodeResponse(_Payload):
    """Body of ``accounts:sendOobCode``."""

    email: Optional[str] = None


class PasswordResetResponse(_Payload):
    """Body of ``accounts:resetPassword`` (verify or confirm)."""

    email: Optional[str] = None
    request_type: Optional[str] = Field(default=None, alias="requestType")


def dump_payload(model: BaseModel) -> dict[str, Any]:
    """Serialise a request/response model for display, dropping unset fields."""
    return model.model_dump(mode="json", exclude_none=True)
