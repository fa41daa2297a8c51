"""Tests for request-side values and response payload decoding."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from fireauth.models import (
    AccountUpdateResponse,
    IdpPostBody,
    ProviderId,
    RefreshTokenResponse,
    SignInResponse,
    UserData,
    dump_payload,
)


class TestIdpPostBody:
    def test_google(self) -> None:
        assert IdpPostBody.google("abc").render() == "id_token=abc&providerId=google.com"

    def test_facebook(self) -> None:
        assert IdpPostBody.facebook("tok").render() == "access_token=tok&providerId=facebook.com"

    def test_values_are_url_encoded(self) -> None:
        body = IdpPostBody(provider_id=ProviderId.GITHUB, access_token="a b&c")
        assert body.render() == "access_token=a+b%26c&providerId=github.com"

    def test_credential_required(self) -> None:
        with pytest.raises(ValidationError, match="id_token or access_token"):
            IdpPostBody(provider_id=ProviderId.APPLE)

    def test_frozen(self) -> None:
        body = IdpPostBody.google("abc")
        with pytest.raises(ValidationError):
            body.id_token = "other"  # type: ignore[misc]


class TestPayloads:
    def test_string_ttl_is_coerced(self) -> None:
        response = SignInResponse.model_validate(
            {"idToken": "i", "refreshToken": "r", "expiresIn": "3600", "localId": "u"}
        )
        assert response.expires_in == 3600

    def test_unknown_keys_are_ignored(self) -> None:
        user = UserData.model_validate({"localId": "u", "somethingNew": {"nested": True}})
        assert user.local_id == "u"
        assert user.provider_user_info == []

    def test_refresh_response_maps_user_id(self) -> None:
        response = RefreshTokenResponse.model_validate(
            {"id_token": "i", "refresh_token": "r", "expires_in": "60", "user_id": "u"}
        )
        assert response.to_grant().local_id == "u"

    @pytest.mark.parametrize(
        "body",
        [
            {"localId": "u"},
            {"localId": "u", "idToken": "i", "refreshToken": "r"},
        ],
    )
    def test_account_update_without_tokens(self, body: dict) -> None:
        assert AccountUpdateResponse.model_validate(body).to_grant() is None

    def test_dump_payload_uses_field_names_and_drops_none(self) -> None:
        user = UserData.model_validate({"localId": "u", "emailVerified": True})
        assert dump_payload(user) == {"local_id": "u", "email_verified": True, "provider_user_info": []}
