"""Synchronous HTTP transport for the identity provider's REST endpoints.

This module provides :class:`Transport`, a thin wrapper over
:class:`httpx.Client` that knows the two base URLs involved:

- **Identity Toolkit** (``accounts:*`` endpoints) -- JSON bodies, API key
  in the ``key`` query parameter, optional ``X-Firebase-Locale`` header.
- **Secure Token** (``token``) -- form-encoded refresh-token exchange.

Every call performs exactly one round trip and never retries.  Failures are
mapped onto the fireauth taxonomy:

- network, timeout, protocol, redirect and content-decoding failures
  (any :class:`httpx.HTTPError`) -> :class:`~fireauth.exceptions.TransportError`
- non-2xx with ``{"error": {"message": ...}}`` -> :class:`~fireauth.exceptions.RemoteRejected`
- anything that is not the expected JSON object -> :class:`~fireauth.exceptions.DecodeError`

See Also:
    :mod:`fireauth.client.operations` -- one function per endpoint built on
    top of this transport.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from fireauth.exceptions import DecodeError, ErrorCode, RemoteRejected, TransportError
from fireauth.models import ClientConfig

logger = logging.getLogger(__name__)

LOCALE_HEADER = "X-Firebase-Locale"


class Transport:
    """Synchronous transport for the identity provider.

    Must be used as a context manager so that the underlying connection
    pool is opened and closed properly.

    Args:
        config: Resolved client settings (API key, base URLs, timeouts).
        transport: Optional :class:`httpx.BaseTransport` to route requests
            through, e.g. :class:`httpx.MockTransport` in tests.

    Example::

        with Transport(ClientConfig(api_key="...")) as transport:
            body = transport.post("accounts:lookup", {"idToken": token})
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Transport:
        self.open()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def open(self) -> None:
        """Create the underlying :class:`httpx.Client` if it is not open yet."""
        if self._client is not None:
            return
        request = self._config.request
        self._client = httpx.Client(
            timeout=httpx.Timeout(request.timeout, connect=request.connect_timeout),
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def post(
        self,
        endpoint: str,
        payload: dict[str, Any],
        locale: Optional[str] = None,
    ) -> dict[str, Any]:
        """POST a JSON payload to an Identity Toolkit endpoint.

        Args:
            endpoint: Endpoint name such as ``"accounts:signInWithPassword"``.
            payload: JSON-serialisable request body.
            locale: Optional BCP 47 language code for emails the call sends.

        Returns:
            The decoded JSON object of the success response.

        Raises:
            TransportError: On network, timeout or content-decoding errors.
            RemoteRejected: On a well-formed API error response.
            DecodeError: On a body that is not a JSON object.
        """
        headers = {LOCALE_HEADER: locale} if locale else None
        url = f"{self._config.identity_base_url}/{endpoint}"
        return self._send(endpoint, url, json_body=payload, headers=headers)

    def post_token(self, payload: dict[str, str]) -> dict[str, Any]:
        """POST a form-encoded grant to the Secure Token ``token`` endpoint.

        Args:
            payload: Form fields, e.g. ``grant_type`` and ``refresh_token``.

        Returns:
            The decoded JSON object of the success response.
        """
        url = f"{self._config.secure_token_base_url}/token"
        return self._send("token", url, data=payload)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _send(
        self,
        endpoint: str,
        url: str,
        json_body: Optional[dict[str, Any]] = None,
        data: Optional[dict[str, str]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        assert self._client is not None, "Transport not initialised -- use as context manager"

        logger.debug("POST %s", endpoint)
        try:
            response = self._client.post(
                url,
                params={"key": self._config.api_key},
                json=json_body,
                data=data,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {endpoint} failed: {exc}") from exc

        return self._decode(endpoint, response)

    def _decode(self, endpoint: str, response: httpx.Response) -> dict[str, Any]:
        """Return the JSON object of a success response or raise a typed error."""
        status = response.status_code
        try:
            body = response.json()
        except ValueError as exc:
            snippet = response.text[:200] if response.text else ""
            raise DecodeError(
                f"{endpoint} returned HTTP {status} with a non-JSON body: {snippet}"
            ) from exc

        if response.is_success:
            if not isinstance(body, dict):
                raise DecodeError(f"{endpoint} returned a JSON {type(body).__name__}, expected an object")
            return body

        error = body.get("error") if isinstance(body, dict) else None
        message = error.get("message") if isinstance(error, dict) else None
        if not isinstance(message, str):
            raise DecodeError(f"{endpoint} returned HTTP {status} with an unrecognised error body")

        code = ErrorCode.from_message(message)
        logger.debug("%s rejected: HTTP %s %s", endpoint, status, code.value)
        raise RemoteRejected(code, status, message)
