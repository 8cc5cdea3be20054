"""Thin synchronous client for the business-management REST API.

Every request carries ``Authorization: Bearer <token>`` when a token is set.
A 401 response drops the token so the session counts as logged out, and is
raised as :class:`AuthenticationError`. Any other transport or HTTP failure
is raised as :class:`ApiError`.

The underlying :class:`httpx.Client` is safe to share between the worker
threads used by :class:`~business_reports.session.ReportSession`.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

import httpx

from .config import get_api_token, get_api_url, get_http_timeout
from .logging_setup import get_logger
from .models import ResourceKind

_logger = get_logger("business_reports.client")


class ApiError(RuntimeError):
    """A request failed; ``status_code`` is ``None`` for transport errors."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(ApiError):
    """The server rejected the credentials (HTTP 401)."""


class ApiClient:
    """Bearer-authenticated JSON client.

    Parameters
    ----------
    base_url:
        API root, e.g. ``http://localhost:5000/api``. Defaults to
        ``BR_API_URL``.
    token:
        Bearer token. Defaults to ``BR_API_TOKEN``.
    timeout:
        Per-request timeout in seconds. Defaults to ``BR_HTTP_TIMEOUT``.
    transport:
        Optional httpx transport; tests pass :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or get_api_url()).rstrip("/")
        self.token = token if token is not None else get_api_token()
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else get_http_timeout(),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            transport=transport,
        )

    # -- lifecycle ---------------------------------------------------------

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- plumbing ----------------------------------------------------------

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        try:
            resp = self._http.request(
                method, path, params=params, json=json, headers=self._headers()
            )
        except httpx.HTTPError as e:
            _logger.warning("api:transport_error method=%s path=%s err=%s", method, path, e)
            raise ApiError(f"{method} {path} failed: {e}") from e

        if resp.status_code == 401:
            self.token = None
            _logger.warning("api:unauthorized method=%s path=%s; token dropped", method, path)
            raise AuthenticationError(
                "Authentication failed. Please log in again.", status_code=401
            )
        if resp.is_error:
            raise ApiError(
                f"{method} {path} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        _logger.debug("api:ok method=%s path=%s status=%d", method, path, resp.status_code)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(
                f"{method} {path} returned a non-JSON body", status_code=resp.status_code
            ) from e

    # -- endpoints ---------------------------------------------------------

    def get_collection(self, kind: ResourceKind) -> Any:
        """Fetch the raw payload of one resource collection."""

        # Cache-busting timestamp, in milliseconds.
        return self._request("GET", kind.path, params={"_t": int(time.time() * 1000)})

    def update_status(self, kind: ResourceKind, record_id: str, status: str) -> Any:
        return self._request("PATCH", f"{kind.path}/{record_id}/status", json={"status": status})

    def login(self, email: str, password: str) -> str:
        """Exchange credentials for a token and keep it on the client."""

        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        token = None
        if isinstance(data, Mapping):
            token = data.get("token")
            if token is None and isinstance(data.get("data"), Mapping):
                token = data["data"].get("token")
        if not isinstance(token, str) or not token:
            raise ApiError("login response did not contain a token")
        self.token = token
        _logger.info("api:login_ok email=%s", email)
        return token

    def current_user(self) -> Any:
        return self._request("GET", "/auth/me")


__all__ = ["ApiClient", "ApiError", "AuthenticationError"]
