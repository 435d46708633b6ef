"""
fuelops_services.api_client -- JSON REST client for the station backend.

Responsibility:
    Send one HTTP request, attach the bearer token, decode the JSON body
    and classify every failure into the typed remote errors:

    - timeout / connection failure    -> ConnectivityError
    - non-2xx answer                  -> ApiResponseError (server message)
    - 401                             -> AuthenticationExpiredError, and the
                                         stored token and profile are cleared

Architecture position:
    Services -- the only module that talks HTTP.  Retries and fallbacks
    live one layer up in ``fuelops_services.resilient_fetch``.

Failure modes:
    - Every exception raised is a ``RemoteError``; raw ``requests``
      exceptions never escape.
"""

from __future__ import annotations

from typing import Any

import requests

from fuelops_kernel.exceptions import (
    ApiResponseError,
    AuthenticationExpiredError,
    ConnectivityError,
    RemoteError,
)
from fuelops_kernel.logging_config import LogContext, get_logger
from fuelops_services.local_store import LocalStore
from fuelops_services.session_store import SessionStore

logger = get_logger("services.api_client")

DEFAULT_TIMEOUT = 15.0
HEALTH_PATH = "/health"


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None}


def _server_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error"):
            if body.get(key):
                return str(body[key])
    return response.reason or f"HTTP {response.status_code}"


class ApiClient:
    """
    Thin JSON client over ``requests.Session``.

    Contract:
        ``request`` returns the decoded JSON body, ``None`` for an empty
        body, or raises a ``RemoteError`` subclass.

    Non-goals:
        - Does NOT retry.  Does NOT fall back to cached or mock data.
    """

    def __init__(
        self,
        base_url: str,
        store: LocalStore | None = None,
        http: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._sessions = SessionStore(store) if store is not None else None
        self._http = http or requests.Session()

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self, authenticate: bool) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if authenticate and self._sessions is not None:
            token = self._sessions.token
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
        authenticate: bool = True,
    ) -> Any:
        """Send one request and return the decoded body.

        Raises:
            ConnectivityError: timeout or network failure.
            AuthenticationExpiredError: 401 (token and profile cleared).
            ApiResponseError: any other non-2xx status.
        """
        with LogContext.bind(request_path=path):
            try:
                response = self._http.request(
                    method,
                    self.url_for(path),
                    json=json,
                    params=_clean_params(params),
                    headers=self._headers(authenticate),
                    timeout=timeout if timeout is not None else self.timeout,
                )
            except requests.Timeout as exc:
                logger.warning(
                    "request_timed_out",
                    extra={"http_method": method, "timeout_s": timeout or self.timeout},
                )
                raise ConnectivityError(path, f"timeout: {exc}") from exc
            except requests.RequestException as exc:
                logger.warning(
                    "request_failed",
                    extra={"http_method": method, "error": type(exc).__name__},
                )
                raise ConnectivityError(path, f"{type(exc).__name__}: {exc}") from exc

            status = response.status_code
            if status == 401:
                if self._sessions is not None:
                    self._sessions.clear(reason="authentication_expired")
                logger.warning("authentication_expired", extra={"http_method": method})
                raise AuthenticationExpiredError(path)
            if not 200 <= status < 300:
                message = _server_message(response)
                logger.warning(
                    "request_rejected",
                    extra={
                        "http_method": method,
                        "status_code": status,
                        "server_message": message,
                    },
                )
                raise ApiResponseError(path, status, message)

            logger.debug(
                "request_succeeded",
                extra={"http_method": method, "status_code": status},
            )
            if status == 204 or not response.content or not response.content.strip():
                return None
            try:
                return response.json()
            except ValueError:
                return response.text

    def get(self, path: str, *, params: dict[str, Any] | None = None, **kwargs: Any) -> Any:
        return self.request("GET", path, params=params, **kwargs)

    def post(self, path: str, *, json: Any = None, **kwargs: Any) -> Any:
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path: str, *, json: Any = None, **kwargs: Any) -> Any:
        return self.request("PUT", path, json=json, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    def health(self, timeout: float | None = None) -> bool:
        """True when GET /health answers 2xx."""
        try:
            self.request("GET", HEALTH_PATH, timeout=timeout, authenticate=False)
        except RemoteError:
            return False
        return True
