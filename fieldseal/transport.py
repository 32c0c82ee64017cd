"""
fieldseal HTTP transport
========================

Thin JSON client over ``requests``.  Every request path is joined to the
configured API base URL.  When a JSON body has the shape
``{"data": ...}``, the client returns the inner value.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .errors import ApiError, NetworkError
from .settings import ClientSettings, get_settings

log = logging.getLogger(__name__)

_DEFAULT_MESSAGES = {
    401: "Authentication failed, please log in again.",
    403: "Not permitted to access this resource.",
    404: "The requested resource does not exist.",
    500: "Server error, please retry later.",
}


class ApiClient:
    """JSON-over-HTTP client with bearer auth and response unwrapping."""

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self._token = self.settings.auth_token

    # ------------------------------------------------------------------
    # Auth token
    # ------------------------------------------------------------------

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(
        self,
        path: str,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        return self.request("POST", path, json=json, headers=headers)

    def put(
        self,
        path: str,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        return self.request("PUT", path, json=json, headers=headers)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def url_for(self, path: str) -> str:
        return self.settings.api_base_url.rstrip("/") + "/" + path.lstrip("/")

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Send one request and return the unwrapped JSON body.

        Raises
        ------
        NetworkError
            Connection failure, timeout or an unreadable response body.
        ApiError
            The server answered with a non-2xx status.
        """
        url = self.url_for(path)
        send_headers = {"Content-Type": "application/json"}
        send_headers.update(headers or {})
        if self._token:
            send_headers["Authorization"] = f"Bearer {self._token}"
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=send_headers,
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            log.warning("%s %s failed: %s", method, url, exc)
            raise NetworkError(f"{method} {url} failed: {exc}") from exc

        body = _decode_body(resp)
        if not 200 <= resp.status_code < 300:
            message = _error_message(resp.status_code, body)
            log.warning("%s %s -> %s: %s", method, url, resp.status_code, message)
            raise ApiError(resp.status_code, message, body)
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body


def _decode_body(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as exc:
        if not 200 <= resp.status_code < 300:
            return resp.text
        raise NetworkError(f"Response from {resp.url} is not JSON.") from exc


def _error_message(status: int, body: Any) -> str:
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return _DEFAULT_MESSAGES.get(status, "Request failed.")
