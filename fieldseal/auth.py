"""Login endpoints of the admin API; the password leaves the process encrypted."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .encrypted import post_encrypted
from .errors import ApiError
from .key_provider import PublicKeyProvider
from .transport import ApiClient

log = logging.getLogger(__name__)


class AuthApi:
    def __init__(self, client: ApiClient, provider: Optional[PublicKeyProvider] = None):
        self.client = client
        self.provider = provider or PublicKeyProvider(client)

    def login(self, username: str, password: str) -> Any:
        """
        Log in with *username* and *password*.

        Token responses (``{"token": ..., "user": ...}``) set the bearer
        token on the client. Cookie-session responses (``{"user": ...}``)
        are returned as-is.

        Raises
        ------
        ApiError
            If the response carries neither a token nor a user.
        """
        resp = post_encrypted(
            self.client,
            self.provider,
            "/auth/login",
            {"username": username, "password": password},
            ["password"],
        )
        if not isinstance(resp, dict) or not (resp.get("token") or resp.get("user")):
            raise ApiError(200, "Unexpected login response", resp)
        if resp.get("token"):
            self.client.set_token(resp["token"])
        log.info("Logged in as %s", username)
        return resp

    def logout(self) -> Any:
        try:
            return self.client.post("/auth/logout")
        finally:
            self.client.set_token(None)

    def current_user(self) -> Any:
        return self.client.get("/auth/me")
