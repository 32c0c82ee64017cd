import base64

import pytest
from cryptography.hazmat.primitives.asymmetric import padding

from conftest import FakeResponse
from fieldseal.auth import AuthApi
from fieldseal.errors import ApiError


def test_login_encrypts_password_and_stores_token(client, session, key_response, private_key):
    session.queue(
        key_response,
        FakeResponse(200, {"data": {"token": "jwt", "user": {"username": "alice"}}}),
        FakeResponse(200, {"data": {"username": "alice"}}),
    )
    api = AuthApi(client)
    resp = api.login("alice", "hunter2")
    assert resp["token"] == "jwt"
    assert client.token == "jwt"

    login = session.calls[1]
    assert login["headers"]["X-Encrypted-Fields"] == "password"
    sent = base64.b64decode(login["json"]["password"])
    assert private_key.decrypt(sent, padding.PKCS1v15()) == b"hunter2"

    assert api.current_user() == {"username": "alice"}
    assert session.calls[2]["headers"]["Authorization"] == "Bearer jwt"


def test_cookie_session_login_keeps_no_token(client, session, key_response):
    session.queue(key_response, FakeResponse(200, {"data": {"user": {"username": "bob"}}}))
    AuthApi(client).login("bob", "pw")
    assert client.token is None


def test_logout_clears_token(client, session):
    client.set_token("jwt")
    session.queue(FakeResponse(200, {}))
    AuthApi(client).logout()
    assert client.token is None
    assert session.calls[0]["url"].endswith("/auth/logout")


def test_unexpected_login_response(client, session, key_response):
    session.queue(key_response, FakeResponse(200, {"data": {"ok": True}}))
    with pytest.raises(ApiError) as info:
        AuthApi(client).login("carol", "pw")
    assert info.value.message == "Unexpected login response"
    assert client.token is None
