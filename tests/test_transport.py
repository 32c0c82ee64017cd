import pytest
import requests

from conftest import FakeResponse
from fieldseal.errors import ApiError, NetworkError
from fieldseal.settings import ClientSettings


def test_unwraps_data_envelope(client, session):
    session.queue(FakeResponse(200, {"code": 0, "data": {"id": 7}}))
    assert client.get("/providers/7") == {"id": 7}
    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "http://api.test/api/v1/providers/7"
    assert call["timeout"] == 5.0


def test_plain_body_returned_as_is(client, session):
    session.queue(FakeResponse(200, {"providers": []}), FakeResponse(204))
    assert client.get("providers/all") == {"providers": []}
    assert client.delete("/providers/1") is None


def test_bearer_token(client, session):
    session.queue(FakeResponse(200, {}), FakeResponse(200, {}))
    client.get("/auth/me")
    assert "Authorization" not in session.calls[0]["headers"]
    client.set_token("tok")
    client.post("/auth/me", json={"a": 1}, headers={"X-Extra": "1"})
    headers = session.calls[1]["headers"]
    assert headers["Authorization"] == "Bearer tok"
    assert headers["X-Extra"] == "1"
    assert session.calls[1]["json"] == {"a": 1}


def test_token_from_settings(session):
    from fieldseal.transport import ApiClient

    c = ApiClient(settings=ClientSettings(auth_token="abc"), session=session)
    assert c.token == "abc"


def test_error_status_uses_server_message(client, session):
    session.queue(FakeResponse(403, {"message": "nope"}))
    with pytest.raises(ApiError) as info:
        client.get("/providers")
    assert info.value.status_code == 403
    assert info.value.message == "nope"


def test_error_status_default_message(client, session):
    session.queue(FakeResponse(500, text="<html>oops</html>"))
    with pytest.raises(ApiError) as info:
        client.get("/providers")
    assert info.value.status_code == 500
    assert "Server error" in info.value.message


def test_connection_failure_is_network_error(client, session):
    session.queue(requests.ConnectionError("refused"))
    with pytest.raises(NetworkError) as info:
        client.get("/providers")
    assert not isinstance(info.value, ApiError)
    assert isinstance(info.value.__cause__, requests.ConnectionError)


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("FIELDSEAL_API_BASE_URL", "https://console.example/api/v2")
    monkeypatch.setenv("FIELDSEAL_TIMEOUT", "12")
    s = ClientSettings()
    assert s.api_base_url == "https://console.example/api/v2"
    assert s.timeout == 12.0
    assert s.encrypted_fields_header == "X-Encrypted-Fields"


def test_caller_session_headers_untouched(client, session):
    session.queue(FakeResponse(200, {}))
    client.post("/x", json={})
    assert session.headers == {}
    assert session.calls[0]["headers"]["Content-Type"] == "application/json"
