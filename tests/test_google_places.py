import pytest
import requests

from reviews_connect.vendors import google_places


class DummyResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError("http error")

    def json(self):
        return self._payload


class DummySession:
    def __init__(self):
        self.calls = []
        self.response = DummyResponse()

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture(autouse=True)
def patch_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(google_places, "_SESSION", session)
    return session


def test_autocomplete_success(patch_session):
    patch_session.response = DummyResponse(payload={"status": "OK", "predictions": [{"place_id": "ChIJabc"}]})
    predictions = google_places.autocomplete("pizza", "key")
    assert predictions == [{"place_id": "ChIJabc"}]
    url, params, timeout = patch_session.calls[0]
    assert "autocomplete" in url
    assert params["input"] == "pizza"
    assert params["types"] == "establishment"
    assert timeout == 10


def test_autocomplete_error_status(patch_session):
    patch_session.response = DummyResponse(payload={"status": "REQUEST_DENIED", "error_message": "bad"})
    with pytest.raises(google_places.GooglePlacesError):
        google_places.autocomplete("pizza", "key")


def test_place_details_requests_autocomplete_fields(patch_session):
    patch_session.response = DummyResponse(payload={"status": "OK", "result": {"name": "Acme"}})
    result = google_places.place_details("pid", "key")
    assert result["name"] == "Acme"
    _, params, _ = patch_session.calls[0]
    assert params["fields"] == google_places.AUTOCOMPLETE_DETAIL_FIELDS


def test_place_details_error(patch_session):
    patch_session.response = DummyResponse(payload={"status": "OVER_QUERY_LIMIT", "error_message": "limit"})
    with pytest.raises(google_places.GooglePlacesError):
        google_places.place_details("pid", "key")


def test_check_api_key_ok(patch_session):
    patch_session.response = DummyResponse(payload={"status": "OK", "result": {"name": "Google"}})
    assert google_places.check_api_key("key") == {"ok": True, "status": "OK"}
    _, params, _ = patch_session.calls[0]
    assert params["place_id"] == google_places.PROBE_PLACE_ID
    assert params["fields"] == "name"


def test_check_api_key_reports_google_status(patch_session):
    patch_session.response = DummyResponse(payload={"status": "REQUEST_DENIED"})
    assert google_places.check_api_key("key") == {"ok": False, "status": "REQUEST_DENIED"}


def test_check_api_key_connection_failure(patch_session):
    patch_session.response = requests.ConnectionError("down")
    assert google_places.check_api_key("key") == {"ok": False, "status": "CONNECTION_FAILED"}


def test_check_api_key_without_key_skips_request(patch_session):
    assert google_places.check_api_key("")["status"] == "MISSING_KEY"
    assert patch_session.calls == []
