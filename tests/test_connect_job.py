import argparse

import pytest

from reviews_connect.core.config import ConfigError
from reviews_connect.jobs import connect
from reviews_connect.models import UNREACHABLE, FinalizeError

PAGE_ID = "ChIJN1t_tDeuEmsRUsoyG83frY4"


def _payload(name="Acme Bakery", page_id=PAGE_ID):
    return {"success": True, "result": {"name": name, "page_id": page_id, "reviews": {"count": 5, "score": 4.8}}}


@pytest.fixture
def provider(monkeypatch):
    calls = {"page": [], "find": [], "submitted": []}
    answers = {"page": {PAGE_ID: _payload()}, "find": {}}

    def fake_get_page_details(page_id, reviews, base_url=None):
        calls["page"].append(page_id)
        return answers["page"].get(page_id, {"success": False})

    def fake_find_place_id(url, reviews, base_url=None):
        calls["find"].append(url)
        return answers["find"].get(url, {"success": False})

    def fake_submit(self, form):
        calls["submitted"].append(form)
        return {"success": True, "request_id": "req_cli", "timestamp": 1700000000}

    monkeypatch.setattr("reviews_connect.vendors.review_provider.get_page_details", fake_get_page_details)
    monkeypatch.setattr("reviews_connect.vendors.review_provider.find_place_id", fake_find_place_id)
    monkeypatch.setattr(connect.HttpHostBoundary, "submit", fake_submit)
    return calls, answers


def test_run_connect_requires_nonce(provider):
    with pytest.raises(ConfigError):
        connect.run_connect(text=PAGE_ID, nonce=None)


def test_run_connect_place_id(provider):
    calls, _ = provider

    message = connect.run_connect(text=PAGE_ID, nonce="n")

    assert message["id"] == PAGE_ID
    assert message["name"] == "Acme Bakery"
    assert message["request_id"] == "req_cli"
    assert calls["page"] == [PAGE_ID]
    assert calls["submitted"][0]["_wpnonce"] == "n"


def test_run_connect_lists_candidates_without_choice(provider, capsys):
    calls, answers = provider
    answers["find"]["pizza"] = {
        "possible_places": [
            {"url": "https://maps.google.com/?cid=1", "name": "Pizza One", "address": "A St"},
            {"url": "https://maps.google.com/?cid=2", "name": "Pizza Two"},
        ]
    }

    assert connect.run_connect(text="pizza", nonce="n") is None
    out = capsys.readouterr().out
    assert "1. Pizza One | A St" in out
    assert "2. Pizza Two" in out
    assert calls["submitted"] == []


def test_run_connect_chooses_candidate(provider):
    calls, answers = provider
    answers["find"]["pizza"] = {
        "possible_places": [
            {"url": "https://maps.google.com/?cid=1", "name": "Pizza One"},
            {"url": "https://maps.google.com/?cid=2", "name": "Pizza Two"},
        ]
    }
    answers["find"]["https://maps.google.com/?cid=2"] = _payload(name="Pizza Two")

    message = connect.run_connect(text="pizza", nonce="n", choose=2)

    assert message["name"] == "Pizza Two"
    assert calls["find"] == ["pizza", "https://maps.google.com/?cid=2"]


def test_run_connect_rejects_out_of_range_choice(provider):
    _, answers = provider
    answers["find"]["pizza"] = {"possible_places": [{"url": "u", "name": "Pizza One"}]}

    with pytest.raises(ValueError):
        connect.run_connect(text="pizza", nonce="n", choose=5)


def test_run_connect_invalid_link(provider, caplog):
    calls, _ = provider

    assert connect.run_connect(text="https://example.com/acme", nonce="n") is None
    assert "not a valid Google Maps or Google Shopping link" in caplog.text
    assert calls["find"] == [] and calls["page"] == []


def test_run_connect_unreachable_host(provider, monkeypatch, caplog):
    monkeypatch.setattr(
        connect.ConnectionFinalizer, "finalize", lambda self, place: FinalizeError(UNREACHABLE, "timeout")
    )

    assert connect.run_connect(text=PAGE_ID, nonce="n") is None
    assert "retry later" in caplog.text


def test_run_connect_autocomplete_requires_key(provider, monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    connect.get_settings.cache_clear()

    with pytest.raises(ConfigError):
        connect.run_connect(text="Acme", nonce="n", use_autocomplete=True)


def test_run_connect_autocomplete_match(provider, monkeypatch):
    calls, _ = provider
    monkeypatch.setenv("GOOGLE_API_KEY", "gkey")
    connect.get_settings.cache_clear()
    monkeypatch.setattr(connect.google_places, "autocomplete", lambda text, key: [{"place_id": PAGE_ID}])
    monkeypatch.setattr(
        connect.google_places,
        "place_details",
        lambda place_id, key: {"place_id": place_id, "name": "Acme Bakery", "types": ["bakery"], "icon": "https://i.test/i.png"},
    )

    message = connect.run_connect(text="Acme", nonce="n", use_autocomplete=True)

    assert message["name"] == "Acme Bakery"
    assert message["rating_number"] == 5
    assert calls["find"] == []
    assert calls["page"] == [PAGE_ID]


def test_main_exit_codes(provider, monkeypatch):
    assert connect.main([PAGE_ID, "--nonce", "n"]) == 0
    assert connect.main(["https://example.com/x", "--nonce", "n"]) == 1

    monkeypatch.delenv("CONNECT_NONCE", raising=False)
    assert connect.main([PAGE_ID, "--nonce", ""]) == 2


def test_build_parser_defaults():
    parser = connect.build_parser()
    args = parser.parse_args(["acme", "--choose", "2"])
    assert isinstance(parser, argparse.ArgumentParser)
    assert args.text == "acme"
    assert args.choose == 2
    assert args.use_autocomplete is False
    assert args.max_reviews == 50
