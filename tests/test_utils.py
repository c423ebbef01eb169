import os
import sys
import json

import requests

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from utils import (
    format_currency,
    format_percent,
    format_price,
    get_bitcoin_price,
)


class MockResponse:
    def __init__(self, payload=None, headers=None, error=None):
        self.payload = payload
        self.headers = {"content-type": "application/json; charset=utf-8"}
        if headers is not None:
            self.headers = headers
        self.error = error

    def raise_for_status(self):
        if self.error:
            raise self.error

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


def _mock_session(monkeypatch, responses):
    """Patch ``requests.Session`` to answer each URL from ``responses``.

    ``responses`` maps a substring of the provider URL to a ``MockResponse``.
    Unmatched URLs raise a connection error.
    """
    requested = []

    class MockSession:
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            pass

        def get(self, url, *args, **kwargs):
            requested.append(url)
            for key, response in responses.items():
                if key in url:
                    return response
            raise requests.exceptions.ConnectionError("boom")

    monkeypatch.setattr(requests, "Session", MockSession)
    return requested


def test_get_bitcoin_price_first_provider(monkeypatch):
    requested = _mock_session(
        monkeypatch, {"coingecko": MockResponse({"bitcoin": {"usd": 98765.4}})}
    )

    price, warnings = get_bitcoin_price()

    assert price == 98765
    assert warnings == []
    assert len(requested) == 1


def test_get_bitcoin_price_falls_through_to_next_provider(monkeypatch):
    requested = _mock_session(
        monkeypatch,
        {
            "coingecko": MockResponse(error=requests.exceptions.HTTPError("429")),
            "coincap": MockResponse({"data": {"priceUsd": "70000.6"}}),
        },
    )

    price, warnings = get_bitcoin_price()

    assert price == 70001
    assert len(warnings) == 1
    assert "CoinGecko" in warnings[0]
    assert len(requested) == 2


def test_get_bitcoin_price_all_providers_fail(monkeypatch):
    _mock_session(monkeypatch, {})

    price, warnings = get_bitcoin_price()

    assert price == 115000
    assert len(warnings) == 4
    assert "fallback" in warnings[-1]


def test_get_bitcoin_price_custom_fallback(monkeypatch):
    _mock_session(monkeypatch, {})

    price, _ = get_bitcoin_price(fallback_price=90000)

    assert price == 90000


def test_get_bitcoin_price_rejects_out_of_range_quote(monkeypatch):
    _mock_session(
        monkeypatch,
        {
            "coingecko": MockResponse({"bitcoin": {"usd": 12}}),
            "binance": MockResponse({"price": "64000.00"}),
        },
    )

    price, warnings = get_bitcoin_price()

    assert price == 64000
    assert "out of reasonable range" in warnings[0]
    assert len(warnings) == 2


def test_get_bitcoin_price_rejects_non_json_content(monkeypatch):
    _mock_session(
        monkeypatch,
        {
            "coingecko": MockResponse(
                {"bitcoin": {"usd": 98000}}, headers={"content-type": "text/html"}
            )
        },
    )

    price, warnings = get_bitcoin_price()

    assert price == 115000
    assert "content type" in warnings[0]


def test_get_bitcoin_price_rejects_oversized_response(monkeypatch):
    _mock_session(
        monkeypatch,
        {
            "coingecko": MockResponse(
                {"bitcoin": {"usd": 98000}},
                headers={"content-type": "application/json", "content-length": "50000"},
            )
        },
    )

    price, warnings = get_bitcoin_price()

    assert price == 115000
    assert "too large" in warnings[0]


def test_get_bitcoin_price_malformed_json(monkeypatch):
    _mock_session(
        monkeypatch,
        {"coingecko": MockResponse(json.JSONDecodeError("Expecting value", "", 0))},
    )

    price, warnings = get_bitcoin_price()

    assert price == 115000
    assert len(warnings) == 4


def test_get_bitcoin_price_missing_field(monkeypatch):
    _mock_session(monkeypatch, {"coingecko": MockResponse({})})

    price, warnings = get_bitcoin_price()

    assert price == 115000
    assert len(warnings) == 4


def test_format_price():
    assert format_price(1_250_000) == "$1.25M"
    assert format_price(20_000_000) == "$20.00M"
    assert format_price(250_400) == "$250K"
    assert format_price(950) == "$950"


def test_format_currency():
    assert format_currency(1234.4) == "$1,234"
    assert format_currency(-1234.4) == "-$1,234"
    assert format_currency(0) == "$0"


def test_format_percent():
    assert format_percent(0.1234) == "12.34%"
    assert format_percent(-1.0) == "-100.00%"


def test_get_bitcoin_price_rejects_string_coingecko_quote(monkeypatch):
    _mock_session(
        monkeypatch,
        {
            "coingecko": MockResponse({"bitcoin": {"usd": "98000"}}),
            "coincap": MockResponse({"data": {"priceUsd": "97000.2"}}),
        },
    )

    price, warnings = get_bitcoin_price()

    assert price == 97000
    assert "Invalid CoinGecko response structure" in warnings[0]
