# utils.py
import json
import logging
import math
import requests
import streamlit as st
from datetime import datetime

from config import (
    FALLBACK_BITCOIN_PRICE,
    PRICE_MAX_RESPONSE_BYTES,
    PRICE_REQUEST_TIMEOUT,
    PRICE_SANE_RANGE,
    PRICE_USER_AGENT,
)


def initialize_session_state():
    """Initialize the Streamlit session state variables.

    Examples
    --------
    >>> initialize_session_state()
    >>> st.session_state.setdefault("extra_key", "default")
    """
    st.session_state.setdefault("simulation_results", None)
    st.session_state.setdefault("projection_results", None)
    st.session_state.setdefault("simulator_expanded", True)
    st.session_state.setdefault("calculator_expanded", True)


def _parse_coingecko(data):
    price = data["bitcoin"]["usd"]
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise ValueError("Invalid CoinGecko response structure")
    return float(price)


def _parse_coincap(data):
    return float(data["data"]["priceUsd"])


def _parse_binance(data):
    return float(data["price"])


PRICE_PROVIDERS = (
    (
        "CoinGecko",
        "https://api.coingecko.com/api/v3/simple/price?ids=bitcoin&vs_currencies=usd",
        _parse_coingecko,
    ),
    ("CoinCap", "https://api.coincap.io/v2/assets/bitcoin", _parse_coincap),
    ("Binance", "https://api.binance.com/api/v3/ticker/price?symbol=BTCUSDT", _parse_binance),
)


def _fetch_json(session, url, timeout):
    """GET ``url`` and return its JSON object, rejecting suspicious responses."""
    response = session.get(
        url,
        timeout=timeout,
        headers={"Accept": "application/json", "User-Agent": PRICE_USER_AGENT},
    )
    response.raise_for_status()

    content_type = response.headers.get("content-type", "")
    if "application/json" not in content_type:
        raise ValueError("Invalid response content type")

    content_length = response.headers.get("content-length")
    if content_length and int(content_length) > PRICE_MAX_RESPONSE_BYTES:
        raise ValueError("Response too large")

    data = response.json()
    if not isinstance(data, dict):
        raise ValueError("Invalid JSON response structure")
    return data


def validate_price(price, provider):
    """Return ``price`` rounded to whole dollars if it is a plausible BTC quote."""
    if isinstance(price, bool) or not isinstance(price, (int, float)) or math.isnan(price):
        raise ValueError(f"Invalid price type from {provider}")
    if price <= 0:
        raise ValueError(f"Invalid price value from {provider}: {price}")
    if not PRICE_SANE_RANGE[0] <= price <= PRICE_SANE_RANGE[1]:
        raise ValueError(f"Price out of reasonable range from {provider}: {price}")
    return round(price)


def get_bitcoin_price(
    timeout: float = PRICE_REQUEST_TIMEOUT,
    fallback_price: float = FALLBACK_BITCOIN_PRICE,
    providers=PRICE_PROVIDERS,
):
    """Fetch the current Bitcoin price, trying each provider in turn.

    Args:
        timeout (float): Per-request timeout in seconds.
        fallback_price (float): Price to return if every provider fails.
        providers: Sequence of ``(name, url, parser)`` tuples. ``parser``
            extracts the USD price from the decoded JSON body.

    Returns:
        tuple: (price, warnings) where price is the first valid quote in USD
            or the fallback price, and warnings is a list of warning messages
            generated during the process.
    """
    warnings = []

    with requests.Session() as session:
        for name, url, parser in providers:
            try:
                data = _fetch_json(session, url, timeout)
                price = validate_price(parser(data), name)
                logging.info("Fetched Bitcoin price from %s: $%s", name, f"{price:,}")
                return price, warnings
            except (
                requests.exceptions.RequestException,
                ValueError,
                KeyError,
                TypeError,
                json.JSONDecodeError,
            ) as e:
                timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
                message = f"[{timestamp}] {name} failed to provide a Bitcoin price: {str(e)}"
                logging.warning(message)
                warnings.append(message)

    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    message = (
        f"[{timestamp}] All price providers failed. Using fallback price of ${fallback_price:,}"
    )
    logging.warning(message)
    warnings.append(message)
    return fallback_price, warnings


def format_price(price):
    """Compact price label: ``$1.25M``, ``$250K`` or ``$950``."""
    if price >= 1_000_000:
        return f"${price / 1_000_000:.2f}M"
    if price >= 1000:
        return f"${round(price / 1000):,}K"
    return f"${round(price):,}"


def format_currency(amount):
    """Whole-dollar currency, with the sign in front of the symbol."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.0f}"


def format_percent(rate):
    """Format a decimal fraction as a percentage with two decimals"""
    return f"{rate * 100:.2f}%"
