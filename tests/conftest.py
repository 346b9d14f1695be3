"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from bidguard.core import Credentials
from bidguard.settings import ConsoleCfg, TradingCfg
from bidguard.trading import TradingClient
from bidguard.web import Session, WebClient

NS = "urn:ebay:apis:eBLBaseComponents"
CONSOLE = "https://offer.ebay.de/ws/eBayISAPI.dll"
SIGNIN_PAGE = "https://signin.ebay.de/ws/eBayISAPI.dll?SignIn&ru=BidderBlockLogin"
SIGNIN_POST = "https://www.ebay.de/signin/s"


class FixedClock:
    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now


def form_of(request: httpx.Request) -> dict[str, str]:
    """Decode an urlencoded request body into a flat dict."""
    parsed = parse_qs(request.content.decode(), keep_blank_values=True)
    return {k: v[0] for k, v in parsed.items()}


def ebay_response(call: str, body: str = "", ack: str = "Success") -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<{call}Response xmlns="{NS}">'
        "<Timestamp>2024-03-31T12:00:00.000Z</Timestamp>"
        f"<Ack>{ack}</Ack><Version>859</Version>"
        f"{body}"
        f"</{call}Response>"
    )


def console_page(title: str = "eBay", srt: str | None = None, stok: str | None = None, body: str = "") -> str:
    hidden = ""
    if srt is not None:
        hidden += f'<input type="hidden" name="srt" value="{srt}">'
    if stok is not None:
        hidden += f'<input type="hidden" name="stok" value="{stok}">'
    return (
        "<!DOCTYPE html><html><head><title>eBay</title></head><body>"
        f"<h1>{title}</h1><form method=post>{hidden}{body}</form>"
        "</body></html>"
    )


@pytest.fixture
def credentials():
    return Credentials(token="AgAAAA-secret-token", userid="seller_de", password="hunter2")


@pytest.fixture
def fixed_clock():
    return FixedClock(datetime(2024, 3, 31, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def make_web(credentials):
    """Build a WebClient whose HTTP traffic goes to ``handler``."""
    def _make(handler) -> WebClient:
        session = Session(transport=httpx.MockTransport(handler))
        return WebClient(session, credentials, ConsoleCfg())

    return _make


@pytest.fixture
def make_trading(credentials):
    def _make(handler) -> TradingClient:
        return TradingClient(
            credentials,
            TradingCfg(),
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    return _make
