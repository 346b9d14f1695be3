"""
Cookie session against the HTML console.

eBay does not answer an expired session with 401/403; it redirects to the
sign-in page instead.  ``WebClient.request`` therefore treats a redirect to
sign-in as "log in, then try exactly once more".  Every page that comes back
with status 200 is scanned for the ``srt``/``stok`` form fields, which the
console rotates per page and expects echoed on state-changing posts.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import re
from typing import Optional

import httpx

from bidguard.core import (
    Credentials,
    UnexpectedRedirect,
    UnexpectedRedirectAfterLogin,
    UnexpectedStatus,
)
from bidguard.document import Element, page_input_values, parse_html
from bidguard.login import LoginFlow
from bidguard.settings import ConsoleCfg

log = logging.getLogger("bidguard.web")

CSRF_FIELDS = ("srt", "stok")


class Session:
    """The one authenticated console session of this process."""

    def __init__(
        self,
        *,
        headers: Optional[dict[str, str]] = None,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client = httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )
        self.srt: Optional[str] = None
        self.stok: Optional[str] = None

    def remember_tokens(self, page: Element) -> None:
        values = page_input_values(page)
        if "srt" in values:
            self.srt = values["srt"]
        if "stok" in values:
            self.stok = values["stok"]

    def csrf_fields(self) -> dict[str, Optional[str]]:
        return {"srt": self.srt, "stok": self.stok}

    async def aclose(self) -> None:
        await self.client.aclose()


class Attempt(enum.Enum):
    FRESH = "fresh"
    RETRIED_AFTER_LOGIN = "retried_after_login"


def redirect_trace(response: httpx.Response) -> list[str]:
    """Targets of every redirect followed to produce ``response``, in order."""
    if not response.history:
        return []
    return [str(r.url) for r in response.history[1:]] + [str(response.url)]


class WebClient:
    def __init__(self, session: Session, credentials: Credentials, cfg: ConsoleCfg):
        self.session = session
        self.cfg = cfg
        self.login_flow = LoginFlow(session.client, credentials, cfg)
        self._signin_re = re.compile(cfg.signin_pattern)
        self._lock = asyncio.Lock()

    def command_url(self, command: str) -> str:
        return f"{self.cfg.base_url}?{command}"

    async def request(
        self, method: str, command: str, data: Optional[dict[str, str]] = None
    ) -> Element:
        url = self.command_url(command)
        async with self._lock:
            attempt = Attempt.FRESH
            while True:
                log.debug("%s %s (%s)", method, url, attempt.value)
                r = await self.session.client.request(method, url, data=data)
                trace = redirect_trace(r)

                if not trace:
                    if r.status_code != 200:
                        raise UnexpectedStatus(r.status_code, dict(r.headers), r.text)
                    page = parse_html(r.text)
                    self.session.remember_tokens(page)
                    return page

                if attempt is Attempt.RETRIED_AFTER_LOGIN:
                    raise UnexpectedRedirectAfterLogin(trace)
                if not self._signin_re.match(trace[0]):
                    raise UnexpectedRedirect(trace)

                log.info("Session expired, redirected to %s", trace[0])
                signin_page = parse_html(r.text)
                await self.login_flow.login(page_input_values(signin_page), url)
                attempt = Attempt.RETRIED_AFTER_LOGIN

    async def get(self, command: str) -> Element:
        return await self.request("GET", command)

    async def post_form(self, command: str, fields: dict[str, str]) -> Element:
        """POST a console form with the most recently seen srt/stok."""
        form = {**fields, **self.session.csrf_fields()}
        return await self.request("POST", command, data=form)
