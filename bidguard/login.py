from __future__ import annotations

import logging

import httpx

from bidguard.core import Credentials, LoginFailed, UnexpectedRedirectTarget
from bidguard.settings import ConsoleCfg

log = logging.getLogger("bidguard.login")


class LoginFlow:
    """Console sign-in. Shares the cookie jar of the session client."""

    def __init__(
        self, client: httpx.AsyncClient, credentials: Credentials, cfg: ConsoleCfg
    ):
        self.client = client
        self.credentials = credentials
        self.cfg = cfg

    async def send_login(self, page_params: dict[str, str]) -> str:
        form = {
            **page_params,
            "userid": self.credentials.userid,
            "pass": self.credentials.password,
        }
        # the raw 302 is the success signal, so it must not be followed
        r = await self.client.post(
            self.cfg.signin_url, data=form, follow_redirects=False
        )
        if r.status_code == 302 and "location" in r.headers:
            return r.headers["location"]
        raise LoginFailed(r.status_code, r.text)

    async def login(self, page_params: dict[str, str], expected_redirect: str) -> None:
        log.info("Logging in to eBay as %s", self.credentials.userid)
        redirected_to = await self.send_login(page_params)
        if not redirected_to.startswith(expected_redirect):
            raise UnexpectedRedirectTarget(expected_redirect, redirected_to)
        log.debug("Login redirected back to %s", redirected_to)
