from __future__ import annotations

from typing import Optional

import httpx

from bidguard.bidders import BidderEvaluation
from bidguard.blocking import BlockingActions
from bidguard.core import Clock, Credentials
from bidguard.settings import Settings
from bidguard.trading import TradingClient
from bidguard.web import Session, WebClient
from bidguard.whitelist import Whitelist


class Marketplace:
    """Everything that shares the process-wide console session.

    Use as ``async with Marketplace(settings, credentials) as mp: ...``
    """

    def __init__(
        self,
        settings: Settings,
        credentials: Credentials,
        *,
        clock: Optional[Clock] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        timeout = settings.network.timeout_seconds
        self.settings = settings
        self.whitelist = Whitelist(settings.whitelist_file)
        self.session = Session(
            headers=settings.browser_headers(), timeout=timeout, transport=transport
        )
        self.trading = TradingClient(
            credentials,
            settings.trading,
            client=httpx.AsyncClient(timeout=timeout, transport=transport),
        )
        self.web = WebClient(self.session, credentials, settings.console)
        self.evaluation = BidderEvaluation(
            self.trading,
            self.whitelist,
            clock=clock,
            lookback_months=settings.evaluation.lookback_months,
        )
        self.actions = BlockingActions(
            self.web, self.evaluation, credentials, settings.console.cancel_reason
        )

    async def aclose(self) -> None:
        await self.trading.aclose()
        await self.session.aclose()

    async def __aenter__(self) -> "Marketplace":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
