from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from bidguard.core import ApiCallFailed, Credentials
from bidguard.document import Element, ParamTree, build_request, extract_first, parse_xml
from bidguard.settings import TradingCfg

log = logging.getLogger("bidguard.trading")

SUCCESS = "Success"


@dataclass(frozen=True)
class ApiResult:
    api_name: str
    payload: Optional[Element] = None
    failure: Optional[ApiCallFailed] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> Element:
        if self.failure is not None:
            raise self.failure
        return self.payload


class TradingClient:
    """One-shot calls against the XML trading API, token injected per request."""

    def __init__(
        self,
        credentials: Credentials,
        cfg: TradingCfg | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30,
    ):
        self.credentials = credentials
        self.cfg = cfg or TradingCfg()
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def path(self, *tags: str) -> tuple[str, ...]:
        """Qualify bare tag names with the API namespace."""
        return tuple(f"{{{self.cfg.namespace}}}{t}" for t in tags)

    def headers(self, api_name: str) -> dict[str, str]:
        return {
            "X-EBAY-API-CALL-NAME": api_name,
            "X-EBAY-API-COMPATIBILITY-LEVEL": self.cfg.compatibility_level,
            "X-EBAY-API-SITEID": self.cfg.site_id,
            "Content-Type": "text/xml",
        }

    async def execute(self, api_name: str, tree: ParamTree) -> ApiResult:
        body = build_request(tree, self.credentials.token, self.cfg.namespace)
        log.debug("POST %s (%s)", self.cfg.endpoint, api_name)
        r = await self.client.post(
            self.cfg.endpoint, content=body, headers=self.headers(api_name)
        )
        r.raise_for_status()

        root = parse_xml(r.content)
        ack = extract_first(root, self.path("Ack"))
        if ack == SUCCESS:
            return ApiResult(api_name, payload=root)

        message = extract_first(root, self.path("Errors", "LongMessage"))
        log.warning("%s returned Ack=%s: %s", api_name, ack, message)
        return ApiResult(
            api_name,
            failure=ApiCallFailed(api_name, _redact(body, self.credentials.token), message),
        )

    async def call(self, api_name: str, tree: ParamTree) -> Element:
        return (await self.execute(api_name, tree)).unwrap()

    # ---------------- calls ---------------- #

    async def get_seller_list(self, start: str, end: str) -> Element:
        return await self.call(
            "GetSellerList",
            ["GetSellerListRequest", ["StartTimeFrom", start], ["StartTimeTo", end]],
        )

    async def get_item(self, item_id: str) -> Element:
        return await self.call("GetItem", ["GetItemRequest", ["ItemID", item_id]])

    async def aclose(self) -> None:
        await self.client.aclose()


def _redact(body: bytes, token: str) -> str:
    return body.decode("utf-8").replace(token, "***") if token else body.decode("utf-8")
