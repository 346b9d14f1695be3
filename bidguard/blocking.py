from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Optional

from bidguard.bidders import BidderEvaluation
from bidguard.core import ActionOutcome, BidderStatus, Credentials, PageStructureError
from bidguard.document import Element, find_element
from bidguard.web import WebClient

log = logging.getLogger("bidguard.blocking")

_LIST_SPLIT_RE = re.compile(r",\s*")

OutcomeHook = Callable[[ActionOutcome], None]


def heading(page: Element) -> Optional[str]:
    """The console reports outcomes in the page <h1>, not in status codes."""
    h1 = find_element(page, "h1")
    return h1.text().strip() if h1 is not None else None


def split_bidder_list(text: str) -> list[str]:
    seen: dict[str, None] = {}
    for user_id in _LIST_SPLIT_RE.split(text.strip()):
        if user_id.strip():
            seen.setdefault(user_id.strip())
    return list(seen)


class BlockingActions:
    def __init__(
        self,
        web: WebClient,
        evaluation: BidderEvaluation,
        credentials: Credentials,
        cancel_reason: str,
    ):
        self.web = web
        self.evaluation = evaluation
        self.credentials = credentials
        self.cancel_reason = cancel_reason

    # ------------- blocked bidders ------------- #

    async def _blocked_list(self) -> list[str]:
        page = await self.web.get("BidderBlockLogin")
        textarea = find_element(page, "textarea")
        if textarea is None:
            raise PageStructureError("No <textarea> on the blocked bidders page")
        return split_bidder_list(textarea.text())

    async def get_blocked_bidders(self) -> set[str]:
        return set(await self._blocked_list())

    async def set_blocked_bidders(self, user_ids: Iterable[str]) -> Optional[str]:
        page = await self.web.post_form(
            "BidderBlockResult",
            {
                "MfcISAPICommand": "BidderBlockResult",
                "userid": self.credentials.userid,
                "bidderlist": ", ".join(user_ids),
            },
        )
        return heading(page)

    async def block_bidder(self, user_id: str) -> Optional[str]:
        current = await self._blocked_list()
        if user_id not in current:
            current.append(user_id)
        return await self.set_blocked_bidders(current)

    async def unblock_bidder(self, user_id: str) -> Optional[str]:
        current = await self._blocked_list()
        return await self.set_blocked_bidders(u for u in current if u != user_id)

    # ------------- bids ------------- #

    async def cancel_bid(self, item_id: str, user_id: str) -> Optional[str]:
        page = await self.web.post_form(
            "CancelBid",
            {
                "MfcISAPICommand": "CancelBid",
                "selleruserid": self.credentials.userid,
                "item": item_id,
                "buyeruserid": user_id,
                "info": self.cancel_reason,
            },
        )
        return heading(page)

    async def cancel_and_block(
        self, bid: BidderStatus, on_outcome: Optional[OutcomeHook] = None
    ) -> list[ActionOutcome]:
        """Cancel first, then block. A failed block leaves the bid cancelled."""
        outcomes = []

        def emit(action: str, message: Optional[str]) -> None:
            outcome = ActionOutcome(
                action=action,
                user_id=bid.user_id,
                message=message,
                item_id=bid.item_id,
                description=bid.description,
            )
            outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)

        message = await self.cancel_bid(bid.item_id, bid.user_id)
        log.info("Cancel bid from %s for %s - %s", bid.user_id, bid.description, message)
        emit("cancel", message)

        message = await self.block_bidder(bid.user_id)
        log.info("Blocking bidder %s - %s", bid.user_id, message)
        emit("block", message)
        return outcomes

    async def block_and_cancel(
        self, on_outcome: Optional[OutcomeHook] = None
    ) -> list[ActionOutcome]:
        outcomes: list[ActionOutcome] = []
        for bid in await self.evaluation.blockable_bids():
            outcomes.extend(await self.cancel_and_block(bid, on_outcome))
        return outcomes
