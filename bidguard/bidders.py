from __future__ import annotations

import calendar
import logging
import math
import re
from datetime import datetime, timezone
from typing import Optional

from bidguard.core import BidderParseError, BidderStatus, Clock, SystemClock
from bidguard.document import extract_all, extract_first, find_first
from bidguard.trading import TradingClient
from bidguard.whitelist import Whitelist

log = logging.getLogger("bidguard.bidders")


def format_time(t: datetime) -> str:
    """2018-06-01T12:00:00.000Z"""
    t = t.astimezone(timezone.utc)
    return t.strftime("%Y-%m-%dT%H:%M:%S.") + f"{t.microsecond // 1000:03d}Z"


def months_before(t: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month."""
    month_index = t.year * 12 + (t.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(t.day, calendar.monthrange(year, month)[1])
    return t.replace(year=year, month=month, day=day)


_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)
_DECIMAL_RE = re.compile(r"[+-]?\d+(?:\.\d+)?", re.ASCII)


def _parse_number(kind, text: Optional[str], item_id: str, field: str):
    """Plain base-10 only; int()/float() would also take "1_0", "NaN", "inf"."""
    if text is None:
        return None
    pattern = _INT_RE if kind is int else _DECIMAL_RE
    value = kind(text.strip()) if pattern.fullmatch(text.strip()) else None
    if value is None or (kind is float and not math.isfinite(value)):
        raise BidderParseError(f"Item {item_id}: malformed {field} {text!r}")
    return value


class BidderEvaluation:
    def __init__(
        self,
        trading: TradingClient,
        whitelist: Whitelist,
        clock: Clock | None = None,
        lookback_months: int = 1,
    ):
        self.trading = trading
        self.whitelist = whitelist
        self.clock = clock or SystemClock()
        self.lookback_months = lookback_months

    async def active_item_ids(self) -> list[str]:
        now = self.clock.now()
        start = months_before(now, self.lookback_months)
        root = await self.trading.get_seller_list(format_time(start), format_time(now))
        return extract_all(
            root,
            self.trading.path("GetSellerListResponse", "ItemArray", "Item", "ItemID"),
        )

    async def high_bidder_status(self, item_id: str) -> Optional[BidderStatus]:
        p = self.trading.path
        root = await self.trading.get_item(item_id)
        high_bidder = find_first(
            root, p("GetItemResponse", "Item", "SellingStatus", "HighBidder")
        )
        if high_bidder is None:
            return None

        return BidderStatus(
            item_id=item_id,
            description=extract_first(root, p("GetItemResponse", "Item", "Title")),
            user_id=extract_first(high_bidder, p("UserID")),
            feedback_score=_parse_number(
                int, extract_first(high_bidder, p("FeedbackScore")), item_id, "FeedbackScore"
            ),
            positive_feedback_percent=_parse_number(
                float,
                extract_first(high_bidder, p("PositiveFeedbackPercent")),
                item_id,
                "PositiveFeedbackPercent",
            ),
        )

    def is_acceptable(self, status: Optional[BidderStatus]) -> bool:
        # anything we cannot judge counts as acceptable
        if status is None:
            return True
        # no user id means there is nobody to block
        if status.user_id is None or self.whitelist.contains(status.user_id):
            return True
        if status.feedback_score is None or status.positive_feedback_percent is None:
            return True
        return (
            math.floor(status.positive_feedback_percent) == 100
            and status.feedback_score > 9
        )

    async def blockable_bids(self) -> list[BidderStatus]:
        blockable = []
        for item_id in await self.active_item_ids():
            status = await self.high_bidder_status(item_id)
            if not self.is_acceptable(status):
                log.info(
                    "Blockable bid on %s by %s (score=%s, positive=%s%%)",
                    item_id,
                    status.user_id,
                    status.feedback_score,
                    status.positive_feedback_percent,
                )
                blockable.append(status)
        return blockable
