"""Tests for console blocking and bid cancellation."""

import httpx
import pytest

from bidguard.blocking import BlockingActions, split_bidder_list
from bidguard.core import BidderStatus, PageStructureError

from conftest import CONSOLE, console_page, form_of

REASON = "Artikelbeschreibung nicht gelesen oder nicht verstanden"


class FakeBlockList:
    """Blocked bidder pages of a logged-in console."""

    def __init__(self, textarea='<textarea name="bidderlist">alice, bob</textarea>'):
        self.textarea = textarea
        self.calls: list[tuple[str, str, dict]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        command = str(request.url).removeprefix(f"{CONSOLE}?")
        form = form_of(request) if request.method == "POST" else {}
        self.calls.append((request.method, command, form))
        if command == "BidderBlockLogin":
            return httpx.Response(
                200, html=console_page("Bieter sperren", srt="A", stok="B", body=self.textarea)
            )
        if command == "BidderBlockResult":
            return httpx.Response(200, html=console_page("Ihre Änderungen wurden gespeichert"))
        if command == "CancelBid":
            return httpx.Response(200, html=console_page("Gebot wurde gestrichen", srt="C"))
        return httpx.Response(404)


class StubEvaluation:
    def __init__(self, bids):
        self.bids = bids

    async def blockable_bids(self):
        return self.bids


@pytest.fixture
def make_actions(make_web, credentials):
    def _make(console, bids=()):
        return BlockingActions(
            make_web(console), StubEvaluation(list(bids)), credentials, REASON
        )

    return _make


class TestBlockedBidders:
    @pytest.mark.asyncio
    async def test_read_blocked_set(self, make_actions):
        actions = make_actions(FakeBlockList())
        assert await actions.get_blocked_bidders() == {"alice", "bob"}

    @pytest.mark.asyncio
    async def test_empty_list(self, make_actions):
        actions = make_actions(FakeBlockList('<textarea name="bidderlist"></textarea>'))
        assert await actions.get_blocked_bidders() == set()

    @pytest.mark.asyncio
    async def test_page_without_textarea(self, make_actions):
        actions = make_actions(FakeBlockList(textarea=""))
        with pytest.raises(PageStructureError):
            await actions.get_blocked_bidders()

    @pytest.mark.asyncio
    async def test_block_posts_full_list(self, make_actions):
        console = FakeBlockList()
        actions = make_actions(console)

        message = await actions.block_bidder("carol")

        assert message == "Ihre Änderungen wurden gespeichert"
        method, command, form = console.calls[-1]
        assert (method, command) == ("POST", "BidderBlockResult")
        assert form == {
            "MfcISAPICommand": "BidderBlockResult",
            "userid": "seller_de",
            "bidderlist": "alice, bob, carol",
            "srt": "A",
            "stok": "B",
        }

    @pytest.mark.asyncio
    async def test_block_existing_bidder_keeps_list(self, make_actions):
        console = FakeBlockList()
        await make_actions(console).block_bidder("bob")
        assert console.calls[-1][2]["bidderlist"] == "alice, bob"

    @pytest.mark.asyncio
    async def test_unblock(self, make_actions):
        console = FakeBlockList()
        await make_actions(console).unblock_bidder("alice")
        assert console.calls[-1][2]["bidderlist"] == "bob"


class TestCancelBid:
    @pytest.mark.asyncio
    async def test_cancel_form(self, make_actions):
        console = FakeBlockList()
        actions = make_actions(console)
        await actions.get_blocked_bidders()  # picks up srt/stok

        message = await actions.cancel_bid("111", "bob")

        assert message == "Gebot wurde gestrichen"
        assert console.calls[-1] == (
            "POST",
            "CancelBid",
            {
                "MfcISAPICommand": "CancelBid",
                "selleruserid": "seller_de",
                "item": "111",
                "buyeruserid": "bob",
                "info": REASON,
                "srt": "A",
                "stok": "B",
            },
        )


class TestBlockAndCancel:
    @pytest.mark.asyncio
    async def test_cancel_then_block_each_bid(self, make_actions):
        console = FakeBlockList()
        bid = BidderStatus("111", "Teekanne", "carol", 3, 100.0)
        seen = []
        actions = make_actions(console, [bid])

        outcomes = await actions.block_and_cancel(on_outcome=seen.append)

        assert [(m, c) for m, c, _ in console.calls] == [
            ("POST", "CancelBid"),
            ("GET", "BidderBlockLogin"),
            ("POST", "BidderBlockResult"),
        ]
        # cancel page rotated srt to C; the block list page rotated it back to A
        assert console.calls[-1][2]["srt"] == "A"
        assert [o.action for o in outcomes] == ["cancel", "block"]
        assert outcomes[0].message == "Gebot wurde gestrichen"
        assert outcomes[1].item_id == "111"
        assert seen == outcomes

    @pytest.mark.asyncio
    async def test_nothing_to_do(self, make_actions):
        console = FakeBlockList()
        assert await make_actions(console).block_and_cancel() == []
        assert console.calls == []


class TestSplitBidderList:
    def test_separators(self):
        assert split_bidder_list("alice,bob,  carol\n") == ["alice", "bob", "carol"]

    def test_duplicates_dropped(self):
        assert split_bidder_list("alice, bob, alice") == ["alice", "bob"]

    def test_blank(self):
        assert split_bidder_list("   ") == []
