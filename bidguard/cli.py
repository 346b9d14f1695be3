import asyncio
import logging
from logging.handlers import RotatingFileHandler
from typing import Annotated, Optional
import os
import typer
from bidguard.scheduler import main as run
from bidguard.db import recent_actions, record_action
from bidguard.core import ActionOutcome
from bidguard.marketplace import Marketplace
from bidguard.settings import load_credentials, load_settings
from bidguard.whitelist import Whitelist

if os.getenv("DEBUG_CLI", "0") == "1":
    import debugpy

    debugpy.listen(("0.0.0.0", 5679))
    if os.getenv("DEBUGPY_WAIT", "0") == "1":
        debugpy.wait_for_client()


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s -- %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _configure_logging() -> None:
    level = logging.DEBUG if os.getenv("BIDGUARD_DEBUG", "0") == "1" else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    file_handler = RotatingFileHandler(
        "./bidguard.log", maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))

    root = logging.getLogger()  # root logger
    root.addHandler(file_handler)
    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


app = typer.Typer(help="bidguard CLI")


@app.callback()
def main():
    _configure_logging()


def _run(action):
    """Run ``action(marketplace)`` against a fresh session."""

    async def go():
        settings = load_settings()
        credentials = load_credentials(settings)
        async with Marketplace(settings, credentials) as mp:
            return await action(mp)

    return asyncio.run(go())


@app.command()
def start():
    """Run the poller."""
    run()


@app.command()
def check():
    """List bids that would be cancelled, without touching them."""

    async def action(mp: Marketplace):
        return await mp.evaluation.blockable_bids()

    bids = _run(action)
    if not bids:
        print("No blockable bids.")
    for bid in bids:
        print(
            f"{bid.item_id} | {(bid.description or '')[:40]:40} | {bid.user_id} "
            f"| score={bid.feedback_score} | {bid.positive_feedback_percent}%"
        )


@app.command()
def blocked():
    """Show the current blocked bidder list."""

    async def action(mp: Marketplace):
        return await mp.actions.get_blocked_bidders()

    for user_id in sorted(_run(action)):
        print(user_id)


@app.command()
def block(user_id: Annotated[str, typer.Argument(help="eBay user id")]):
    """Add a bidder to the blocked bidder list."""

    async def action(mp: Marketplace):
        return await mp.actions.block_bidder(user_id)

    message = _run(action)
    record_action(ActionOutcome(action="block", user_id=user_id, message=message))
    print(message)


@app.command()
def unblock(user_id: Annotated[str, typer.Argument(help="eBay user id")]):
    """Remove a bidder from the blocked bidder list."""

    async def action(mp: Marketplace):
        return await mp.actions.unblock_bidder(user_id)

    message = _run(action)
    record_action(ActionOutcome(action="unblock", user_id=user_id, message=message))
    print(message)


@app.command()
def cancel(
    item_id: Annotated[str, typer.Argument(help="Item number")],
    user_id: Annotated[str, typer.Argument(help="Bidder to cancel")],
):
    """Cancel one bid."""

    async def action(mp: Marketplace):
        return await mp.actions.cancel_bid(item_id, user_id)

    message = _run(action)
    record_action(
        ActionOutcome(action="cancel", user_id=user_id, item_id=item_id, message=message)
    )
    print(message)


@app.command()
def whitelist(
    user_id: Annotated[str, typer.Argument(help="eBay user id")],
    remove: Annotated[
        bool, typer.Option("--remove", "-r", help="Take the user off the list.")
    ] = False,
):
    """Trust a bidder regardless of feedback."""
    wl = Whitelist(load_settings().whitelist_file)
    if remove:
        if not wl.remove(user_id):
            print(f"{user_id} was not whitelisted")
    else:
        wl.add(user_id)


@app.command()
def history(
    limit: Annotated[
        int, typer.Option("--limit", "-n", help="Number of rows to show.")
    ] = 20,
    user_id: Annotated[
        Optional[str], typer.Option("--user", "-u", help="Only this bidder.")
    ] = None,
):
    """Show recent console actions."""
    for row in recent_actions(limit=limit, user_id=user_id):
        print(
            f"{row.timestamp:%Y-%m-%d %H:%M:%S} | {row.action:7} | {row.user_id:20} "
            f"| {row.item_id or '-':14} | {row.message or ''}"
        )


if __name__ == "__main__":
    app()
