from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Protocol


@dataclass(frozen=True)
class Credentials:
    token: str
    userid: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(userid={self.userid!r})"


@dataclass(frozen=True)
class BidderStatus:
    item_id: str
    description: Optional[str]
    user_id: Optional[str]
    feedback_score: Optional[int] = None
    positive_feedback_percent: Optional[float] = None


@dataclass(frozen=True)
class ActionOutcome:
    """What the console said after a cancel/block submission (its <h1>)."""

    action: str
    user_id: str
    message: Optional[str]
    item_id: Optional[str] = None
    description: Optional[str] = None


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


# --------------------------------------------------------------------------- #
#  Errors
# --------------------------------------------------------------------------- #


class MarketplaceError(RuntimeError):
    """Base for every failure talking to the trading API or the console."""

    def details(self) -> dict[str, Any]:
        return {}


class ApiCallFailed(MarketplaceError):
    """Trading API answered with an Ack other than Success."""

    def __init__(self, api_name: str, request_body: str, message: Optional[str]):
        self.api_name = api_name
        self.request_body = request_body
        self.message = message
        super().__init__(f"eBay API request {api_name} failed: {message}")

    def details(self) -> dict[str, Any]:
        return {
            "api_name": self.api_name,
            "request_body": self.request_body,
            "message": self.message,
        }


class UnexpectedStatus(MarketplaceError):
    """Console answered without a redirect but with a non-200 status."""

    def __init__(self, status: int, headers: dict[str, str], body: str):
        self.status = status
        self.headers = headers
        self.body = body
        super().__init__(f"Unexpected status response from eBay: {status}")

    def details(self) -> dict[str, Any]:
        return {"status": self.status, "headers": self.headers, "body": self.body}


class UnexpectedRedirect(MarketplaceError):
    """Console redirected somewhere other than the sign-in page."""

    prefix = "Unexpected redirect from eBay"

    def __init__(self, trace_redirects: list[str]):
        self.trace_redirects = list(trace_redirects)
        super().__init__(f"{self.prefix}: {' -> '.join(self.trace_redirects)}")

    def details(self) -> dict[str, Any]:
        return {"trace_redirects": self.trace_redirects}


class UnexpectedRedirectAfterLogin(UnexpectedRedirect):
    """Freshly established session was rejected again; never retried."""

    prefix = "Unexpected redirect from eBay after allegedly successful login"


class LoginFailed(MarketplaceError):
    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Could not log in to eBay (status {status})")

    def details(self) -> dict[str, Any]:
        return {"status": self.status, "body": self.body}


class UnexpectedRedirectTarget(MarketplaceError):
    """Login succeeded but sent us somewhere we did not ask for."""

    def __init__(self, expected: str, actual: Optional[str]):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"eBay redirected us to unexpected URL after login: {actual} "
            f"(expected {expected})"
        )

    def details(self) -> dict[str, Any]:
        return {"expected": self.expected, "actual": self.actual}


class PageStructureError(MarketplaceError):
    """Raised when a console page lacks an element we rely on."""


class BidderParseError(MarketplaceError):
    """Raised when numeric bidder data in a GetItem response is malformed."""
