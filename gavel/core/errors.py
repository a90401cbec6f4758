"""
Error taxonomy for the marketplace.

Every error is recoverable and user-facing: the engine and the session
gate raise them synchronously and callers decide how to display them.
"""

from typing import Optional

from gavel.utils.formatting import format_price


class MarketError(Exception):
    """Base class for all user-facing marketplace errors."""


class NotFound(MarketError):
    """The referenced auction does not exist."""

    def __init__(self, auction_id: Optional[int] = None, message: str = "Auction not found"):
        super().__init__(message)
        self.auction_id = auction_id


class AuctionClosed(MarketError):
    """Bid on an auction that is no longer active."""

    def __init__(self, auction_id: Optional[int] = None):
        super().__init__("This auction has ended")
        self.auction_id = auction_id


class InvalidAmount(MarketError):
    """Bid amount is not a finite positive number."""

    def __init__(self, message: str = "Invalid bid amount"):
        super().__init__(message)


class BidTooLow(MarketError):
    """Bid does not strictly exceed the current price."""

    def __init__(self, current_price: float):
        super().__init__(f"Bid must be higher than {format_price(current_price)}")
        self.current_price = current_price


class InvalidEmail(MarketError):
    pass


class WeakPassword(MarketError):
    pass


class DuplicateEmail(MarketError):
    def __init__(self, email: str):
        super().__init__("Email already exists")
        self.email = email


class InvalidCredentials(MarketError):
    """Login failed. The message never says which half was wrong."""

    def __init__(self):
        super().__init__("Invalid email or password")


class ValidationError(MarketError):
    """A required auction creation field is missing or invalid."""


class NotAuthenticated(MarketError):
    def __init__(self, message: str = "Please login to place a bid"):
        super().__init__(message)
