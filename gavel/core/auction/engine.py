"""
Bidding Engine - Auction lifecycle and bid validation.

Handles:
- Auction creation with required-field validation
- Bid validation and application
- Manual closing by an administrator
- Bid history and per-bidder statistics

Each operation reads the auction set, mutates it, and writes it back
as one unit under the repository lock, so two racing bids on the same
auction can never both commit at the same price.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Union

from pydantic import ValidationError as PydanticValidationError

from gavel.core.auction.repository import AuctionRepository
from gavel.core.errors import (
    AuctionClosed,
    BidTooLow,
    InvalidAmount,
    NotFound,
    ValidationError,
)
from gavel.core.models import (
    Auction,
    AuctionSpec,
    AuctionStatus,
    Bid,
    BidderStats,
    utcnow,
)
from gavel.utils.logger import get_logger
from gavel.utils.validation import parse_amount

logger = get_logger("auction")


class BiddingEngine:
    """
    Validates and applies auction operations against the repository.

    The engine never keeps its own copy of an auction; it works on the
    repository's transaction copy and lets the repository persist it.
    """

    def __init__(
        self,
        repository: AuctionRepository,
        require_end_date: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.require_end_date = require_end_date
        self.clock = clock

    # =========================================================================
    # Creation
    # =========================================================================

    def create_auction(self, spec: Union[AuctionSpec, Mapping[str, Any]]) -> Auction:
        """
        Create a new active auction.

        Args:
            spec: AuctionSpec or a mapping of its fields (snake_case or camelCase)

        Returns:
            The stored auction

        Raises:
            ValidationError: missing title or end time, or non-positive price
        """
        if not isinstance(spec, AuctionSpec):
            try:
                spec = AuctionSpec.model_validate(dict(spec))
            except PydanticValidationError as e:
                field = ".".join(str(p) for p in e.errors()[0]["loc"])
                raise ValidationError(f"Invalid value for {field}") from e

        if not spec.title:
            raise ValidationError("Please enter a title")
        if self.require_end_date and spec.end_date is None:
            raise ValidationError("Please set an end time")
        if spec.starting_price <= 0:
            raise ValidationError("Starting price must be greater than 0")

        return self.repository.create(spec, now=self.clock())

    # =========================================================================
    # Bidding
    # =========================================================================

    def place_bid(self, auction_id: int, bidder_email: str, amount: Any) -> Bid:
        """
        Place a bid on an auction.

        Checks, in order: the auction exists, it is active, the amount
        is a finite positive number, and it strictly exceeds the
        current price.

        Returns:
            The accepted bid

        Raises:
            NotFound, AuctionClosed, InvalidAmount, BidTooLow
        """
        with self.repository.transaction() as tx:
            auction = tx.find(auction_id)
            if auction is None:
                raise NotFound(auction_id)

            if auction.status != AuctionStatus.ACTIVE:
                raise AuctionClosed(auction_id)

            value = parse_amount(amount)
            if value is None or value <= 0:
                raise InvalidAmount()

            if value <= auction.current_price:
                raise BidTooLow(auction.current_price)

            bid = Bid(by=bidder_email, amount=value, time=int(self.clock().timestamp() * 1000))
            auction.bids.append(bid)
            auction.current_price = value
            auction.highest_bidder = bidder_email
            tx.mark_dirty()

        logger.debug(f"Bid accepted: auction={auction_id}, by={bidder_email}, amount={value}")
        return bid

    # =========================================================================
    # Closing
    # =========================================================================

    def end_auction(self, auction_id: int) -> bool:
        """
        Close an auction by hand.

        Returns:
            False if the auction does not exist, True otherwise
        """
        with self.repository.transaction() as tx:
            auction = tx.find(auction_id)
            if auction is None:
                logger.warning(f"Cannot end auction {auction_id}: not found")
                return False

            if auction.status == AuctionStatus.ACTIVE:
                auction.status = AuctionStatus.CLOSED
                tx.mark_dirty()
                logger.info(f"Auction ended by administrator: id={auction_id}")

        return True

    # =========================================================================
    # Reporting
    # =========================================================================

    def bid_history(self, auction_id: int) -> List[Bid]:
        """Bids on an auction, highest amount first."""
        auction = self.repository.get(auction_id)
        if auction is None:
            raise NotFound(auction_id)
        return sorted(auction.bids, key=lambda b: b.amount, reverse=True)

    def bidder_stats(self, email: str) -> BidderStats:
        """Totals shown on a bidder's dashboard."""
        auctions = self.repository.list()
        own = [b for a in auctions for b in a.bids if b.by == email]
        return BidderStats(
            total_bids=len(own),
            active_auctions=sum(1 for a in auctions if a.is_active),
            highest_bid=max((b.amount for b in own), default=None),
        )

    def stats(self) -> Dict[str, int]:
        """Get auction statistics."""
        auctions = self.repository.list()
        return {
            "auctions": len(auctions),
            "active": sum(1 for a in auctions if a.is_active),
            "closed": sum(1 for a in auctions if not a.is_active),
            "bids": sum(len(a.bids) for a in auctions),
        }
