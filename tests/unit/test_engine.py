"""
Tests for the Bidding Engine.

Tests cover:
1. Auction creation and validation
2. Bid precondition order
3. Price monotonicity
4. Manual closing
5. Bid history and bidder statistics
"""

import math
from datetime import datetime, timedelta, timezone

import pytest

from gavel.core.auction import AuctionRepository, BiddingEngine
from gavel.core.errors import (
    AuctionClosed,
    BidTooLow,
    InvalidAmount,
    NotFound,
    ValidationError,
)
from gavel.core.models import AuctionSpec, AuctionStatus
from gavel.core.storage import StorageManager


# =============================================================================
# Fixtures
# =============================================================================


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repository(tmp_path):
    return AuctionRepository(StorageManager(tmp_path))


@pytest.fixture
def engine(repository):
    return BiddingEngine(repository, clock=lambda: NOW)


@pytest.fixture
def auction(engine):
    return engine.create_auction(AuctionSpec(
        title="Laptop",
        description="Core i5, 8GB RAM",
        end_date=NOW + timedelta(hours=1),
        starting_price=1000,
    ))


# =============================================================================
# Creation Tests
# =============================================================================


class TestCreateAuction:
    """Tests for auction creation."""

    def test_create_initial_state(self, auction):
        """New auctions start active at the starting price with no bids."""
        assert auction.status == AuctionStatus.ACTIVE
        assert auction.current_price == 1000
        assert auction.starting_price == 1000
        assert auction.highest_bidder is None
        assert auction.bids == []

    def test_start_date_defaults_to_now(self, auction):
        assert auction.start_date == NOW

    def test_create_from_mapping(self, engine):
        """Camel-case keys of the stored layout are accepted."""
        auction = engine.create_auction({
            "title": "Bike",
            "endDate": "2026-03-02T10:00:00+00:00",
            "startingPrice": "80000",
        })
        assert auction.current_price == 80000
        assert auction.end_date == datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)

    def test_missing_title(self, engine):
        with pytest.raises(ValidationError, match="title"):
            engine.create_auction(AuctionSpec(title="  ", end_date=NOW, starting_price=10))

    def test_missing_end_date(self, engine):
        with pytest.raises(ValidationError, match="end time"):
            engine.create_auction(AuctionSpec(title="Bike", starting_price=10))

    def test_end_date_optional_when_not_required(self, repository):
        """Without the form rule, an auction may have no end time."""
        engine = BiddingEngine(repository, require_end_date=False, clock=lambda: NOW)
        auction = engine.create_auction(AuctionSpec(title="Bike", starting_price=10))
        assert auction.end_date is None

    @pytest.mark.parametrize("price", [0, -5])
    def test_non_positive_price(self, engine, price):
        with pytest.raises(ValidationError, match="greater than 0"):
            engine.create_auction(AuctionSpec(title="Bike", end_date=NOW, starting_price=price))

    def test_unparseable_price(self, engine):
        with pytest.raises(ValidationError):
            engine.create_auction({"title": "Bike", "endDate": NOW, "startingPrice": "lots"})

    def test_listed_newest_first(self, engine, repository):
        first = engine.create_auction(AuctionSpec(title="A", end_date=NOW, starting_price=1))
        second = engine.create_auction(AuctionSpec(title="B", end_date=NOW, starting_price=1))
        assert [a.id for a in repository.list()] == [second.id, first.id]


# =============================================================================
# Bidding Tests
# =============================================================================


class TestPlaceBid:
    """Tests for bid validation and application."""

    def test_bidding_scenario(self, engine, repository, auction):
        """Equal bids are rejected, strictly higher bids win."""
        with pytest.raises(BidTooLow):
            engine.place_bid(auction.id, "alice@abu.edu", 1000)

        engine.place_bid(auction.id, "alice@abu.edu", 1001)
        stored = repository.get(auction.id)
        assert stored.current_price == 1001
        assert stored.highest_bidder == "alice@abu.edu"

        with pytest.raises(BidTooLow):
            engine.place_bid(auction.id, "bob@abu.edu", 1001)

        engine.place_bid(auction.id, "bob@abu.edu", 2000)
        stored = repository.get(auction.id)
        assert stored.current_price == 2000
        assert stored.highest_bidder == "bob@abu.edu"
        assert [b.amount for b in stored.bids] == [1001, 2000]

    def test_bid_too_low_reports_price(self, engine, auction):
        with pytest.raises(BidTooLow) as excinfo:
            engine.place_bid(auction.id, "alice@abu.edu", 999)
        assert excinfo.value.current_price == 1000
        assert "1,000" in str(excinfo.value)

    def test_rejected_bid_does_not_mutate(self, engine, repository, auction):
        before = repository.get(auction.id)
        with pytest.raises(BidTooLow):
            engine.place_bid(auction.id, "alice@abu.edu", 500)
        assert repository.get(auction.id) == before

    def test_bid_records_time_and_bidder(self, engine, auction):
        bid = engine.place_bid(auction.id, "alice@abu.edu", 1500)
        assert bid.by == "alice@abu.edu"
        assert bid.amount == 1500
        assert bid.placed_at == NOW

    def test_unknown_auction(self, engine):
        with pytest.raises(NotFound):
            engine.place_bid(12345, "alice@abu.edu", 10)

    def test_closed_auction_rejects_any_amount(self, engine, auction):
        engine.end_auction(auction.id)
        with pytest.raises(AuctionClosed):
            engine.place_bid(auction.id, "alice@abu.edu", 10**9)

    def test_closed_checked_before_amount(self, engine, auction):
        """A closed auction reports AuctionClosed even for a bad amount."""
        engine.end_auction(auction.id)
        with pytest.raises(AuctionClosed):
            engine.place_bid(auction.id, "alice@abu.edu", "abc")

    @pytest.mark.parametrize("amount", [0, -1, "abc", math.nan, math.inf, None, True])
    def test_invalid_amount(self, engine, auction, amount):
        with pytest.raises(InvalidAmount):
            engine.place_bid(auction.id, "alice@abu.edu", amount)

    def test_numeric_string_amount(self, engine, auction):
        bid = engine.place_bid(auction.id, "alice@abu.edu", "1500.50")
        assert bid.amount == 1500.5

    def test_price_tracks_maximum(self, engine, repository, auction):
        """Current price always equals the highest accepted bid."""
        accepted = []
        for amount in [1200, 1100, 1300, 1300, 5000, 4999]:
            try:
                engine.place_bid(auction.id, "alice@abu.edu", amount)
                accepted.append(amount)
            except BidTooLow:
                pass
            assert repository.get(auction.id).current_price == max([1000] + accepted)
        assert accepted == [1200, 1300, 5000]


# =============================================================================
# Closing Tests
# =============================================================================


class TestEndAuction:
    """Tests for manual closing."""

    def test_end_auction(self, engine, repository, auction):
        assert engine.end_auction(auction.id)
        assert repository.get(auction.id).status == AuctionStatus.CLOSED

    def test_end_unknown_auction(self, engine):
        assert engine.end_auction(999) is False

    def test_end_twice_stays_closed(self, engine, repository, auction):
        assert engine.end_auction(auction.id)
        assert engine.end_auction(auction.id)
        assert repository.get(auction.id).status == AuctionStatus.CLOSED


# =============================================================================
# Reporting Tests
# =============================================================================


class TestReporting:
    """Tests for bid history and statistics."""

    def test_history_highest_first(self, engine, auction):
        engine.place_bid(auction.id, "alice@abu.edu", 1100)
        engine.place_bid(auction.id, "bob@abu.edu", 1500)
        history = engine.bid_history(auction.id)
        assert [b.amount for b in history] == [1500, 1100]

    def test_history_unknown_auction(self, engine):
        with pytest.raises(NotFound):
            engine.bid_history(1)

    def test_bidder_stats(self, engine, auction):
        other = engine.create_auction(AuctionSpec(title="Bike", end_date=NOW, starting_price=10))
        engine.place_bid(auction.id, "alice@abu.edu", 1100)
        engine.place_bid(other.id, "alice@abu.edu", 20)
        engine.place_bid(auction.id, "bob@abu.edu", 1500)
        engine.end_auction(other.id)

        stats = engine.bidder_stats("alice@abu.edu")
        assert stats.total_bids == 2
        assert stats.active_auctions == 1
        assert stats.highest_bid == 1100

    def test_bidder_stats_without_bids(self, engine, auction):
        stats = engine.bidder_stats("nobody@abu.edu")
        assert stats.total_bids == 0
        assert stats.highest_bid is None

    def test_stats(self, engine, auction):
        engine.place_bid(auction.id, "alice@abu.edu", 1100)
        assert engine.stats() == {"auctions": 1, "active": 1, "closed": 0, "bids": 1}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
