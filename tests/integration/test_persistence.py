import json
from datetime import datetime, timedelta, timezone

import pytest

from gavel.core.config import MarketConfig
from gavel.core.market import Marketplace
from gavel.core.models import AuctionStatus
from gavel.core.storage import AUCTIONS_KEY, USERS_KEY, StorageManager


@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary directory for marketplace data."""
    data_dir = tmp_path / "market_data"
    data_dir.mkdir()
    return data_dir


def test_state_survives_restart(temp_data_dir):
    """Users, auctions, bids and the session are preserved across restarts."""
    config = MarketConfig(data_dir=temp_data_dir)
    end = datetime.now(timezone.utc) + timedelta(hours=1)

    # 1. First process
    market_a = Marketplace.open(config)
    market_a.register("a@b.com", "secret1")
    auction = market_a.create_auction({"title": "Laptop", "end_date": end, "starting_price": 1000})
    market_a.place_bid(auction.id, 1500)
    market_a.close()
    del market_a

    # 2. Second process, same store
    market_b = Marketplace.open(config)
    assert market_b.current_user().email == "a@b.com"

    stored = market_b.get_auction(auction.id)
    assert stored.current_price == 1500
    assert stored.highest_bidder == "a@b.com"
    assert [b.amount for b in stored.bids] == [1500]

    # 3. Continue bidding
    market_b.logout()
    market_b.login("student@abu.edu", "student123")
    market_b.place_bid(auction.id, 2000)
    market_b.end_auction(auction.id)
    market_b.close()

    market_c = Marketplace.open(config)
    final = market_c.get_auction(auction.id)
    assert final.current_price == 2000
    assert final.status == AuctionStatus.CLOSED
    assert market_c.current_user().email == "student@abu.edu"


def test_reads_browser_store_layout(temp_data_dir):
    """A store written by the browser application is usable as-is."""
    storage = StorageManager(temp_data_dir)
    storage.adapter.put(USERS_KEY, json.dumps([
        {"id": 1, "email": "admin@123", "password": "admin123", "role": "admin"},
        {"id": 1700000000001, "email": "bob@abu.edu", "password": "hunter22", "role": "user"},
    ]))
    storage.adapter.put(AUCTIONS_KEY, json.dumps([
        {
            "id": 1700000000500,
            "title": "Bike",
            "description": "",
            "image": "",
            "startDate": "2023-11-14T22:13:20.000Z",
            "endDate": "2099-01-01T10:00",
            "startingPrice": 80000,
            "currentPrice": 85000,
            "highestBidder": "bob@abu.edu",
            "bids": [{"by": "bob@abu.edu", "amount": 85000, "time": 1700000001000}],
            "status": "active",
        },
        {
            "id": 1700000000400,
            "title": "Old lamp",
            "startingPrice": 10,
            "currentPrice": 10,
            "highestBidder": None,
            "bids": [],
            "status": "ended",
        },
    ]))
    storage.close()

    market = Marketplace.open(MarketConfig(data_dir=temp_data_dir))
    assert market.login("ADMIN@123", "admin123").is_admin
    assert [a.title for a in market.list_auctions(status="closed")] == ["Old lamp"]

    bike = market.get_auction(1700000000500)
    assert bike.current_price == 85000
    market.place_bid(bike.id, 90000)

    # New auctions get ids above every existing one
    created = market.create_auction({"title": "New", "end_date": "2099-01-01T10:00", "starting_price": 1})
    assert created.id > 1700000000500
    assert market.list_auctions()[0].id == created.id


def test_sweep_persists(temp_data_dir):
    config = MarketConfig(data_dir=temp_data_dir)
    market = Marketplace.open(config)
    past = datetime.now(timezone.utc) - timedelta(seconds=1)
    auction = market.create_auction({"title": "Expired", "end_date": past, "starting_price": 5})

    assert market.sweeper.run_once() == [auction.id]
    market.close()

    reopened = Marketplace.open(config)
    assert reopened.get_auction(auction.id).status == AuctionStatus.CLOSED
