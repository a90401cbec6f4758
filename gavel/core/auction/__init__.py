"""
Gavel Auction Module.

Implements the auction lifecycle:
- AuctionRepository: durable auction records and id allocation
- BiddingEngine: creation, bid validation, manual closing
- ExpirySweeper: periodic closing of expired auctions
"""

from gavel.core.auction.repository import AuctionRepository, AuctionTransaction
from gavel.core.auction.engine import BiddingEngine
from gavel.core.auction.sweeper import ExpirySweeper

__all__ = [
    "AuctionRepository",
    "AuctionTransaction",
    "BiddingEngine",
    "ExpirySweeper",
]
