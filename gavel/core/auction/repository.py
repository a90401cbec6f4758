"""
Auction Repository - Durable mapping from auction id to auction record.

Every mutation is a read-modify-write of the whole `auctions`
document performed under the store write lock, either through
`replace`/`replace_all` or inside a `transaction()` block.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from gavel.core.errors import NotFound
from gavel.core.models import Auction, AuctionSpec, AuctionStatus, now_ms, utcnow
from gavel.core.storage import StorageManager
from gavel.utils.logger import get_logger
from gavel.utils.validation import parse_amount

logger = get_logger("auction.repository")


class AuctionTransaction:
    """
    Working copy of the auction set inside a locked unit of work.

    Changes are written back only if the block marks the copy dirty
    and exits without raising.
    """

    def __init__(self, auctions: List[Auction]):
        self.auctions = auctions
        self.dirty = False

    def find(self, auction_id: int) -> Optional[Auction]:
        for auction in self.auctions:
            if auction.id == auction_id:
                return auction
        return None

    def mark_dirty(self) -> None:
        self.dirty = True


class AuctionRepository:
    """Owns the auction collection and allocates auction ids."""

    def __init__(self, storage: StorageManager):
        self.storage = storage
        self._last_id = 0

    # =========================================================================
    # Reads
    # =========================================================================

    def list(self) -> List[Auction]:
        """All auctions, most recently created first."""
        return sorted(self.storage.load_auctions(), key=lambda a: a.id, reverse=True)

    def get(self, auction_id: int) -> Optional[Auction]:
        for auction in self.storage.load_auctions():
            if auction.id == auction_id:
                return auction
        return None

    # =========================================================================
    # Writes
    # =========================================================================

    @contextmanager
    def transaction(self) -> Iterator[AuctionTransaction]:
        """Take the store write lock and yield the full auction set for mutation."""
        with self.storage.locked():
            tx = AuctionTransaction(self.storage.load_auctions())
            yield tx
            if tx.dirty:
                self.storage.save_auctions(tx.auctions)

    def create(self, spec: AuctionSpec, now: Optional[datetime] = None) -> Auction:
        """
        Store a new active auction with no bids.

        Args:
            spec: Creation fields
            now: Creation time, used when the spec has no start date

        Returns:
            The stored auction
        """
        price = parse_amount(spec.starting_price) or 0
        with self.transaction() as tx:
            auction = Auction(
                id=self._allocate_id(tx.auctions),
                title=spec.title,
                description=spec.description,
                image=spec.image,
                start_date=spec.start_date or now or utcnow(),
                end_date=spec.end_date,
                starting_price=price,
                current_price=price,
                highest_bidder=None,
                bids=[],
                status=AuctionStatus.ACTIVE,
            )
            tx.auctions.insert(0, auction)
            tx.mark_dirty()

        logger.info(f"Auction created: id={auction.id}, title={auction.title!r}, price={price}")
        return auction

    def replace(self, auction: Auction) -> None:
        """
        Overwrite the stored record with the same id.

        Raises:
            NotFound: if no such auction is stored
        """
        with self.transaction() as tx:
            for i, existing in enumerate(tx.auctions):
                if existing.id == auction.id:
                    tx.auctions[i] = auction
                    tx.mark_dirty()
                    break
            else:
                raise NotFound(auction.id)

    def replace_all(self, auctions: List[Auction]) -> None:
        """Write the whole collection in one store write."""
        with self.storage.locked():
            self.storage.save_auctions(auctions)

    def _allocate_id(self, existing: List[Auction]) -> int:
        # Millisecond timestamps, bumped past the last id on collision
        last = max([self._last_id] + [a.id for a in existing])
        self._last_id = max(now_ms(), last + 1)
        return self._last_id
