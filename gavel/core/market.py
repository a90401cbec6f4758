"""
Marketplace - The operations offered to the presentation layer.

Wires the storage, credential store, repository, bidding engine,
sweeper and session gate together, and notifies subscribers after
every sweeper tick and every successful mutating call so they can
re-render.
"""

from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from gavel.core.auction import AuctionRepository, BiddingEngine, ExpirySweeper
from gavel.core.config import MarketConfig
from gavel.core.errors import ValidationError
from gavel.core.models import (
    Auction,
    AuctionSpec,
    AuctionStatus,
    Bid,
    BidderStats,
    SessionUser,
    User,
    utcnow,
)
from gavel.core.registry import CredentialStore
from gavel.core.session import SessionGate
from gavel.core.storage import StorageManager
from gavel.utils.logger import get_logger

logger = get_logger("market")

Subscriber = Callable[[str], None]

# Demo listings: (title, description, image, hours open, starting price)
DEMO_AUCTIONS = [
    ("Laptop - Core i5 (8GB RAM)",
     "Well-maintained laptop, excellent condition, original charger included",
     "https://picsum.photos/seed/laptop/400/250", 1.0, 250000),
    ("Mountain Bike",
     "Professional grade mountain bike, recently serviced",
     "https://picsum.photos/seed/bike/400/250", 2.0, 80000),
    ("Complete Textbook Collection",
     "20+ engineering and science textbooks for final year students",
     "https://picsum.photos/seed/books/400/250", 1.5, 15000),
]


def filter_auctions(
    auctions: Iterable[Auction],
    status: Optional[Union[AuctionStatus, str]] = None,
    query: Optional[str] = None,
) -> List[Auction]:
    """
    Filter a listing.

    Args:
        auctions: Auctions in display order
        status: Exact status match; None or "all" keeps every status
        query: Case-insensitive substring of title or description

    Returns:
        Matching auctions, order preserved

    Raises:
        ValidationError: if status names no known status
    """
    if isinstance(status, str):
        try:
            status = None if status == "all" else AuctionStatus.parse(status)
        except ValueError as e:
            raise ValidationError(f"Unknown auction status: {status!r}") from e
    needle = (query or "").strip().lower()

    result = []
    for auction in auctions:
        if status is not None and auction.status != status:
            continue
        if needle and needle not in auction.title.lower() and needle not in auction.description.lower():
            continue
        result.append(auction)
    return result


class Marketplace:
    """
    Facade over the auction core.

    Role checks are left to the caller: the core does not stop a
    standard user from creating or ending auctions.
    """

    def __init__(
        self,
        storage: StorageManager,
        credentials: CredentialStore,
        repository: AuctionRepository,
        engine: BiddingEngine,
        sweeper: ExpirySweeper,
        session: SessionGate,
    ):
        self.storage = storage
        self.credentials = credentials
        self.repository = repository
        self.engine = engine
        self.sweeper = sweeper
        self.session = session
        self._subscribers: List[Subscriber] = []

        self.sweeper.add_listener(lambda closed: self._notify("tick"))

    @classmethod
    def open(
        cls,
        config: Optional[MarketConfig] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> "Marketplace":
        """Build the whole component graph from a configuration."""
        config = config or MarketConfig()
        storage = StorageManager(config.data_dir, config.db_name)
        credentials = CredentialStore(storage)
        if config.seed_users:
            credentials.seed_if_empty()

        repository = AuctionRepository(storage)
        return cls(
            storage=storage,
            credentials=credentials,
            repository=repository,
            engine=BiddingEngine(repository, require_end_date=config.require_end_date, clock=clock),
            sweeper=ExpirySweeper(repository, interval=config.sweep_interval, clock=clock),
            session=SessionGate(credentials, storage, min_password_length=config.min_password_length),
        )

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, callback: Subscriber) -> None:
        """Call `callback(event)` after each tick and each successful change."""
        self._subscribers.append(callback)

    def _notify(self, event: str) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Subscriber failed on {event!r}")

    # =========================================================================
    # Identity
    # =========================================================================

    def register(self, email: str, secret: str) -> User:
        user = self.session.register(email, secret)
        self._notify("register")
        return user

    def login(self, email: str, secret: str) -> User:
        user = self.session.login(email, secret)
        self._notify("login")
        return user

    def logout(self) -> None:
        self.session.logout()
        self._notify("logout")

    def current_user(self) -> Optional[SessionUser]:
        return self.session.current_user()

    # =========================================================================
    # Auctions
    # =========================================================================

    def list_auctions(
        self,
        status: Optional[Union[AuctionStatus, str]] = None,
        query: Optional[str] = None,
    ) -> List[Auction]:
        return filter_auctions(self.repository.list(), status=status, query=query)

    def get_auction(self, auction_id: int) -> Optional[Auction]:
        return self.repository.get(auction_id)

    def create_auction(self, spec: Union[AuctionSpec, Mapping[str, Any]]) -> Auction:
        auction = self.engine.create_auction(spec)
        self._notify("auction_created")
        return auction

    def place_bid(self, auction_id: int, amount: Any) -> Bid:
        """Bid as the logged-in user."""
        user = self.session.require_user()
        bid = self.engine.place_bid(auction_id, user.email, amount)
        self._notify("bid_placed")
        return bid

    def end_auction(self, auction_id: int) -> bool:
        ended = self.engine.end_auction(auction_id)
        if ended:
            self._notify("auction_ended")
        return ended

    def bid_history(self, auction_id: int) -> List[Bid]:
        return self.engine.bid_history(auction_id)

    def my_stats(self) -> BidderStats:
        return self.engine.bidder_stats(self.session.require_user().email)

    def seed_demo(self) -> List[Auction]:
        """Create the three demo listings."""
        now = self.engine.clock()
        created = []
        for title, description, image, hours, price in DEMO_AUCTIONS:
            created.append(self.engine.create_auction(AuctionSpec(
                title=title,
                description=description,
                image=image,
                start_date=now,
                end_date=now + timedelta(hours=hours),
                starting_price=price,
            )))
        self._notify("auction_created")
        return created

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        await self.sweeper.start()

    async def stop(self) -> None:
        await self.sweeper.stop()

    def close(self) -> None:
        self.storage.close()
