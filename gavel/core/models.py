"""
Domain records for the marketplace: users, auctions and bids.

Records are plain dataclasses that serialize to the JSON documents kept
in the store. Field names on disk follow the layout of the original
browser application (camelCase, epoch-millisecond bid times) so that
existing stores stay readable.
"""

import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# Enums
# =============================================================================


class Role(str, Enum):
    ADMIN = "admin"
    STANDARD = "user"


class AuctionStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"

    @classmethod
    def parse(cls, value: str) -> "AuctionStatus":
        # Stores written by the browser app use "ended" for closed auctions
        if value == "ended":
            return cls.CLOSED
        return cls(value)


# =============================================================================
# Time helpers
# =============================================================================


def now_ms() -> int:
    return int(time.time() * 1000)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Attach the local timezone to naive datetimes and normalize to UTC."""
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored timestamp.

    Accepts datetimes, ISO-8601 strings (a trailing 'Z' included) and
    epoch milliseconds. Empty values mean "no timestamp".
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_aware(datetime.fromisoformat(text))


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# =============================================================================
# Users
# =============================================================================


@dataclass
class User:
    """
    A registered account.

    Attributes:
        id: Stable numeric identifier
        email: Lower-cased email, unique case-insensitively
        password: Secret compared verbatim on login
        role: ADMIN or STANDARD
    """
    id: int
    email: str
    password: str
    role: Role = Role.STANDARD

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "password": self.password,
            "role": self.role.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=int(data["id"]),
            email=str(data["email"]).lower(),
            password=data.get("password") or "",
            role=Role(data.get("role", Role.STANDARD.value)),
        )


@dataclass
class SessionUser:
    """The persisted session record: who is acting. Never holds the secret."""
    id: int
    email: str
    role: Role = Role.STANDARD

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "SessionUser":
        return cls(id=user.id, email=user.email, role=user.role)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "role": self.role.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionUser":
        return cls(
            id=int(data["id"]),
            email=str(data["email"]).lower(),
            role=Role(data.get("role", Role.STANDARD.value)),
        )


# =============================================================================
# Bids and Auctions
# =============================================================================


@dataclass(frozen=True)
class Bid:
    """A single accepted bid. Immutable once created."""
    by: str
    amount: Union[int, float]
    time: int = field(default_factory=now_ms)

    @property
    def placed_at(self) -> datetime:
        return datetime.fromtimestamp(self.time / 1000, tz=timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        return {"by": self.by, "amount": self.amount, "time": self.time}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bid":
        return cls(by=data["by"], amount=data["amount"], time=int(data["time"]))


@dataclass
class Auction:
    """
    An auction record as owned by the repository.

    current_price only grows, and equals starting_price iff no bids
    exist. status moves from ACTIVE to CLOSED once and never back.
    """
    id: int
    title: str
    description: str = ""
    image: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    starting_price: Union[int, float] = 0
    current_price: Union[int, float] = 0
    highest_bidder: Optional[str] = None
    bids: List[Bid] = field(default_factory=list)
    status: AuctionStatus = AuctionStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == AuctionStatus.ACTIVE

    def is_expired(self, now: datetime) -> bool:
        """True if the auction has an end time strictly before now."""
        return self.end_date is not None and self.end_date < now

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "startDate": format_timestamp(self.start_date),
            "endDate": format_timestamp(self.end_date),
            "startingPrice": self.starting_price,
            "currentPrice": self.current_price,
            "highestBidder": self.highest_bidder,
            "bids": [b.to_dict() for b in self.bids],
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Auction":
        auction_id = int(data["id"])
        start = parse_timestamp(data.get("startDate")) or parse_timestamp(auction_id)
        return cls(
            id=auction_id,
            title=data.get("title") or "",
            description=data.get("description") or "",
            image=data.get("image") or None,
            start_date=start,
            end_date=parse_timestamp(data.get("endDate")),
            starting_price=data.get("startingPrice", 0),
            current_price=data.get("currentPrice", data.get("startingPrice", 0)),
            highest_bidder=data.get("highestBidder"),
            bids=[Bid.from_dict(b) for b in data.get("bids") or []],
            status=AuctionStatus.parse(data.get("status", "active")),
        )


@dataclass
class BidderStats:
    """Dashboard figures for a single bidder."""
    total_bids: int = 0
    active_auctions: int = 0
    highest_bid: Optional[Union[int, float]] = None


# =============================================================================
# Creation input
# =============================================================================


class AuctionSpec(BaseModel):
    """
    Fields supplied when creating an auction.

    Accepts both snake_case and the camelCase keys of the stored layout
    (startingPrice, endDate, ...).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    title: str = ""
    description: str = ""
    image: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    starting_price: float = 0

    @field_validator("image", mode="before")
    @classmethod
    def _blank_image(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _blank_date(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("start_date", "end_date")
    @classmethod
    def _aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(value) if value is not None else None

    @field_validator("starting_price")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("starting price must be a finite number")
        return value
