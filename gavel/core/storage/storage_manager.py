import json
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional

from gavel.core.models import Auction, SessionUser, User
from gavel.core.storage.sqlite_adapter import SQLiteAdapter
from gavel.utils.logger import get_logger

logger = get_logger("storage.manager")

# Document keys, shared with stores written by the browser application
USERS_KEY = "users"
AUCTIONS_KEY = "auctions"
CURRENT_USER_KEY = "currentUser"


class StorageManager:
    """
    Manages the persistent marketplace documents.

    Coordinates data persistence using the SQLite adapter.
    Handles:
    - users: sequence of User records
    - auctions: sequence of Auction records, newest first
    - currentUser: the session record, or absent

    Every read-modify-write cycle runs inside `locked()`, which takes
    the in-process lock and then the database write lock, so writers
    serialize across threads and across processes sharing the file.
    """

    def __init__(self, data_dir: Path, db_name: str = "market.db"):
        self.data_dir = data_dir
        self.db_path = data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)
        self.lock = threading.RLock()

        logger.info(f"StorageManager initialized at {self.db_path}")

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Serialize a read-modify-write cycle against every other writer."""
        with self.lock, self.adapter.write_transaction():
            yield

    # =========================================================================
    # Raw documents
    # =========================================================================

    def get_document(self, key: str) -> Any:
        """Load a JSON document. Unreadable documents read as absent."""
        raw = self.adapter.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring corrupt document '{key}'")
            return None

    def set_document(self, key: str, value: Any):
        self.adapter.put(key, json.dumps(value))

    def has_document(self, key: str) -> bool:
        return self.adapter.get(key) is not None

    # =========================================================================
    # Users
    # =========================================================================

    def load_users(self) -> List[User]:
        return [User.from_dict(d) for d in self.get_document(USERS_KEY) or []]

    def save_users(self, users: List[User]):
        self.set_document(USERS_KEY, [u.to_dict() for u in users])

    # =========================================================================
    # Auctions
    # =========================================================================

    def load_auctions(self) -> List[Auction]:
        return [Auction.from_dict(d) for d in self.get_document(AUCTIONS_KEY) or []]

    def save_auctions(self, auctions: List[Auction]):
        self.set_document(AUCTIONS_KEY, [a.to_dict() for a in auctions])

    # =========================================================================
    # Session
    # =========================================================================

    def get_current_user(self) -> Optional[SessionUser]:
        data = self.get_document(CURRENT_USER_KEY)
        return SessionUser.from_dict(data) if data else None

    def set_current_user(self, user: Optional[SessionUser]):
        self.set_document(CURRENT_USER_KEY, user.to_dict() if user else None)

    # =========================================================================
    # Maintenance
    # =========================================================================

    def clear(self):
        """Drop users, auctions and the session."""
        with self.locked():
            self.adapter.clear()

    def close(self):
        self.adapter.close()
