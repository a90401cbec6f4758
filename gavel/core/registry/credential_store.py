"""
Credential Store - User records for the marketplace.

This module provides:
- Lookup by email (case-insensitive)
- Insertion with duplicate detection
- Credential verification
- Default account seeding for an empty store

Secrets are compared verbatim. The comparison lives in a single
method so it can be replaced by a salted-hash check without
touching callers.
"""

from typing import List, Optional, Tuple

from gavel.core.errors import DuplicateEmail
from gavel.core.models import Role, User, now_ms
from gavel.core.storage import AUCTIONS_KEY, StorageManager
from gavel.utils.logger import get_logger

logger = get_logger("registry")


# =============================================================================
# Constants
# =============================================================================

# Accounts inserted into an empty store: (email, password, role)
DEFAULT_USERS: List[Tuple[str, str, Role]] = [
    ("admin@abu.edu", "admin123", Role.ADMIN),
    ("student@abu.edu", "student123", Role.STANDARD),
]


# =============================================================================
# Credential Store
# =============================================================================


class CredentialStore:
    """
    Registry of user accounts.

    Owns the `users` document exclusively; every write is a full
    read-modify-write under the storage lock.
    """

    def __init__(self, storage: StorageManager):
        self.storage = storage

    # =========================================================================
    # Lookup
    # =========================================================================

    def all(self) -> List[User]:
        return self.storage.load_users()

    def find_by_email(self, email: str) -> Optional[User]:
        """Find a user by email, ignoring case."""
        needle = (email or "").strip().lower()
        for user in self.storage.load_users():
            if user.email.lower() == needle:
                return user
        return None

    def verify(self, email: str, secret: str) -> Optional[User]:
        """
        Check credentials.

        Returns:
            The user if the email matches (ignoring case) and the secret
            matches exactly, None otherwise
        """
        user = self.find_by_email(email)
        if user is None or not self._secret_matches(user, secret):
            return None
        return user

    @staticmethod
    def _secret_matches(user: User, secret: str) -> bool:
        return user.password == secret

    # =========================================================================
    # Insertion
    # =========================================================================

    def insert(self, user: User) -> User:
        """
        Insert a new user.

        Raises:
            DuplicateEmail: if the email is already registered (any case)
        """
        with self.storage.locked():
            users = self.storage.load_users()
            email = user.email.lower()
            if any(u.email.lower() == email for u in users):
                raise DuplicateEmail(email)

            user.email = email
            users.append(user)
            self.storage.save_users(users)

        logger.info(f"User registered: {user.email} ({user.role.value})")
        return user

    def register_user(self, email: str, secret: str, role: Role = Role.STANDARD) -> User:
        """Allocate an id and insert a new account."""
        with self.storage.locked():
            user = User(id=self._next_id(), email=email.strip().lower(), password=secret, role=role)
            return self.insert(user)

    def _next_id(self) -> int:
        last = max((u.id for u in self.storage.load_users()), default=0)
        return max(now_ms(), last + 1)

    # =========================================================================
    # Seeding
    # =========================================================================

    def seed_if_empty(self) -> int:
        """
        Insert the default accounts when no users exist.

        Also initializes an empty auctions document.

        Returns:
            Number of users seeded
        """
        seeded = 0
        with self.storage.locked():
            if not self.storage.load_users():
                users = [
                    User(id=i, email=email, password=password, role=role)
                    for i, (email, password, role) in enumerate(DEFAULT_USERS, start=1)
                ]
                self.storage.save_users(users)
                seeded = len(users)
                logger.info(f"Seeded {seeded} default users")

            if not self.storage.has_document(AUCTIONS_KEY):
                self.storage.save_auctions([])

        return seeded
