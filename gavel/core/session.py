"""
Session/Identity Gate - Who is acting, for bid attribution.

Not a security boundary: anyone with access to the store can write
the session record.
"""

from typing import Optional

from gavel.core.errors import (
    InvalidCredentials,
    InvalidEmail,
    NotAuthenticated,
    WeakPassword,
)
from gavel.core.models import Role, SessionUser, User
from gavel.core.registry import CredentialStore
from gavel.core.storage import StorageManager
from gavel.utils.logger import get_logger
from gavel.utils.validation import MIN_PASSWORD_LENGTH, validate_email, validate_password

logger = get_logger("session")


class SessionGate:
    """Resolves the current actor from the persisted session record."""

    def __init__(
        self,
        credentials: CredentialStore,
        storage: StorageManager,
        min_password_length: int = MIN_PASSWORD_LENGTH,
    ):
        self.credentials = credentials
        self.storage = storage
        self.min_password_length = min_password_length

    def register(self, email: str, secret: str) -> User:
        """
        Create a standard account and log it in.

        Raises:
            InvalidEmail, WeakPassword, DuplicateEmail
        """
        ok, err = validate_email(email)
        if not ok:
            raise InvalidEmail(err)

        ok, err = validate_password(secret, self.min_password_length)
        if not ok:
            raise WeakPassword(err)

        user = self.credentials.register_user(email, secret, Role.STANDARD)
        self._open(user)
        return user

    def login(self, email: str, secret: str) -> User:
        """
        Verify credentials and persist the session.

        Raises:
            InvalidCredentials: unknown email or wrong secret, indistinguishably
        """
        user = self.credentials.verify(email, secret)
        if user is None:
            logger.warning(f"Failed login attempt for {email!r}")
            raise InvalidCredentials()

        self._open(user)
        logger.info(f"Logged in: {user.email}")
        return user

    def logout(self) -> None:
        current = self.current_user()
        self.storage.set_current_user(None)
        if current:
            logger.info(f"Logged out: {current.email}")

    def current_user(self) -> Optional[SessionUser]:
        return self.storage.get_current_user()

    def require_user(self) -> SessionUser:
        user = self.current_user()
        if user is None:
            raise NotAuthenticated()
        return user

    def _open(self, user: User) -> None:
        self.storage.set_current_user(SessionUser.from_user(user))
