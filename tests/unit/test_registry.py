"""
Tests for the Credential Store.

Tests cover:
1. Lookup by email
2. Insertion and duplicate detection
3. Credential verification
4. Default account seeding
"""

import pytest

from gavel.core.errors import DuplicateEmail
from gavel.core.models import Role, User
from gavel.core.registry import CredentialStore, DEFAULT_USERS
from gavel.core.storage import AUCTIONS_KEY, StorageManager


@pytest.fixture
def storage(tmp_path):
    return StorageManager(tmp_path)


@pytest.fixture
def store(storage):
    return CredentialStore(storage)


class TestLookup:
    """Tests for email lookup."""

    def test_find_is_case_insensitive(self, store):
        store.register_user("Alice@ABU.edu", "secret1")
        user = store.find_by_email("ALICE@abu.EDU")
        assert user is not None
        assert user.email == "alice@abu.edu"

    def test_find_unknown(self, store):
        assert store.find_by_email("ghost@abu.edu") is None


class TestInsert:
    """Tests for user insertion."""

    def test_insert_lowercases_email(self, store):
        user = store.insert(User(id=7, email="Bob@Abu.edu", password="hunter22"))
        assert user.email == "bob@abu.edu"
        assert [u.email for u in store.all()] == ["bob@abu.edu"]

    def test_duplicate_any_case(self, store):
        store.register_user("a@b.com", "secret1")
        with pytest.raises(DuplicateEmail):
            store.register_user("A@B.COM", "another1")
        assert len(store.all()) == 1

    def test_ids_unique(self, store):
        first = store.register_user("a@b.com", "secret1")
        second = store.register_user("c@d.com", "secret1")
        assert second.id > first.id

    def test_default_role_is_standard(self, store):
        user = store.register_user("a@b.com", "secret1")
        assert user.role == Role.STANDARD
        assert not user.is_admin


class TestVerify:
    """Tests for credential checks."""

    def test_verify_success(self, store):
        store.register_user("a@b.com", "secret1")
        assert store.verify("A@b.com", "secret1").email == "a@b.com"

    def test_verify_wrong_secret(self, store):
        store.register_user("a@b.com", "secret1")
        assert store.verify("a@b.com", "Secret1") is None

    def test_verify_unknown_email(self, store):
        assert store.verify("nobody@b.com", "secret1") is None

    def test_secret_compared_exactly(self, store):
        store.register_user("a@b.com", "secret1")
        assert store.verify("a@b.com", "secret1 ") is None


class TestSeeding:
    """Tests for default account seeding."""

    def test_seed_empty_store(self, store, storage):
        assert store.seed_if_empty() == len(DEFAULT_USERS)
        admin = store.find_by_email("admin@abu.edu")
        assert admin.is_admin
        assert store.verify("student@abu.edu", "student123") is not None
        assert storage.get_document(AUCTIONS_KEY) == []

    def test_seed_is_noop_when_users_exist(self, store):
        store.register_user("a@b.com", "secret1")
        assert store.seed_if_empty() == 0
        assert len(store.all()) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
