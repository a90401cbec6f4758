"""
Gavel Credential Registry Module.

Manages user accounts and credential checks.
"""

from gavel.core.registry.credential_store import (
    CredentialStore,
    DEFAULT_USERS,
)

__all__ = [
    "CredentialStore",
    "DEFAULT_USERS",
]
