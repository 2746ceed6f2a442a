"""User entity module.

- InternalUser / ExternalIdentity / Role: domain models
- UserTable: database persistence model for ``users``
- RestrictedUserStore / ElevatedUserStore: the two data-access levels
"""

from .entity import ExternalIdentity, InternalUser, Role, UserUpdate
from .store import ElevatedUserStore, RestrictedUserStore
from .table import UserTable

__all__ = [
    "ExternalIdentity",
    "InternalUser",
    "Role",
    "UserUpdate",
    "UserTable",
    "RestrictedUserStore",
    "ElevatedUserStore",
]
