"""Entities organised by business concept.

Each entity package holds its domain model (entity.py), its persistence
model (table.py) and, where needed, its data-access layer.
"""

from .core.company import Company, CompanyTable
from .core.user import (
    ElevatedUserStore,
    ExternalIdentity,
    InternalUser,
    RestrictedUserStore,
    Role,
    UserTable,
    UserUpdate,
)

__all__ = [
    "Company",
    "CompanyTable",
    "ElevatedUserStore",
    "ExternalIdentity",
    "InternalUser",
    "RestrictedUserStore",
    "Role",
    "UserTable",
    "UserUpdate",
]
