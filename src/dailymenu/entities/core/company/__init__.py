"""Company entity module."""

from .entity import Company
from .table import CompanyTable

__all__ = ["Company", "CompanyTable"]
