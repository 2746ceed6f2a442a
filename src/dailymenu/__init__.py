"""Daily Menu access core.

Session validation against the external auth provider, reconciliation of
provider identities with internal user records, and role-based routing of
every request to the right dashboard.
"""

__version__ = "0.1.0"
