"""
Service layer on top of the storage contract.
"""

from .auth import AuthService
from .property import PropertyService, AuthorizationPredicate, admin_only, deny_all

__all__ = [
    "AuthService",
    "PropertyService",
    "AuthorizationPredicate",
    "admin_only",
    "deny_all",
]
