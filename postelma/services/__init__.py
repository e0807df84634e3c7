"""
Services - the collaborators that own state and call into the authorities.
"""

from postelma.services.accounts import AccountProvisioning, AccountStats
from postelma.services.users import UserDirectory, UserStats

__all__ = [
    "AccountProvisioning",
    "AccountStats",
    "UserDirectory",
    "UserStats",
]
