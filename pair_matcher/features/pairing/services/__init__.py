"""
Service layer for the pairing feature.
"""

from .auth_policy import AllowListAuthPolicy
from .directory_cache import DirectoryCache
from .pairing_service import PairingRun, PairMatchingService

__all__ = [
    "AllowListAuthPolicy",
    "DirectoryCache",
    "PairingRun",
    "PairMatchingService",
]
