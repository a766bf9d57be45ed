"""
Domain subpackage for the pairing feature.
"""

from .contracts import ConversationProvider, DirectoryProvider, MessageSender
from .errors import (
    AuthorizationDenied,
    DirectoryUnavailable,
    NoPairsSubmitted,
    PairMatchingError,
)
from .models import (
    DirectoryMember,
    DirectorySnapshot,
    ExecutionReport,
    PairErrorReason,
    PairOutcome,
    RawPairLine,
    ResolvedToken,
    UserIdentity,
    ValidatedPair,
)

__all__ = [
    "AuthorizationDenied",
    "ConversationProvider",
    "DirectoryMember",
    "DirectoryProvider",
    "DirectorySnapshot",
    "DirectoryUnavailable",
    "ExecutionReport",
    "MessageSender",
    "NoPairsSubmitted",
    "PairErrorReason",
    "PairMatchingError",
    "PairOutcome",
    "RawPairLine",
    "ResolvedToken",
    "UserIdentity",
    "ValidatedPair",
]
