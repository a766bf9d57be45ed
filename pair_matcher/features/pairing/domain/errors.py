"""
Whole-operation failures of the pairing flow.

Per-line and per-pair problems are never raised; they are recorded on
ValidatedPair and PairOutcome instead.
"""


class PairMatchingError(Exception):
    """Base exception for pairing errors reported once to the requester."""

    def __init__(self, message: str, user_id: str | None = None):
        super().__init__(message)
        self.user_id = user_id


class DirectoryUnavailable(PairMatchingError):
    """Raised when the directory could not be fetched; nothing is resolvable."""


class AuthorizationDenied(PairMatchingError):
    """Raised when the caller is not allowed to run the pairing flow."""


class NoPairsSubmitted(PairMatchingError):
    """Raised when the submitted text contains no pair lines at all."""
