"""
Domain models for the pairing feature.

Every record is a frozen dataclass: directory snapshots are shared between
concurrent command invocations and pipeline outputs are handed straight to
the report formatter, so nothing downstream is allowed to mutate them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


@dataclass(frozen=True, slots=True)
class UserIdentity:
    """A resolvable workspace member."""

    id: str
    handle: str
    display_name: str = ""
    real_name: str = ""
    email: str = ""

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"

    @property
    def preferred_name(self) -> str:
        return self.display_name or self.real_name or self.handle


@dataclass(frozen=True, slots=True)
class DirectoryMember:
    """Raw directory record as returned by a provider, before exclusions."""

    id: str
    handle: str
    display_name: str = ""
    real_name: str = ""
    email: str = ""
    deleted: bool = False
    is_automated: bool = False

    def to_identity(self) -> UserIdentity:
        return UserIdentity(
            id=self.id,
            handle=self.handle,
            display_name=self.display_name,
            real_name=self.real_name,
            email=self.email,
        )


@dataclass(frozen=True, slots=True)
class DirectorySnapshot:
    """Time-bounded copy of the directory. Replaced wholesale on refresh."""

    users: tuple[UserIdentity, ...]
    fetched_at: datetime
    ttl: timedelta

    @property
    def expires_at(self) -> datetime:
        return self.fetched_at + self.ttl

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def __len__(self) -> int:
        return len(self.users)


@dataclass(frozen=True, slots=True)
class RawPairLine:
    """One non-blank input line split into comma separated tokens."""

    line_number: int
    raw_text: str
    tokens: tuple[str, ...]

    @property
    def is_well_formed(self) -> bool:
        return len(self.tokens) == 2 and all(self.tokens)

    @property
    def token1(self) -> str:
        return self.tokens[0] if self.tokens else ""

    @property
    def token2(self) -> str | None:
        return self.tokens[1] if self.is_well_formed else None


class PairErrorReason(str, Enum):
    MALFORMED_LINE = "MALFORMED_LINE"
    USER1_NOT_FOUND = "USER1_NOT_FOUND"
    USER2_NOT_FOUND = "USER2_NOT_FOUND"
    SELF_PAIR = "SELF_PAIR"


@dataclass(frozen=True, slots=True)
class ResolvedToken:
    input: str
    resolved: UserIdentity | None = None

    @property
    def valid(self) -> bool:
        return self.resolved is not None


@dataclass(frozen=True, slots=True)
class ValidatedPair:
    """A parsed line classified as a valid pair or rejected with a reason."""

    line_number: int
    raw_text: str
    user1: ResolvedToken
    user2: ResolvedToken
    error_reason: PairErrorReason | None = None

    @property
    def valid(self) -> bool:
        return (
            self.error_reason is None
            and self.user1.valid
            and self.user2.valid
            and self.user1.resolved.id != self.user2.resolved.id
        )

    @property
    def label(self) -> str:
        if self.valid:
            return f"{self.user1.resolved.preferred_name} & {self.user2.resolved.preferred_name}"
        return self.raw_text

    def describe_error(self) -> str | None:
        """Human readable, actionable explanation of why the line was rejected."""
        if self.error_reason is None:
            return None
        if self.error_reason == PairErrorReason.USER1_NOT_FOUND:
            return f"User not found: {self.user1.input}"
        if self.error_reason == PairErrorReason.USER2_NOT_FOUND:
            return f"User not found: {self.user2.input}"
        if self.error_reason == PairErrorReason.SELF_PAIR:
            return "Both entries refer to the same person"
        return "Expected exactly two people separated by a comma"


@dataclass(frozen=True, slots=True)
class PairOutcome:
    line_number: int
    pair_label: str
    success: bool
    conversation_ref: str | None = None
    error_message: str | None = None


@dataclass(frozen=True, slots=True)
class ExecutionReport:
    outcomes: tuple[PairOutcome, ...] = ()

    @property
    def successes(self) -> list[PairOutcome]:
        return [outcome for outcome in self.outcomes if outcome.success]

    @property
    def failures(self) -> list[PairOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def failure_count(self) -> int:
        return len(self.failures)
