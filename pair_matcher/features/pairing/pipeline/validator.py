"""
Pair validation - classifies parsed lines against a directory snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable

from pair_matcher.features.pairing.domain.models import (
    DirectorySnapshot,
    PairErrorReason,
    RawPairLine,
    ResolvedToken,
    ValidatedPair,
)

from .resolver import resolve


def validate_line(line: RawPairLine, snapshot: DirectorySnapshot) -> ValidatedPair:
    if not line.is_well_formed:
        return ValidatedPair(
            line_number=line.line_number,
            raw_text=line.raw_text,
            user1=ResolvedToken(input=line.token1),
            user2=ResolvedToken(input=line.tokens[1] if len(line.tokens) > 1 else ""),
            error_reason=PairErrorReason.MALFORMED_LINE,
        )

    user1 = ResolvedToken(input=line.token1, resolved=resolve(line.token1, snapshot))
    user2 = ResolvedToken(input=line.token2, resolved=resolve(line.token2, snapshot))

    # Fixed precedence: first user, then second user, then self pairing
    if not user1.valid:
        reason = PairErrorReason.USER1_NOT_FOUND
    elif not user2.valid:
        reason = PairErrorReason.USER2_NOT_FOUND
    elif user1.resolved.id == user2.resolved.id:
        reason = PairErrorReason.SELF_PAIR
    else:
        reason = None

    return ValidatedPair(
        line_number=line.line_number,
        raw_text=line.raw_text,
        user1=user1,
        user2=user2,
        error_reason=reason,
    )


def validate_pairs(
    lines: Iterable[RawPairLine], snapshot: DirectorySnapshot
) -> list[ValidatedPair]:
    """Validate every line, preserving order. Never performs I/O."""
    return [validate_line(line, snapshot) for line in lines]
