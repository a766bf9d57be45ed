"""
Pair parser - splits free-form text into candidate pair lines.
"""

from pair_matcher.features.pairing.domain.models import RawPairLine

PAIR_SEPARATOR = ","


def parse_pairs(raw_text: str | None) -> list[RawPairLine]:
    """
    Split multi-line input into one RawPairLine per non-blank line.

    Line numbers count non-blank lines only, starting at 1. Lines are never
    dropped here; structural problems are left for the validator to flag.
    """
    lines: list[RawPairLine] = []
    if not raw_text:
        return lines

    for line in raw_text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        tokens = tuple(token.strip() for token in stripped.split(PAIR_SEPARATOR))
        lines.append(
            RawPairLine(line_number=len(lines) + 1, raw_text=stripped, tokens=tokens)
        )

    return lines
