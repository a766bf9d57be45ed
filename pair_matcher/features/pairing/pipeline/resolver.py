"""
Identifier resolution against a directory snapshot.

Both entry points are pure functions of their inputs so they can be tested
with synthetic snapshots and no network access.
"""

from __future__ import annotations

import re

from pair_matcher.features.pairing.domain.models import DirectorySnapshot, UserIdentity

DEFAULT_SEARCH_LIMIT = 10
MIN_SEARCH_QUERY_LENGTH = 2

# Slack escapes mentions and emails in slash command text:
#   <@U123ABC|alice>  and  <mailto:alice@co.com|alice@co.com>
_SLACK_MENTION = re.compile(r"^<@([A-Z0-9]+)(?:\|[^>]*)?>$", re.IGNORECASE)
_SLACK_MAILTO = re.compile(r"^<mailto:([^|>]+)(?:\|[^>]*)?>$", re.IGNORECASE)


def normalize_token(token: str) -> str:
    """Trim, unwrap Slack escapes and drop one leading '@'."""
    cleaned = token.strip()

    mention = _SLACK_MENTION.match(cleaned)
    if mention:
        return mention.group(1)

    mailto = _SLACK_MAILTO.match(cleaned)
    if mailto:
        return mailto.group(1).strip()

    if cleaned.startswith("@"):
        cleaned = cleaned[1:]
    return cleaned.strip()


def resolve(token: str, snapshot: DirectorySnapshot) -> UserIdentity | None:
    """
    Resolve one identifier to a user, or None.

    Rules are applied in a fixed order and the first match wins:
    id, email, handle, then a substring of display name or real name.
    """
    needle = normalize_token(token).casefold()
    if not needle:
        return None

    users = snapshot.users

    for user in users:
        if user.id.casefold() == needle:
            return user

    for user in users:
        if user.email and user.email.casefold() == needle:
            return user

    for user in users:
        if user.handle.casefold() == needle:
            return user

    for user in users:
        if needle in user.display_name.casefold() or needle in user.real_name.casefold():
            return user

    return None


def search(
    query: str, snapshot: DirectorySnapshot, limit: int = DEFAULT_SEARCH_LIMIT
) -> list[UserIdentity]:
    """Interactive lookup: substring match on every name field, snapshot order."""
    needle = normalize_token(query).casefold()
    if len(needle) < MIN_SEARCH_QUERY_LENGTH or limit <= 0:
        return []

    matches: list[UserIdentity] = []
    for user in snapshot.users:
        fields = (user.handle, user.real_name, user.display_name, user.email)
        if any(needle in field.casefold() for field in fields if field):
            matches.append(user)
            if len(matches) >= limit:
                break
    return matches
