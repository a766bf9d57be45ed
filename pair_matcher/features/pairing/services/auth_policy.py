"""
Admin allow-list for the pairing command.
"""

from __future__ import annotations

from collections.abc import Iterable

from pair_matcher.features.pairing.domain.contracts import DirectoryProvider
from pair_matcher.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class AllowListAuthPolicy:
    """
    Authorizes callers listed by Slack user id or by email.

    An empty allow-list lets everyone through so a fresh install can be
    tried before admins are configured.
    """

    def __init__(self, allowed: Iterable[str], provider: DirectoryProvider):
        self.allowed_ids = frozenset(entry for entry in allowed if "@" not in entry)
        self.allowed_emails = frozenset(entry.casefold() for entry in allowed if "@" in entry)
        self.provider = provider

    @property
    def allow_all(self) -> bool:
        return not self.allowed_ids and not self.allowed_emails

    async def is_authorized(self, caller_id: str) -> bool:
        if self.allow_all:
            logger.warning("No admin users configured - allowing all users", caller_id=caller_id)
            return True

        if caller_id in self.allowed_ids:
            return True

        if not self.allowed_emails:
            return False

        try:
            member = await self.provider.get_user(caller_id)
        except Exception as e:
            logger.error("Error checking admin status", caller_id=caller_id, error=str(e))
            return False

        if member is None or not member.email:
            return False
        return member.email.casefold() in self.allowed_emails
