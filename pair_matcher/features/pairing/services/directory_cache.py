"""
Directory snapshot cache.

Holds at most one live DirectorySnapshot. Expired or missing snapshots are
rebuilt on demand with a single provider call; concurrent callers that hit
an expired snapshot await the same rebuild and share its result, including
its failure.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from pair_matcher.features.pairing.domain.contracts import DirectoryProvider
from pair_matcher.features.pairing.domain.errors import DirectoryUnavailable
from pair_matcher.features.pairing.domain.models import DirectoryMember, DirectorySnapshot
from pair_matcher.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def is_resolvable(member: DirectoryMember) -> bool:
    return not member.deleted and not member.is_automated


class DirectoryCache:
    def __init__(
        self,
        provider: DirectoryProvider,
        ttl: timedelta = timedelta(minutes=10),
        clock: Clock = _utcnow,
    ):
        self.provider = provider
        self.ttl = ttl
        self._clock = clock
        self._snapshot: DirectorySnapshot | None = None
        self._inflight: asyncio.Task[DirectorySnapshot] | None = None
        self._fetch_count = 0

    def _fresh_snapshot(self) -> DirectorySnapshot | None:
        snapshot = self._snapshot
        if snapshot is not None and not snapshot.is_expired(self._clock()):
            return snapshot
        return None

    async def get_snapshot(self) -> DirectorySnapshot:
        """
        Return the live snapshot, rebuilding it first if it expired.

        Raises:
            DirectoryUnavailable: If the provider call fails. The previous
                snapshot is discarded rather than served stale.
        """
        snapshot = self._fresh_snapshot()
        if snapshot is not None:
            return snapshot

        if self._inflight is None:
            self._inflight = asyncio.create_task(self._rebuild())
        # Shielded so one cancelled caller does not abort the shared fetch
        return await asyncio.shield(self._inflight)

    async def _rebuild(self) -> DirectorySnapshot:
        self._fetch_count += 1
        try:
            members = await self.provider.list_users()
        except Exception as e:
            self._snapshot = None
            logger.error("Directory fetch failed", error=str(e))
            raise DirectoryUnavailable(f"Could not load the user directory: {e}") from e
        finally:
            self._inflight = None

        users = tuple(member.to_identity() for member in members if is_resolvable(member))
        snapshot = DirectorySnapshot(users=users, fetched_at=self._clock(), ttl=self.ttl)
        self._snapshot = snapshot

        logger.info(
            "Directory snapshot rebuilt",
            member_count=len(members),
            resolvable_count=len(users),
            excluded_count=len(members) - len(users),
            expires_at=snapshot.expires_at.isoformat(),
        )
        return snapshot

    def invalidate(self) -> None:
        """Drop the current snapshot so the next read refetches."""
        self._snapshot = None
        logger.info("Directory snapshot invalidated")

    def stats(self) -> dict[str, Any]:
        snapshot = self._snapshot
        if snapshot is None:
            return {"loaded": False, "fetch_count": self._fetch_count}
        return {
            "loaded": True,
            "user_count": len(snapshot),
            "fetched_at": snapshot.fetched_at.isoformat(),
            "expires_at": snapshot.expires_at.isoformat(),
            "expired": snapshot.is_expired(self._clock()),
            "fetch_count": self._fetch_count,
        }
