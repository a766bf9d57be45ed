import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from pair_matcher.features.pairing.domain.errors import DirectoryUnavailable
from pair_matcher.features.pairing.domain.models import DirectoryMember
from pair_matcher.features.pairing.services.directory_cache import DirectoryCache


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class SlowProvider:
    def __init__(self, members):
        self.members = members
        self.calls = 0
        self.fail = False

    async def list_users(self):
        self.calls += 1
        await asyncio.sleep(0.01)
        if self.fail:
            raise RuntimeError("invalid_auth")
        return list(self.members)


@pytest.mark.asyncio
async def test_snapshot_reused_within_ttl(fake_slack):
    clock = FakeClock()
    cache = DirectoryCache(fake_slack, ttl=timedelta(minutes=10), clock=clock)

    first = await cache.get_snapshot()
    clock.advance(minutes=9)
    second = await cache.get_snapshot()

    assert first is second
    assert fake_slack.list_calls == 1


@pytest.mark.asyncio
async def test_snapshot_rebuilt_after_expiry(fake_slack):
    clock = FakeClock()
    cache = DirectoryCache(fake_slack, ttl=timedelta(minutes=10), clock=clock)

    first = await cache.get_snapshot()
    clock.advance(minutes=10)
    second = await cache.get_snapshot()

    assert first is not second
    assert fake_slack.list_calls == 2
    assert second.fetched_at == clock.now


@pytest.mark.asyncio
async def test_deleted_and_automated_members_are_excluded(fake_slack, alice):
    fake_slack.members = [
        alice,
        DirectoryMember(id="U8", handle="gone", deleted=True),
        DirectoryMember(id="B1", handle="robot", is_automated=True),
    ]
    cache = DirectoryCache(fake_slack)

    snapshot = await cache.get_snapshot()

    assert [user.id for user in snapshot.users] == ["U1"]


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_fetch(alice):
    provider = SlowProvider([alice])
    cache = DirectoryCache(provider)

    snapshots = await asyncio.gather(*(cache.get_snapshot() for _ in range(5)))

    assert provider.calls == 1
    assert all(snapshot is snapshots[0] for snapshot in snapshots)


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_failed_fetch(alice):
    provider = SlowProvider([alice])
    provider.fail = True
    cache = DirectoryCache(provider)

    results = await asyncio.gather(
        *(cache.get_snapshot() for _ in range(5)), return_exceptions=True
    )

    assert provider.calls == 1
    assert all(isinstance(result, DirectoryUnavailable) for result in results)


@pytest.mark.asyncio
async def test_next_call_after_failure_fetches_again(alice):
    provider = SlowProvider([alice])
    provider.fail = True
    cache = DirectoryCache(provider)
    with pytest.raises(DirectoryUnavailable):
        await cache.get_snapshot()

    provider.fail = False
    snapshot = await cache.get_snapshot()

    assert provider.calls == 2
    assert [user.id for user in snapshot.users] == ["U1"]


@pytest.mark.asyncio
async def test_fetch_failure_raises_and_drops_stale_snapshot(alice):
    clock = FakeClock()
    provider = SlowProvider([alice])
    cache = DirectoryCache(provider, ttl=timedelta(minutes=1), clock=clock)
    await cache.get_snapshot()

    clock.advance(minutes=2)
    provider.fail = True
    with pytest.raises(DirectoryUnavailable):
        await cache.get_snapshot()

    assert cache.stats()["loaded"] is False


@pytest.mark.asyncio
async def test_invalidate_forces_refetch(fake_slack):
    cache = DirectoryCache(fake_slack)
    await cache.get_snapshot()

    cache.invalidate()
    await cache.get_snapshot()

    assert fake_slack.list_calls == 2
    stats = cache.stats()
    assert stats["loaded"] is True
    assert stats["user_count"] == 3
    assert stats["fetch_count"] == 2
