from unittest.mock import AsyncMock

import pytest

from pair_matcher.features.pairing.domain.models import UserIdentity
from pair_matcher.features.pairing.pipeline.executor import (
    BatchExecutor,
    FixedDelayPolicy,
    render_intro,
)
from pair_matcher.features.pairing.pipeline.parser import parse_pairs
from pair_matcher.features.pairing.pipeline.validator import validate_pairs


class CountingDelay(FixedDelayPolicy):
    def __init__(self):
        super().__init__(0)
        self.waits = 0

    async def wait(self) -> None:
        self.waits += 1


def test_render_intro_substitutes_mentions_and_names():
    user1 = UserIdentity(id="U1", handle="alice", display_name="Ali")
    user2 = UserIdentity(id="U2", handle="bob", real_name="Bob Brown")

    text = render_intro("Hi {user1} and {user2}! {name1} meet {name2}. {name1}!", user1, user2)

    assert text == "Hi <@U1> and <@U2>! Ali meet Bob Brown. Ali!"


def test_render_intro_leaves_placeholders_inside_names_alone():
    user1 = UserIdentity(id="U1", handle="alice", display_name="Fan of {name2}")
    user2 = UserIdentity(id="U2", handle="bob", display_name="Bob {user1}")

    text = render_intro("Hi {name1}, meet {name2}", user1, user2)

    assert text == "Hi Fan of {name2}, meet Bob {user1}"


def test_negative_delay_rejected():
    with pytest.raises(ValueError):
        FixedDelayPolicy(-1)


@pytest.mark.asyncio
async def test_execute_preserves_order_with_mixed_outcomes(snapshot):
    pairs = validate_pairs(parse_pairs("@alice, @bob\n@bob, @carol\n@alice, @carol"), snapshot)

    async def create_conversation(user1_id: str, user2_id: str) -> str:
        if user1_id == "U2":
            raise RuntimeError("cannot_dm_bot")
        return f"D-{user1_id}-{user2_id}"

    send_message = AsyncMock(return_value=None)
    delay = CountingDelay()

    report = await BatchExecutor(delay).execute(pairs, "Hello {name1}", create_conversation, send_message)

    assert [outcome.line_number for outcome in report.outcomes] == [1, 2, 3]
    assert [outcome.success for outcome in report.outcomes] == [True, False, True]
    assert report.success_count + report.failure_count == len(pairs)
    assert report.outcomes[1].error_message == "cannot_dm_bot"
    assert report.outcomes[0].conversation_ref == "D-U1-U2"
    assert send_message.await_count == 2
    send_message.assert_any_await("D-U1-U2", "Hello Alice")
    # Delay between attempts, including after the failed one, but not after the last
    assert delay.waits == 2


@pytest.mark.asyncio
async def test_send_failure_is_recorded_and_batch_continues(snapshot):
    pairs = validate_pairs(parse_pairs("@alice, @bob\n@alice, @carol"), snapshot)
    create_conversation = AsyncMock(side_effect=["D1", "D2"])
    send_message = AsyncMock(side_effect=[Exception("channel_not_found"), None])

    report = await BatchExecutor(FixedDelayPolicy.none()).execute(
        pairs, "hi", create_conversation, send_message
    )

    assert report.failure_count == 1
    assert report.failures[0].error_message == "channel_not_found"
    assert report.successes[0].conversation_ref == "D2"


@pytest.mark.asyncio
async def test_invalid_pairs_are_skipped(snapshot):
    pairs = validate_pairs(parse_pairs("@alice, @ghost\n@alice, @bob"), snapshot)
    create_conversation = AsyncMock(return_value="D1")
    send_message = AsyncMock()

    report = await BatchExecutor(FixedDelayPolicy.none()).execute(
        pairs, "hi", create_conversation, send_message
    )

    assert len(report.outcomes) == 1
    assert report.outcomes[0].line_number == 2
    create_conversation.assert_awaited_once_with("U1", "U2")


@pytest.mark.asyncio
async def test_empty_batch_produces_empty_report():
    report = await BatchExecutor(FixedDelayPolicy.none()).execute([], "hi", AsyncMock(), AsyncMock())

    assert report.outcomes == ()
    assert report.success_count == 0
    assert report.failure_count == 0
