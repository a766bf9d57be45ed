"""
Batch executor - opens one conversation per valid pair and seeds it.

Pairs run strictly one after another with a fixed delay between them so the
outbound Slack call rate stays bounded and reports stay in input order.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Callable, Sequence

from pair_matcher.features.pairing.domain.models import (
    ExecutionReport,
    PairOutcome,
    UserIdentity,
    ValidatedPair,
)
from pair_matcher.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

_PLACEHOLDER = re.compile(r"\{(user1|user2|name1|name2)\}")

CreateConversation = Callable[[str, str], Awaitable[str]]
SendMessage = Callable[[str, str], Awaitable[None]]


class FixedDelayPolicy:
    """Waits a constant amount of time between outbound pair operations."""

    def __init__(self, delay_seconds: float):
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.delay_seconds = delay_seconds

    @classmethod
    def none(cls) -> FixedDelayPolicy:
        return cls(0)

    async def wait(self) -> None:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)


def render_intro(template: str, user1: UserIdentity, user2: UserIdentity) -> str:
    """Fill {user1}/{user2} with mentions and {name1}/{name2} with names."""
    values = {
        "user1": user1.mention,
        "user2": user2.mention,
        "name1": user1.preferred_name,
        "name2": user2.preferred_name,
    }
    # Single pass: placeholders inside substituted names stay literal
    return _PLACEHOLDER.sub(lambda match: values[match.group(1)], template)


def _error_message(error: Exception) -> str:
    return str(error) or type(error).__name__


class BatchExecutor:
    def __init__(self, rate_limit: FixedDelayPolicy):
        self.rate_limit = rate_limit

    async def execute(
        self,
        valid_pairs: Sequence[ValidatedPair],
        intro_template: str,
        create_conversation: CreateConversation,
        send_message: SendMessage,
    ) -> ExecutionReport:
        """
        Run every valid pair in order and collect one outcome per pair.

        Args:
            valid_pairs: Pairs produced by the validator; invalid ones are skipped
            intro_template: Intro text with optional {user1}/{name1} placeholders
            create_conversation: Opens a DM for two user ids, returns its reference
            send_message: Posts text into a conversation reference

        Returns:
            ExecutionReport with outcomes in input order
        """
        runnable = []
        for pair in valid_pairs:
            if pair.valid:
                runnable.append(pair)
            else:
                logger.warning(
                    "Skipping invalid pair handed to executor",
                    line_number=pair.line_number,
                    error_reason=pair.error_reason,
                )

        outcomes: list[PairOutcome] = []
        for index, pair in enumerate(runnable):
            user1 = pair.user1.resolved
            user2 = pair.user2.resolved
            try:
                conversation_ref = await create_conversation(user1.id, user2.id)
                await send_message(conversation_ref, render_intro(intro_template, user1, user2))
                outcomes.append(
                    PairOutcome(
                        line_number=pair.line_number,
                        pair_label=pair.label,
                        success=True,
                        conversation_ref=conversation_ref,
                    )
                )
                logger.info(
                    "Pair conversation created",
                    line_number=pair.line_number,
                    pair_label=pair.label,
                    conversation_ref=conversation_ref,
                )
            except Exception as e:
                logger.error(
                    "Pair conversation failed",
                    line_number=pair.line_number,
                    pair_label=pair.label,
                    error=str(e),
                )
                outcomes.append(
                    PairOutcome(
                        line_number=pair.line_number,
                        pair_label=pair.label,
                        success=False,
                        error_message=_error_message(e),
                    )
                )

            if index < len(runnable) - 1:
                await self.rate_limit.wait()

        report = ExecutionReport(outcomes=tuple(outcomes))
        logger.info(
            "Pair batch finished",
            success_count=report.success_count,
            failure_count=report.failure_count,
        )
        return report
