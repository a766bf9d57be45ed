"""
Pairing service - the single pipeline behind every Slack entry point.

Slash command text and modal submissions both end up here:
authorize -> parse -> snapshot -> validate -> execute -> report.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pair_matcher.features.pairing.domain.contracts import (
    ConversationProvider,
    DirectoryProvider,
    MessageSender,
)
from pair_matcher.features.pairing.domain.errors import (
    AuthorizationDenied,
    NoPairsSubmitted,
    PairMatchingError,
)
from pair_matcher.features.pairing.domain.models import (
    ExecutionReport,
    UserIdentity,
    ValidatedPair,
)
from pair_matcher.features.pairing.pipeline.executor import BatchExecutor
from pair_matcher.features.pairing.pipeline.parser import parse_pairs
from pair_matcher.features.pairing.pipeline.report import (
    format_error,
    format_execution_report,
)
from pair_matcher.features.pairing.pipeline.resolver import normalize_token
from pair_matcher.features.pairing.pipeline.resolver import search as search_directory
from pair_matcher.features.pairing.pipeline.validator import validate_pairs
from pair_matcher.infrastructure.observability.logging import get_logger

from .auth_policy import AllowListAuthPolicy
from .directory_cache import DirectoryCache, is_resolvable

logger = get_logger(__name__)

GETTING_STARTED_TIPS = (
    "Introduce yourselves",
    "Share what you're working on",
    "Find common interests or goals",
    "Schedule a time to chat further",
)


@dataclass(frozen=True, slots=True)
class PairingRun:
    validated: tuple[ValidatedPair, ...]
    report: ExecutionReport

    @property
    def rejected(self) -> list[ValidatedPair]:
        return [pair for pair in self.validated if not pair.valid]


class PairMatchingService:
    def __init__(
        self,
        directory: DirectoryCache,
        provider: DirectoryProvider,
        conversations: ConversationProvider,
        messages: MessageSender,
        auth_policy: AllowListAuthPolicy,
        executor: BatchExecutor,
        default_intro: str,
        include_tips: bool = True,
        bot_name: str = "Pair Matcher Bot",
        max_search_results: int = 10,
    ):
        self.directory = directory
        self.provider = provider
        self.conversations = conversations
        self.messages = messages
        self.auth_policy = auth_policy
        self.executor = executor
        self.default_intro = default_intro
        self.include_tips = include_tips
        self.bot_name = bot_name
        self.max_search_results = max_search_results

    async def ensure_authorized(self, caller_id: str) -> None:
        if not await self.auth_policy.is_authorized(caller_id):
            logger.warning("Pairing access denied", caller_id=caller_id)
            raise AuthorizationDenied(
                "Only administrators can use the pair matching bot", user_id=caller_id
            )

    async def preview(self, raw_text: str) -> list[ValidatedPair]:
        """Validate submitted text without opening any conversation."""
        lines = parse_pairs(raw_text)
        if not lines:
            return []
        snapshot = await self.directory.get_snapshot()
        return validate_pairs(lines, snapshot)

    async def run(
        self, requester_id: str, raw_text: str, intro_template: str | None = None
    ) -> PairingRun:
        """
        Validate the submitted pairs and open a conversation for each valid one.

        Raises:
            NoPairsSubmitted: If the text holds no non-blank lines
            DirectoryUnavailable: If the directory could not be loaded
        """
        lines = parse_pairs(raw_text)
        if not lines:
            raise NoPairsSubmitted(
                "No valid pairs found. Please check your input format.", user_id=requester_id
            )

        snapshot = await self.directory.get_snapshot()
        validated = validate_pairs(lines, snapshot)
        valid_pairs = [pair for pair in validated if pair.valid]

        logger.info(
            "Pairing run started",
            requester_id=requester_id,
            line_count=len(lines),
            valid_count=len(valid_pairs),
            rejected_count=len(validated) - len(valid_pairs),
        )

        async def create_conversation(user1_id: str, user2_id: str) -> str:
            return await self.conversations.open_conversation([user1_id, user2_id])

        async def send_intro(conversation_ref: str, text: str) -> None:
            await self.messages.post_message(
                conversation_ref, text, blocks=self._intro_blocks(text, requester_id)
            )

        report = await self.executor.execute(
            valid_pairs,
            (intro_template or "").strip() or self.default_intro,
            create_conversation,
            send_intro,
        )
        return PairingRun(validated=tuple(validated), report=report)

    async def run_and_notify(
        self, requester_id: str, raw_text: str, intro_template: str | None = None
    ) -> PairingRun | None:
        """Run the pipeline and DM the requester a report, or the failure."""
        try:
            result = await self.run(requester_id, raw_text, intro_template)
        except PairMatchingError as e:
            logger.error("Pairing run failed", requester_id=requester_id, error=str(e))
            payload = format_error(str(e))
            await self.messages.post_message(requester_id, payload.text, blocks=payload.blocks)
            return None

        payload = format_execution_report(
            result.report,
            rejected=result.rejected,
            completed_at=datetime.now(UTC),
            bot_name=self.bot_name,
        )
        await self.messages.post_message(requester_id, payload.text, blocks=payload.blocks)
        return result

    async def search(self, query: str) -> list[UserIdentity]:
        snapshot = await self.directory.get_snapshot()
        matches = search_directory(query, snapshot, limit=self.max_search_results)
        if matches:
            return matches

        # Members who joined after the snapshot was taken are still findable by exact email
        email = normalize_token(query)
        if "@" not in email:
            return []
        member = await self.provider.lookup_by_email(email)
        if member is None or not is_resolvable(member):
            return []
        return [member.to_identity()]

    def _intro_blocks(self, text: str, requester_id: str) -> list[dict[str, Any]]:
        blocks: list[dict[str, Any]] = [
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"🎯 *You've been matched!*\n\n{text}"},
            }
        ]
        if self.include_tips:
            tips = "\n".join(f"• {tip}" for tip in GETTING_STARTED_TIPS)
            blocks.append({"type": "divider"})
            blocks.append(
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": f"💡 *Getting started:*\n{tips}"},
                }
            )
        today = datetime.now(UTC).strftime("%Y-%m-%d")
        blocks.append(
            {
                "type": "context",
                "elements": [
                    {
                        "type": "mrkdwn",
                        "text": f"🤖 Matched by <@{requester_id}> • {today} • Powered by {self.bot_name}",
                    }
                ],
            }
        )
        return blocks
