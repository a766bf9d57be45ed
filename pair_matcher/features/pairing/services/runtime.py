"""
Process-wide wiring of the pairing feature.

Mirrors the lifecycle of other shared clients: ``initialize()`` on startup,
``close()`` on shutdown, FastAPI dependencies read from the singleton.
"""

from __future__ import annotations

from pair_matcher.config import Settings, settings
from pair_matcher.infrastructure.observability.logging import get_logger
from pair_matcher.services.slack.client import SlackWebClient

from ..pipeline.executor import BatchExecutor, FixedDelayPolicy
from .auth_policy import AllowListAuthPolicy
from .directory_cache import DirectoryCache
from .pairing_service import PairMatchingService

logger = get_logger(__name__)


def build_pairing_service(slack: SlackWebClient, config: Settings = settings) -> PairMatchingService:
    directory = DirectoryCache(provider=slack, ttl=config.directory_ttl())
    return PairMatchingService(
        directory=directory,
        provider=slack,
        conversations=slack,
        messages=slack,
        auth_policy=AllowListAuthPolicy(config.admin_users(), provider=slack),
        executor=BatchExecutor(FixedDelayPolicy(config.inter_pair_delay_seconds())),
        default_intro=config.DEFAULT_INTRO_TEMPLATE,
        include_tips=config.INCLUDE_GETTING_STARTED_TIPS,
        bot_name=config.BOT_NAME,
        max_search_results=config.MAX_SEARCH_RESULTS,
    )


class PairingRuntime:
    def __init__(self):
        self.slack: SlackWebClient | None = None
        self.service: PairMatchingService | None = None

    @property
    def initialized(self) -> bool:
        return self.service is not None

    async def initialize(self) -> None:
        if self.initialized:
            return
        self.slack = SlackWebClient()
        self.service = build_pairing_service(self.slack)
        logger.info(
            "Pairing runtime initialized",
            directory_ttl_ms=settings.DIRECTORY_TTL_MS,
            inter_pair_delay_ms=settings.INTER_PAIR_DELAY_MS,
            admin_count=len(settings.admin_users()),
        )

    async def close(self) -> None:
        if self.slack is not None:
            await self.slack.close()
        self.slack = None
        self.service = None


pairing_runtime = PairingRuntime()


def get_pairing_service() -> PairMatchingService:
    if pairing_runtime.service is None:
        raise RuntimeError("Pairing runtime not initialized")
    return pairing_runtime.service


def get_slack_client() -> SlackWebClient:
    if pairing_runtime.slack is None:
        raise RuntimeError("Pairing runtime not initialized")
    return pairing_runtime.slack
