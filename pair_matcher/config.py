from datetime import timedelta
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"

DEFAULT_INTRO_MESSAGE = (
    "👋 Welcome! You've both been paired together by our matching system. "
    "This is a great opportunity to connect, collaborate, and get to know each other better!"
)


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Slack app credentials
    SLACK_BOT_TOKEN: str
    SLACK_SIGNING_SECRET: str
    SLACK_API_BASE_URL: str = "https://slack.com/api"
    SLACK_REQUEST_TIMEOUT: float = 15.0
    SLACK_SIGNATURE_MAX_AGE_S: int = 300  # Slack recommends 5 minutes

    # Comma separated Slack user IDs and/or emails. Empty allows everyone.
    ADMIN_USERS: str = ""

    # =================================================================
    # PAIRING BEHAVIOUR
    # =================================================================
    DIRECTORY_TTL_MS: int = 600_000  # 10 minutes
    INTER_PAIR_DELAY_MS: int = 100
    MAX_SEARCH_RESULTS: int = 10
    DEFAULT_INTRO_TEMPLATE: str = DEFAULT_INTRO_MESSAGE
    INCLUDE_GETTING_STARTED_TIPS: bool = True
    BOT_NAME: str = "Pair Matcher Bot"

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def admin_users(self) -> frozenset[str]:
        """Parse ADMIN_USERS into a set of trimmed, non-empty entries."""
        return frozenset(item.strip() for item in self.ADMIN_USERS.split(",") if item.strip())

    def directory_ttl(self) -> timedelta:
        return timedelta(milliseconds=self.DIRECTORY_TTL_MS)

    def inter_pair_delay_seconds(self) -> float:
        return max(0, self.INTER_PAIR_DELAY_MS) / 1000


settings = Settings()
