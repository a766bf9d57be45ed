"""
Slack Web API client for directory, conversation and messaging calls.
Low-level client; business rules live in the pairing feature.
"""

from typing import Any

import httpx

from pair_matcher.config import settings
from pair_matcher.features.pairing.domain.models import DirectoryMember
from pair_matcher.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

USERS_PAGE_SIZE = 200
SLACKBOT_USER_ID = "USLACKBOT"


class SlackApiError(Exception):
    """Custom exception for Slack Web API errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code
        self.response_data = response_data or {}


def member_from_payload(data: dict[str, Any]) -> DirectoryMember:
    """Map a users.list / users.info member object to a DirectoryMember."""
    profile = data.get("profile") or {}
    return DirectoryMember(
        id=data["id"],
        handle=data.get("name") or "",
        display_name=profile.get("display_name") or "",
        real_name=profile.get("real_name") or data.get("real_name") or "",
        email=profile.get("email") or "",
        deleted=bool(data.get("deleted", False)),
        is_automated=bool(
            data.get("is_bot") or data.get("is_app_user") or data["id"] == SLACKBOT_USER_ID
        ),
    )


class SlackWebClient:
    """
    Async client for the handful of Slack Web API methods the bot needs.

    Slack reports most failures as HTTP 200 with ``ok: false``; both that and
    non-2xx responses are raised as SlackApiError.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._token = token if token is not None else settings.SLACK_BOT_TOKEN
        self._base_url = (base_url or settings.SLACK_API_BASE_URL).rstrip("/")
        self._client = self._create_client(timeout or settings.SLACK_REQUEST_TIMEOUT, transport)

    def _create_client(
        self, timeout: float, transport: httpx.AsyncBaseTransport | None
    ) -> httpx.AsyncClient:
        """Create async HTTP client for the Web API."""
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            headers={"Authorization": f"Bearer {self._token}"},
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _map_slack_error(self, error_code: str) -> str:
        """Map Slack error codes to user-friendly messages."""
        error_mappings = {
            "users_not_found": "User not found in this workspace.",
            "user_not_found": "User not found in this workspace.",
            "user_disabled": "User account has been deactivated.",
            "cannot_dm_bot": "Direct messages cannot be opened with a bot.",
            "not_authed": "Slack token missing. Please check the bot configuration.",
            "invalid_auth": "Slack token invalid. Please reinstall the app.",
            "missing_scope": "The Slack app is missing a required permission scope.",
            "ratelimited": "Too many Slack requests. Please try again later.",
            "expired_trigger_id": "The form took too long to open. Please run the command again.",
        }
        return error_mappings.get(error_code, f"Slack error: {error_code}")

    def _handle_api_response(self, response: httpx.Response, method: str) -> dict[str, Any]:
        """
        Validate a Web API response.

        Raises:
            SlackApiError: If the HTTP call or the API call failed
        """
        logger.debug(f"Slack {method} response", status_code=response.status_code)

        try:
            data = response.json() if response.content else {}
        except ValueError:
            logger.error(
                f"Slack {method} returned non-JSON response",
                status_code=response.status_code,
                response_text=response.text[:200] if response.text else "",
            )
            raise SlackApiError(
                f"Slack API error (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from None

        if response.is_success and data.get("ok"):
            return data

        error_code = data.get("error") or (
            "ratelimited" if response.status_code == 429 else f"http_{response.status_code}"
        )
        logger.error(
            f"Slack {method} failed",
            status_code=response.status_code,
            error_code=error_code,
        )
        raise SlackApiError(
            self._map_slack_error(error_code),
            error_code=error_code,
            status_code=response.status_code,
            response_data=data,
        )

    async def _call(
        self,
        method: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            if json is not None:
                response = await self._client.post(f"/{method}", json=json)
            else:
                response = await self._client.get(f"/{method}", params=params)
        except httpx.RequestError as e:
            logger.error(f"Slack {method} request error", error=str(e))
            raise SlackApiError(f"Could not reach Slack: {e}") from e
        return self._handle_api_response(response, method)

    async def list_users(self) -> list[DirectoryMember]:
        """Fetch every workspace member, following pagination cursors."""
        members: list[DirectoryMember] = []
        cursor: str | None = None
        pages = 0

        while True:
            params: dict[str, Any] = {"limit": USERS_PAGE_SIZE}
            if cursor:
                params["cursor"] = cursor
            data = await self._call("users.list", params=params)
            pages += 1
            members.extend(member_from_payload(item) for item in data.get("members", []))

            cursor = (data.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break

        logger.info("Slack users listed", member_count=len(members), pages=pages)
        return members

    async def get_user(self, user_id: str) -> DirectoryMember | None:
        try:
            data = await self._call("users.info", params={"user": user_id})
        except SlackApiError as e:
            if e.error_code == "user_not_found":
                return None
            raise
        return member_from_payload(data["user"])

    async def lookup_by_email(self, email: str) -> DirectoryMember | None:
        try:
            data = await self._call("users.lookupByEmail", params={"email": email})
        except SlackApiError as e:
            if e.error_code == "users_not_found":
                return None
            raise
        return member_from_payload(data["user"])

    async def open_conversation(self, user_ids: list[str]) -> str:
        """Open (or reuse) a DM with the given users and return its channel id."""
        data = await self._call("conversations.open", json={"users": ",".join(user_ids)})
        return data["channel"]["id"]

    async def post_message(
        self, channel: str, text: str, blocks: list[dict[str, Any]] | None = None
    ) -> None:
        payload: dict[str, Any] = {"channel": channel, "text": text}
        if blocks:
            payload["blocks"] = blocks
        await self._call("chat.postMessage", json=payload)

    async def open_view(self, trigger_id: str, view: dict[str, Any]) -> None:
        await self._call("views.open", json={"trigger_id": trigger_id, "view": view})

    async def respond(self, response_url: str, message: dict[str, Any]) -> None:
        """
        Send a delayed reply to a slash command through its response_url.

        response_url answers with plain text rather than the Web API envelope,
        so only the HTTP status is checked.
        """
        try:
            response = await self._client.post(response_url, json=message)
        except httpx.RequestError as e:
            logger.error("Slack response_url request error", error=str(e))
            raise SlackApiError(f"Could not reach Slack: {e}") from e

        if not response.is_success:
            logger.error("Slack response_url rejected reply", status_code=response.status_code)
            raise SlackApiError(
                f"Slack rejected the reply (HTTP {response.status_code})",
                error_code=f"http_{response.status_code}",
                status_code=response.status_code,
            )
