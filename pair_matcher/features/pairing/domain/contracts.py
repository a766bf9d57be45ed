"""
Collaborator contracts consumed by the pairing pipeline.

The Slack Web API client implements all three; tests substitute fakes.
"""

from __future__ import annotations

from typing import Any, Protocol

from .models import DirectoryMember


class DirectoryProvider(Protocol):
    async def list_users(self) -> list[DirectoryMember]: ...

    async def lookup_by_email(self, email: str) -> DirectoryMember | None: ...

    async def get_user(self, user_id: str) -> DirectoryMember | None: ...


class ConversationProvider(Protocol):
    async def open_conversation(self, user_ids: list[str]) -> str: ...


class MessageSender(Protocol):
    async def post_message(
        self, channel: str, text: str, blocks: list[dict[str, Any]] | None = None
    ) -> None: ...
