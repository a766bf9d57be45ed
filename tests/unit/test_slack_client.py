import json

import httpx
import pytest

from pair_matcher.services.slack.client import SlackApiError, SlackWebClient, member_from_payload


def _member(user_id: str, name: str, **extra) -> dict:
    profile = extra.pop("profile", {})
    return {"id": user_id, "name": name, "profile": profile, **extra}


def _client(handler) -> SlackWebClient:
    return SlackWebClient(
        token="xoxb-test",
        base_url="https://slack.test/api",
        transport=httpx.MockTransport(handler),
    )


def test_member_from_payload_flags_automated_accounts():
    bot = member_from_payload(_member("B1", "robot", is_bot=True))
    app_user = member_from_payload(_member("U5", "app", is_app_user=True))
    slackbot = member_from_payload(_member("USLACKBOT", "slackbot"))
    person = member_from_payload(
        _member(
            "U1",
            "alice",
            real_name="Alice A",
            profile={"display_name": "Ali", "email": "alice@co.com"},
        )
    )

    assert bot.is_automated and app_user.is_automated and slackbot.is_automated
    assert person.is_automated is False
    assert (person.handle, person.display_name, person.real_name, person.email) == (
        "alice",
        "Ali",
        "Alice A",
        "alice@co.com",
    )


@pytest.mark.asyncio
async def test_list_users_follows_cursor_pagination():
    seen_cursors = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/users.list"
        assert request.headers["Authorization"] == "Bearer xoxb-test"
        cursor = request.url.params.get("cursor")
        seen_cursors.append(cursor)
        if cursor is None:
            return httpx.Response(
                200,
                json={
                    "ok": True,
                    "members": [_member("U1", "alice")],
                    "response_metadata": {"next_cursor": "page2"},
                },
            )
        return httpx.Response(
            200,
            json={
                "ok": True,
                "members": [_member("U2", "bob", deleted=True)],
                "response_metadata": {"next_cursor": ""},
            },
        )

    client = _client(handler)
    members = await client.list_users()
    await client.close()

    assert seen_cursors == [None, "page2"]
    assert [member.id for member in members] == ["U1", "U2"]
    assert members[1].deleted is True


@pytest.mark.asyncio
async def test_ok_false_raises_slack_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": False, "error": "missing_scope"})

    client = _client(handler)
    with pytest.raises(SlackApiError) as exc_info:
        await client.list_users()

    assert exc_info.value.error_code == "missing_scope"
    assert "permission scope" in str(exc_info.value)


@pytest.mark.asyncio
async def test_rate_limited_http_status_is_reported():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"ok": False}, headers={"Retry-After": "3"})

    client = _client(handler)
    with pytest.raises(SlackApiError) as exc_info:
        await client.open_conversation(["U1", "U2"])

    assert exc_info.value.error_code == "ratelimited"
    assert exc_info.value.status_code == 429


@pytest.mark.asyncio
async def test_lookup_by_email_returns_none_when_missing():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": False, "error": "users_not_found"})

    client = _client(handler)

    assert await client.lookup_by_email("ghost@co.com") is None


@pytest.mark.asyncio
async def test_open_conversation_and_post_message_payloads():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append((request.url.path, json.loads(request.content)))
        if request.url.path.endswith("conversations.open"):
            return httpx.Response(200, json={"ok": True, "channel": {"id": "D123"}})
        return httpx.Response(200, json={"ok": True, "ts": "1.0"})

    client = _client(handler)
    channel = await client.open_conversation(["U1", "U2"])
    await client.post_message(channel, "hello", blocks=[{"type": "divider"}])

    assert channel == "D123"
    assert requests[0] == ("/api/conversations.open", {"users": "U1,U2"})
    assert requests[1] == (
        "/api/chat.postMessage",
        {"channel": "D123", "text": "hello", "blocks": [{"type": "divider"}]},
    )


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    client = _client(handler)
    with pytest.raises(SlackApiError, match="Could not reach Slack"):
        await client.get_user("U1")


@pytest.mark.asyncio
async def test_respond_posts_to_response_url():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, text="ok")

    client = _client(handler)
    await client.respond("https://hooks.slack.test/commands/T1/abc", {"text": "hi"})

    (request,) = requests
    assert str(request.url) == "https://hooks.slack.test/commands/T1/abc"
    assert json.loads(request.content) == {"text": "hi"}


@pytest.mark.asyncio
async def test_respond_raises_on_rejected_reply():
    client = _client(lambda request: httpx.Response(404, text="expired_url"))

    with pytest.raises(SlackApiError) as exc_info:
        await client.respond("https://hooks.slack.test/commands/T1/abc", {"text": "hi"})

    assert exc_info.value.status_code == 404
