"""
Block Kit views and canned responses for the pairing command.
"""

from typing import Any

from pair_matcher.features.pairing.pipeline.report import ReportPayload

PAIR_INPUT_CALLBACK_ID = "pair_input_modal"
PAIRS_BLOCK_ID = "pairs_input"
PAIRS_ACTION_ID = "pairs_text"
INTRO_BLOCK_ID = "intro_input"
INTRO_ACTION_ID = "intro_message"

HELP_TEXT = (
    "🎯 *Pair Matcher*\n"
    "• `/pair-match` - open the pairing form\n"
    "• `/pair-match @alice, @bob; @carol, @dan` - pair people directly "
    "(separate pairs with `;`)\n"
    "• `/pair-match check @alice, @bob` - validate pairs without creating DMs\n"
    "• `/pair-match search ali` - look up people in the directory"
)


def _plain(text: str, emoji: bool = True) -> dict[str, Any]:
    return {"type": "plain_text", "text": text, "emoji": emoji}


def pair_input_modal() -> dict[str, Any]:
    return {
        "type": "modal",
        "callback_id": PAIR_INPUT_CALLBACK_ID,
        "title": _plain("🎯 Pair Matcher"),
        "submit": _plain("✨ Create Pairs"),
        "close": _plain("Cancel"),
        "blocks": [
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": "👋 *Welcome to Pair Matcher!*\n\n"
                    "Enter pairs to match using any of these formats:",
                },
            },
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": "• `@user1, @user2` - Using @ mentions\n"
                    "• `user1@company.com, user2@company.com` - Using emails\n"
                    "• `User One, User Two` - Using display names",
                },
            },
            {"type": "divider"},
            {
                "type": "input",
                "block_id": PAIRS_BLOCK_ID,
                "element": {
                    "type": "plain_text_input",
                    "action_id": PAIRS_ACTION_ID,
                    "multiline": True,
                    "placeholder": _plain(
                        "@alice, @bob\n@charlie, @diana\njohn@company.com, jane@company.com",
                        emoji=False,
                    ),
                },
                "label": _plain("👥 Pairs to Match (one per line)"),
            },
            {
                "type": "input",
                "block_id": INTRO_BLOCK_ID,
                "optional": True,
                "element": {
                    "type": "plain_text_input",
                    "action_id": INTRO_ACTION_ID,
                    "multiline": True,
                    "placeholder": _plain(
                        "👋 Hi! You've been paired together for [purpose]. "
                        "This is a great opportunity to connect!",
                        emoji=False,
                    ),
                },
                "label": _plain("💬 Custom Introduction Message (optional)"),
            },
            {
                "type": "context",
                "elements": [
                    {
                        "type": "mrkdwn",
                        "text": "🤖 *Tip:* Use {name1} and {name2} in your message to "
                        "personalize it, or {user1} and {user2} to mention them!",
                    }
                ],
            },
        ],
    }


def ephemeral(payload: ReportPayload) -> dict[str, Any]:
    response: dict[str, Any] = {"response_type": "ephemeral", "text": payload.text}
    if payload.blocks:
        response["blocks"] = payload.blocks
    return response


def ephemeral_text(text: str) -> dict[str, Any]:
    return ephemeral(
        ReportPayload(text=text, blocks=[{"type": "section", "text": {"type": "mrkdwn", "text": text}}])
    )


def access_denied() -> dict[str, Any]:
    return ephemeral(
        ReportPayload(
            text="🔒 Access Denied",
            blocks=[
                {
                    "type": "section",
                    "text": {
                        "type": "mrkdwn",
                        "text": "🔒 *Access Denied*\n\nOnly administrators can use the pair "
                        "matching bot. If you believe this is an error, please contact "
                        "your workspace admin.",
                    },
                }
            ],
        )
    )


def help_message() -> dict[str, Any]:
    return ephemeral_text(HELP_TEXT)
