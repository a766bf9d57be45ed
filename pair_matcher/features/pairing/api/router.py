"""
Slack entry points for the pairing feature.

Slack expects an answer within three seconds. Anything that needs the
directory runs as a background task: pair runs report back by DM, search and
check answer through the command's response_url.
"""

import html
import json
from typing import Any
from urllib.parse import parse_qs

from fastapi import APIRouter, BackgroundTasks, Depends, Response

from pair_matcher.features.pairing.domain.errors import AuthorizationDenied, PairMatchingError
from pair_matcher.features.pairing.pipeline.parser import parse_pairs
from pair_matcher.features.pairing.pipeline.report import (
    ReportPayload,
    format_error,
    format_search_results,
    format_validation_report,
)
from pair_matcher.features.pairing.services.pairing_service import PairMatchingService
from pair_matcher.features.pairing.services.runtime import get_pairing_service, get_slack_client
from pair_matcher.infrastructure.observability.logging import get_logger
from pair_matcher.security.slack_signature import verify_slack_request
from pair_matcher.services.slack.client import SlackApiError, SlackWebClient

from .views import (
    INTRO_ACTION_ID,
    INTRO_BLOCK_ID,
    PAIR_INPUT_CALLBACK_ID,
    PAIRS_ACTION_ID,
    PAIRS_BLOCK_ID,
    access_denied,
    ephemeral,
    ephemeral_text,
    help_message,
    pair_input_modal,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/slack", tags=["slack"])

# Slash command text arrives as a single line; ';' separates pairs there.
INLINE_PAIR_SEPARATOR = ";"


def _parse_form(body: bytes) -> dict[str, str]:
    parsed = parse_qs(body.decode("utf-8"), keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items() if values}


def inline_pairs_to_lines(text: str) -> str:
    return text.replace(INLINE_PAIR_SEPARATOR, "\n")


def _input_value(values: dict[str, Any], block_id: str, action_id: str) -> str | None:
    return (values.get(block_id) or {}).get(action_id, {}).get("value")


async def _deliver(
    slack: SlackWebClient, response_url: str, user_id: str, payload: ReportPayload
) -> None:
    """Reply through response_url when Slack gave one, otherwise by DM."""
    try:
        if response_url:
            await slack.respond(response_url, ephemeral(payload))
        else:
            await slack.post_message(user_id, payload.text, blocks=payload.blocks)
    except SlackApiError as e:
        logger.error("Could not deliver command reply", caller_id=user_id, error=str(e))


async def search_and_reply(
    service: PairMatchingService,
    slack: SlackWebClient,
    response_url: str,
    user_id: str,
    query: str,
) -> None:
    try:
        payload = format_search_results(query, await service.search(query))
    except (PairMatchingError, SlackApiError) as e:
        logger.error("Directory search failed", caller_id=user_id, error=str(e))
        payload = format_error(str(e))
    await _deliver(slack, response_url, user_id, payload)


async def check_and_reply(
    service: PairMatchingService,
    slack: SlackWebClient,
    response_url: str,
    user_id: str,
    pairs_text: str,
) -> None:
    try:
        payload = format_validation_report(await service.preview(pairs_text))
    except (PairMatchingError, SlackApiError) as e:
        logger.error("Pair check failed", caller_id=user_id, error=str(e))
        payload = format_error(str(e))
    await _deliver(slack, response_url, user_id, payload)


@router.post("/commands")
async def slash_command(
    background_tasks: BackgroundTasks,
    body: bytes = Depends(verify_slack_request),
    service: PairMatchingService = Depends(get_pairing_service),
    slack: SlackWebClient = Depends(get_slack_client),
):
    form = _parse_form(body)
    user_id = form.get("user_id", "")
    response_url = form.get("response_url", "")
    # Slack HTML-escapes &, < and > that the user typed
    text = html.unescape(form.get("text", "")).strip()
    subcommand, _, argument = text.partition(" ")
    subcommand = subcommand.lower()

    logger.info("Slash command received", caller_id=user_id, subcommand=subcommand or "modal")

    try:
        await service.ensure_authorized(user_id)
    except AuthorizationDenied:
        return access_denied()

    if not text:
        try:
            await slack.open_view(form.get("trigger_id", ""), pair_input_modal())
        except SlackApiError as e:
            logger.error("Error opening modal", caller_id=user_id, error=str(e))
            return ephemeral_text("Error opening pair matching form. Please try again.")
        return Response(status_code=200)

    if subcommand == "help":
        return help_message()

    if subcommand == "search":
        query = argument.strip()
        background_tasks.add_task(search_and_reply, service, slack, response_url, user_id, query)
        return ephemeral_text(f"🔍 Searching for `{query}`…")

    if subcommand == "check":
        check_text = inline_pairs_to_lines(argument)
        line_count = len(parse_pairs(check_text))
        if not line_count:
            return ephemeral_text("No pairs to check. Try `/pair-match check @alice, @bob`")
        background_tasks.add_task(
            check_and_reply, service, slack, response_url, user_id, check_text
        )
        return ephemeral_text(f"⏳ Checking {line_count} pair line(s)…")

    pairs_text = inline_pairs_to_lines(text)
    line_count = len(parse_pairs(pairs_text))
    background_tasks.add_task(service.run_and_notify, user_id, pairs_text)
    return ephemeral_text(
        f"⏳ Working on {line_count} pair line(s). I'll DM you the results when done."
    )


@router.post("/interactions")
async def interactions(
    background_tasks: BackgroundTasks,
    body: bytes = Depends(verify_slack_request),
    service: PairMatchingService = Depends(get_pairing_service),
):
    form = _parse_form(body)
    try:
        payload = json.loads(form.get("payload", ""))
    except ValueError:
        logger.warning("Interaction without a JSON payload")
        return Response(status_code=400)

    view = payload.get("view") or {}
    if (
        payload.get("type") != "view_submission"
        or view.get("callback_id") != PAIR_INPUT_CALLBACK_ID
    ):
        return Response(status_code=200)

    user_id = (payload.get("user") or {}).get("id", "")
    values = (view.get("state") or {}).get("values") or {}
    pairs_text = _input_value(values, PAIRS_BLOCK_ID, PAIRS_ACTION_ID) or ""
    intro = _input_value(values, INTRO_BLOCK_ID, INTRO_ACTION_ID)

    try:
        await service.ensure_authorized(user_id)
    except AuthorizationDenied as e:
        return {"response_action": "errors", "errors": {PAIRS_BLOCK_ID: str(e)}}

    if not parse_pairs(pairs_text):
        return {
            "response_action": "errors",
            "errors": {PAIRS_BLOCK_ID: "Enter at least one pair, e.g. @alice, @bob"},
        }

    logger.info("Pair modal submitted", caller_id=user_id)
    background_tasks.add_task(service.run_and_notify, user_id, pairs_text, intro)
    return Response(status_code=200)
