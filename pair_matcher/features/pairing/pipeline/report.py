"""
Report formatting - renders pipeline results as Slack Block Kit payloads.

Pure functions only: callers pass timestamps in and post the payload out.
Problems are always listed before successes.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pair_matcher.features.pairing.domain.models import (
    ExecutionReport,
    UserIdentity,
    ValidatedPair,
)

# Slack rejects section text longer than 3000 characters
SECTION_TEXT_LIMIT = 3000

RESULTS_HEADER = "🎯 Pair Matching Results"
PREVIEW_HEADER = "🔎 Pair Check"
FAILURE_HEADER = "⚠️ Failed to create DMs for:"
SUCCESS_HEADER = "🎉 Successfully created DMs for:"


@dataclass(slots=True)
class ReportPayload:
    text: str
    blocks: list[dict[str, Any]] = field(default_factory=list)


def _header(text: str) -> dict[str, Any]:
    return {"type": "header", "text": {"type": "plain_text", "text": text, "emoji": True}}


def _context(text: str) -> dict[str, Any]:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": text}]}


def _counts(*fields: tuple[str, int]) -> dict[str, Any]:
    return {
        "type": "section",
        "fields": [
            {"type": "mrkdwn", "text": f"*{label}:*\n{count} pairs"} for label, count in fields
        ],
    }


def _section(text: str) -> dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _bulleted_sections(title: str, items: Iterable[str]) -> list[dict[str, Any]]:
    """Render a titled bullet list, splitting it across sections when long."""
    sections: list[dict[str, Any]] = []
    current = f"*{title}*"
    for item in items:
        bullet = f"• {item}"[:SECTION_TEXT_LIMIT]
        if len(current) + 1 + len(bullet) > SECTION_TEXT_LIMIT:
            sections.append(_section(current))
            current = bullet
        else:
            current = f"{current}\n{bullet}"
    sections.append(_section(current))
    return sections


def _rejection_line(pair: ValidatedPair) -> str:
    return f"Line {pair.line_number} `{pair.raw_text}`: {pair.describe_error()}"


def format_execution_report(
    report: ExecutionReport,
    rejected: Sequence[ValidatedPair] = (),
    completed_at: datetime | None = None,
    bot_name: str = "Pair Matcher Bot",
) -> ReportPayload:
    """
    Summarize a pairing run.

    Lines rejected by validation count as failures alongside pairs whose
    conversation could not be created.
    """
    failure_count = report.failure_count + len(rejected)
    success_count = report.success_count

    blocks = [
        _header(RESULTS_HEADER),
        _counts(("✅ Successful", success_count), ("❌ Failed", failure_count)),
    ]

    failures = [_rejection_line(pair) for pair in rejected]
    failures.extend(
        f"Line {outcome.line_number} {outcome.pair_label}: {outcome.error_message}"
        for outcome in report.failures
    )
    if failures:
        blocks.extend(_bulleted_sections(FAILURE_HEADER, failures))

    if report.successes:
        blocks.extend(
            _bulleted_sections(SUCCESS_HEADER, (outcome.pair_label for outcome in report.successes))
        )

    footer = f"🤖 {bot_name}"
    if completed_at is not None:
        stamp = completed_at.strftime("%Y-%m-%d %H:%M %Z").strip()
        footer = f"🤖 Completed at {stamp} • {bot_name}"
    blocks.append(_context(footer))

    text = f"Pair matching complete! ✅ {success_count} successful, ❌ {failure_count} failed"
    return ReportPayload(text=text, blocks=blocks)


def format_validation_report(pairs: Sequence[ValidatedPair]) -> ReportPayload:
    """Preview of validated lines without creating any conversation."""
    invalid = [pair for pair in pairs if not pair.valid]
    valid = [pair for pair in pairs if pair.valid]

    blocks = [
        _header(PREVIEW_HEADER),
        _counts(("✅ Ready", len(valid)), ("❌ Invalid", len(invalid))),
    ]
    if invalid:
        blocks.extend(_bulleted_sections("⚠️ Needs attention:", map(_rejection_line, invalid)))
    if valid:
        blocks.extend(
            _bulleted_sections(
                "👥 Ready to match:",
                (f"Line {pair.line_number}: {pair.label}" for pair in valid),
            )
        )

    text = f"Pair check: {len(valid)} ready, {len(invalid)} invalid"
    return ReportPayload(text=text, blocks=blocks)


def format_search_results(query: str, users: Sequence[UserIdentity]) -> ReportPayload:
    if not users:
        text = f"No users found matching `{query}`"
        return ReportPayload(text=text, blocks=[_section(text)])

    items = []
    for user in users:
        details = [f"@{user.handle}"]
        if user.email:
            details.append(user.email)
        items.append(f"*{user.preferred_name}* ({', '.join(details)}) `{user.id}`")

    text = f"{len(users)} users matching `{query}`"
    return ReportPayload(text=text, blocks=_bulleted_sections(f"🔎 {text}", items))


def format_error(message: str) -> ReportPayload:
    text = f"Error: {message}"
    return ReportPayload(
        text=text,
        blocks=[_section(f"⚠️ *{text}*")],
    )
