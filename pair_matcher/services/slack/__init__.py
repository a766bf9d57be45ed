"""
Slack Web API integration.
"""

from .client import SlackApiError, SlackWebClient, member_from_payload

__all__ = ["SlackApiError", "SlackWebClient", "member_from_payload"]
