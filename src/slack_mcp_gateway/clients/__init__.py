"""Slack Web API client module"""

from .slack import SlackAPIError, SlackWebClient

__all__ = ["SlackAPIError", "SlackWebClient"]
