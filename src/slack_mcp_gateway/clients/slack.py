#!/usr/bin/env python3
# MIT License
#
# Copyright (c) 2025 Slack MCP Gateway Contributors
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
Slack Web API client used by tool handlers.
A fresh client is built for every request, scoped to that request's token,
and closed when the request is done.
"""

import logging
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from ..auth.errors import UpstreamUnreachableError
from ..core.listing import Channel
from ..security_utils import CredentialSanitizer

logger = logging.getLogger(__name__)

SLACK_API_BASE_URL = "https://slack.com/api/"

# Slack caps conversations.list pages at 1000 entries
CONVERSATIONS_PAGE_SIZE = 999


class SlackAPIError(Exception):
    """Slack answered with ``ok: false``."""

    def __init__(self, method: str, error: str):
        self.method = method
        self.error = error
        super().__init__(f"{method} failed: {error}")


class SlackWebClient:
    """Minimal async wrapper for the Slack Web API methods the gateway uses."""

    def __init__(
        self,
        token: str,
        base_url: str = SLACK_API_BASE_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Create a client acting with ``token``.

        Args:
            token: Slack user (xoxp-) or bot (xoxb-) token
            base_url: Web API base URL
            timeout: Per-call timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not token:
            raise ValueError("Slack token is required")
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {token}"},
        )

    async def __aenter__(self) -> "SlackWebClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def call(self, method: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Call a Web API method and return its payload.

        Raises:
            UpstreamUnreachableError: On network errors or timeouts
            SlackAPIError: If Slack reports ``ok: false``
        """
        try:
            response = await self._http.post(method, data=params or {})
        except httpx.HTTPError as e:
            logger.error(f"Slack {method} request failed: {CredentialSanitizer.sanitize_error(e)}")
            raise UpstreamUnreachableError(f"{method}: {type(e).__name__}") from e

        if response.status_code == 429:
            raise SlackAPIError(method, "ratelimited")
        if response.status_code >= 400:
            raise SlackAPIError(method, f"http_{response.status_code}")

        try:
            payload = response.json()
        except ValueError:
            raise SlackAPIError(method, "invalid_response") from None

        if not payload.get("ok"):
            error = str(payload.get("error") or "unknown_error")
            logger.warning(f"Slack {method} returned error: {error}")
            raise SlackAPIError(method, error)

        return payload

    async def auth_test(self) -> dict[str, Any]:
        return await self.call("auth.test")

    async def conversations_list(
        self,
        types: list[str],
        exclude_archived: bool = True,
        page_size: int = CONVERSATIONS_PAGE_SIZE,
    ) -> list[Channel]:
        """Fetch every conversation of the given types, following Slack's cursor."""
        channels: list[Channel] = []
        cursor = ""
        while True:
            params: dict[str, Any] = {
                "types": ",".join(types),
                "limit": page_size,
                "exclude_archived": "true" if exclude_archived else "false",
            }
            if cursor:
                params["cursor"] = cursor

            payload = await self.call("conversations.list", params)
            for raw in payload.get("channels") or []:
                channels.append(channel_from_payload(raw))

            cursor = (payload.get("response_metadata") or {}).get("next_cursor") or ""
            if not cursor:
                break

        logger.debug(f"conversations.list returned {len(channels)} channels for types={types}")
        return channels


def channel_from_payload(raw: dict[str, Any]) -> Channel:
    """Convert a ``conversations.list`` entry into a Channel."""
    is_im = bool(raw.get("is_im"))
    is_mpim = bool(raw.get("is_mpim"))
    name = raw.get("name") or raw.get("user") or ""
    if name and not is_im and not is_mpim:
        name = f"#{name}"
    return Channel(
        id=raw.get("id", ""),
        name=name,
        topic=(raw.get("topic") or {}).get("value", ""),
        purpose=(raw.get("purpose") or {}).get("value", ""),
        member_count=int(raw.get("num_members") or 0),
        is_private=bool(raw.get("is_private")),
        is_im=is_im,
        is_mpim=is_mpim,
    )


def workspace_from_url(url: str) -> str:
    """Extract the workspace name from an ``auth.test`` URL.

    ``https://acme.slack.com/`` gives ``acme``.

    Raises:
        ValueError: If the URL has no usable host
    """
    host = urlparse(url).hostname or ""
    if "." not in host:
        raise ValueError(f"failed to parse workspace from URL: {url!r}")
    return host.split(".", 1)[0]
