"""
Channel listing: type filtering and cursor pagination.

Pages are cut from the filtered channels ordered by ID, which is the order of
record for cursors. A display sort (e.g. popularity) only reorders the page
that is returned, never the order cursors are computed against.

Channels added or removed between two calls can make a page skip or repeat an
entry; callers accept this.
"""

from __future__ import annotations

import base64
import binascii
import bisect
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Optional, Union

logger = logging.getLogger(__name__)

PUBLIC_CHANNEL = "public_channel"
PRIVATE_CHANNEL = "private_channel"
IM = "im"
MPIM = "mpim"

ALL_CHANNEL_TYPES: tuple[str, ...] = (PUBLIC_CHANNEL, PRIVATE_CHANNEL, IM, MPIM)
DEFAULT_CHANNEL_TYPES: tuple[str, ...] = (PUBLIC_CHANNEL, PRIVATE_CHANNEL)

DEFAULT_LIMIT = 100
MAX_LIMIT = 999

SORT_POPULARITY = "popularity"


@dataclass(frozen=True)
class Channel:
    """A Slack conversation as seen by the listing engine."""

    id: str
    name: str
    topic: str = ""
    purpose: str = ""
    member_count: int = 0
    is_private: bool = False
    is_im: bool = False
    is_mpim: bool = False

    def matches(self, channel_type: str) -> bool:
        if channel_type == PUBLIC_CHANNEL:
            return not self.is_private and not self.is_im and not self.is_mpim
        if channel_type == PRIVATE_CHANNEL:
            return self.is_private and not self.is_im and not self.is_mpim
        if channel_type == IM:
            return self.is_im
        if channel_type == MPIM:
            return self.is_mpim
        return False


@dataclass
class ChannelPage:
    """One page of results plus the cursor for the next one ("" at the end)."""

    channels: list[Channel] = field(default_factory=list)
    next_cursor: str = ""

    @property
    def has_more(self) -> bool:
        return bool(self.next_cursor)


def parse_channel_types(requested: Union[str, Iterable[str], None]) -> list[str]:
    """Normalise requested channel types.

    Unknown types are dropped with a warning. An empty result falls back to
    public and private channels.
    """
    if requested is None:
        raw: Iterable[str] = ()
    elif isinstance(requested, str):
        raw = requested.split(",")
    else:
        raw = requested

    channel_types: list[str] = []
    for value in raw:
        value = value.strip()
        if not value:
            continue
        if value not in ALL_CHANNEL_TYPES:
            logger.warning(f"Invalid channel type ignored: {value}")
            continue
        if value not in channel_types:
            channel_types.append(value)

    if not channel_types:
        logger.debug("No valid channel types provided, using defaults")
        channel_types = list(DEFAULT_CHANNEL_TYPES)

    return channel_types


def normalize_limit(limit: Optional[int]) -> int:
    """Apply the default (100) and the hard cap (999) to a page size."""
    if not limit or limit < 0:
        return DEFAULT_LIMIT
    if limit > MAX_LIMIT:
        logger.warning(f"Limit exceeds maximum, capping to {MAX_LIMIT} (requested={limit})")
        return MAX_LIMIT
    return limit


def encode_cursor(channel_id: str) -> str:
    return base64.b64encode(channel_id.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> Optional[str]:
    """Decode a cursor into the last returned channel ID, or None if invalid."""
    try:
        return base64.b64decode(cursor.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as e:
        logger.warning(f"Failed to decode cursor, restarting from the beginning: {e}")
        return None


def filter_channels_by_types(
    channels: Iterable[Channel], channel_types: Iterable[str]
) -> list[Channel]:
    """Keep channels that match at least one of ``channel_types``."""
    wanted = set(channel_types)
    result = [ch for ch in channels if any(ch.matches(t) for t in wanted)]
    logger.debug(f"Channel filtering complete: types={sorted(wanted)}, output={len(result)}")
    return result


def paginate_channels(
    channels: Sequence[Channel], cursor: Optional[str], limit: int
) -> ChannelPage:
    """Cut one page out of ``channels`` ordered by ID.

    The page starts after the channel ID encoded in ``cursor``; an
    undecodable cursor starts from the beginning.
    """
    ordered = sorted(channels, key=lambda ch: ch.id)

    start = 0
    if cursor:
        last_id = decode_cursor(cursor)
        if last_id is not None:
            start = bisect.bisect_right([ch.id for ch in ordered], last_id)

    end = min(start + limit, len(ordered))
    page = ordered[start:end]

    next_cursor = ""
    if end < len(ordered):
        next_cursor = encode_cursor(ordered[end - 1].id)

    logger.debug(
        f"Pagination complete: total={len(ordered)}, start={start}, end={end}, "
        f"has_more={bool(next_cursor)}"
    )
    return ChannelPage(channels=page, next_cursor=next_cursor)


def sort_for_display(channels: list[Channel], sort: Optional[str]) -> list[Channel]:
    """Apply the caller's display order to a page."""
    if sort == SORT_POPULARITY:
        return sorted(channels, key=lambda ch: ch.member_count, reverse=True)
    return list(channels)


def list_channels(
    channels: Iterable[Channel],
    channel_types: Union[str, Iterable[str], None] = None,
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
    sort: Optional[str] = None,
) -> ChannelPage:
    """Filter, paginate and display-sort a channel collection."""
    types = parse_channel_types(channel_types)
    page_size = normalize_limit(limit)
    filtered = filter_channels_by_types(channels, types)
    page = paginate_channels(filtered, cursor, page_size)
    page.channels = sort_for_display(page.channels, sort)
    return page
