"""
Response formatting utilities for LLM-optimized output
"""

import csv
import io

from .core.listing import ChannelPage

CHANNEL_CSV_HEADER = ("id", "name", "topic", "purpose", "memberCount", "cursor")


def format_channel_page(page: ChannelPage) -> str:
    """Render a channel page as CSV.

    The next-page cursor, when there is one, goes in the ``cursor`` column of
    the last row.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CHANNEL_CSV_HEADER)

    last = len(page.channels) - 1
    for index, channel in enumerate(page.channels):
        cursor = page.next_cursor if index == last else ""
        writer.writerow(
            (
                channel.id,
                channel.name,
                channel.topic,
                channel.purpose,
                channel.member_count,
                cursor,
            )
        )

    return buffer.getvalue()
