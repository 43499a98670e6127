
"""Event dispatcher.

Takes notification events from the detector and sends the matching
announcement to the configured channel.
"""
from typing import Iterable, Optional

from ..models.events import NotificationEvent
from ..slack.messages import build_message
from ..slack.platform import SlackPlatform
from ..slack.sender import post_channel_message


def dispatch_events(events: Iterable[NotificationEvent],
                    platform: SlackPlatform,
                    channel: Optional[str],
                    workspace: str) -> int:
    """Send each event in order. Returns how many were delivered."""
    delivered = 0
    for ev in events:
        if post_channel_message(platform, channel, build_message(ev, workspace)):
            delivered += 1
    return delivered
