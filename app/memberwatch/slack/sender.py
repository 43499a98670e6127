import logging
from typing import Optional

from slack_sdk.errors import SlackApiError

from .messages import build_blocks
from .platform import SlackPlatform

log = logging.getLogger("memberwatch.slack.sender")


def post_channel_message(platform: SlackPlatform, channel: Optional[str], text: str) -> bool:
    """
    Post one announcement to the notification channel.

    This is the ONLY supported send path. Delivery is best-effort: failures
    are logged and never raised or retried.
    """
    if not channel:
        log.error("No notification channel configured; dropping message: %s", text)
        return False

    try:
        platform.post_message(channel, text, blocks=build_blocks(text))
    except SlackApiError as exc:
        log.error("Slack rejected message to %s: %s", channel, exc.response.get("error"))
        return False
    except Exception:
        log.exception("Unexpected error while posting to %s", channel)
        return False

    log.info("Message delivered to %s", channel)
    return True
