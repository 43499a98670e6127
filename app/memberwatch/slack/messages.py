"""
Announcement builders.

RULES:
- No network calls
- No logging
- No environment access
- Always return a string (or a list of blocks)
"""

from typing import List

from ..models.events import (
    MemberDeactivated,
    MemberJoined,
    MemberReactivated,
    NotificationEvent,
)


def _mention(member_id: str) -> str:
    return f"<@{member_id}>"


def build_join_message(member_id: str, workspace: str) -> str:
    return f"🎉 {_mention(member_id)} joined {workspace}!"


def build_reactivation_message(member_id: str) -> str:
    return f"🔄 {_mention(member_id)} has reactivated their account!"


def build_deactivation_message(member_id: str) -> str:
    return f"👋 {_mention(member_id)} has deactivated their account. Stink."


def build_message(event: NotificationEvent, workspace: str) -> str:
    if isinstance(event, MemberJoined):
        return build_join_message(event.member_id, workspace)
    if isinstance(event, MemberReactivated):
        return build_reactivation_message(event.member_id)
    if isinstance(event, MemberDeactivated):
        return build_deactivation_message(event.member_id)
    raise TypeError(f"Unsupported notification event: {event!r}")


def build_blocks(text: str) -> List[dict]:
    return [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": text},
        }
    ]
