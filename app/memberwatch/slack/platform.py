"""
Slack platform adapter.

Wraps ``slack_sdk.WebClient`` with the two calls memberwatch needs and turns
raw Events API payloads into model objects.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from slack_sdk import WebClient

from ..models.events import MemberJoined, MemberObservation

log = logging.getLogger("memberwatch.slack")

USERS_LIST_PAGE_SIZE = 200


@dataclass
class MemberRecord:
    """One entry of a users.list page."""

    member_id: Optional[str]
    deleted: Optional[bool]
    is_restricted: Optional[bool]


@dataclass
class MemberPage:
    members: List[MemberRecord] = field(default_factory=list)
    next_cursor: Optional[str] = None


def _optional_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


class SlackPlatform:
    """
    Thin wrapper around the Slack Web API.

    Errors from slack_sdk (SlackApiError, network errors) propagate; callers
    decide whether they are fatal.
    """

    def __init__(self, client: WebClient):
        self.client = client

    def list_members(self, cursor: Optional[str] = None) -> MemberPage:
        kwargs: Dict[str, Any] = {"limit": USERS_LIST_PAGE_SIZE}
        if cursor:
            kwargs["cursor"] = cursor
        resp = self.client.users_list(**kwargs)

        members = [
            MemberRecord(
                member_id=user.get("id") or None,
                deleted=_optional_bool(user.get("deleted")),
                is_restricted=_optional_bool(user.get("is_restricted")),
            )
            for user in (resp.get("members") or [])
        ]
        next_cursor = (resp.get("response_metadata") or {}).get("next_cursor") or None
        return MemberPage(members=members, next_cursor=next_cursor)

    def post_message(self, channel: str, text: str, blocks: Optional[List[dict]] = None) -> None:
        self.client.chat_postMessage(channel=channel, text=text, blocks=blocks)


def parse_event(event: Dict[str, Any]) -> Optional[Union[MemberJoined, MemberObservation]]:
    """
    Map an Events API inner event to a model object.

    Returns None for event types memberwatch does not handle and for
    payloads without a user id.
    """
    etype = event.get("type")
    if etype not in ("team_join", "user_change"):
        return None

    user = event.get("user")
    if not isinstance(user, dict) or not user.get("id"):
        log.warning("Ignoring %s event without a user id", etype)
        return None

    if etype == "team_join":
        return MemberJoined(user["id"])

    return MemberObservation(
        member_id=user["id"],
        deleted=_optional_bool(user.get("deleted")),
        is_restricted=_optional_bool(user.get("is_restricted")),
    )
