
"""Startup reconciliation.

Seeds the state store with members Slack already reports as deactivated,
so a later reactivation finds a "previously deleted" baseline even if the
deactivation happened while memberwatch was not running. Never notifies.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from ..models.member import MemberStatus
from ..slack.platform import SlackPlatform
from ..storage.state import MemberStateStore
from .detection import now_millis

log = logging.getLogger("memberwatch.reconcile")


@dataclass
class ReconcileResult:
    seeded: int = 0
    pages: int = 0
    completed: bool = False


def seed_deactivated_members(store: MemberStateStore,
                             platform: SlackPlatform,
                             now_ms: Optional[int] = None) -> ReconcileResult:
    result = ReconcileResult()
    now_ms = now_ms if now_ms is not None else now_millis()
    cursor = None

    try:
        while True:
            page = platform.list_members(cursor)
            result.pages += 1

            for member in page.members:
                if not member.member_id:
                    continue
                if member.deleted is not True:
                    continue
                existing = store.get(member.member_id)
                if existing is not None and existing.deleted:
                    continue
                store.put(MemberStatus(
                    member_id=member.member_id,
                    deleted=True,
                    is_restricted=member.is_restricted is True,
                    observed_at=now_ms,
                ))
                result.seeded += 1

            cursor = page.next_cursor
            if not cursor:
                break
        result.completed = True
    except Exception:
        log.exception(
            "Error seeding deactivated members from Slack (page %d); continuing with partial state",
            result.pages + 1,
        )

    if result.seeded:
        store.save()
        log.info("Seeded %d deactivated member(s) from Slack", result.seeded)
    else:
        log.info("No new deactivated members to seed (%d page(s) scanned)", result.pages)
    return result
