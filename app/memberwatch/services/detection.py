
"""Reactivation detection.

One observation of a member is normalized against the stored status and
turned into at most one notification event. The new status is always
committed, whether or not anything fired.
"""
import logging
import time
from typing import List, Optional, Tuple

from ..models.events import (
    MemberDeactivated,
    MemberJoined,
    MemberObservation,
    MemberReactivated,
    NotificationEvent,
)
from ..models.member import MemberStatus
from ..storage.state import MemberStateStore

log = logging.getLogger("memberwatch.detection")


def now_millis() -> int:
    return int(time.time() * 1000)


def normalize(previous: Optional[MemberStatus],
              observation: MemberObservation) -> Tuple[bool, bool]:
    """Return (deleted, is_restricted) with omitted fields filled in.

    A payload without ``deleted`` keeps the stored value, so an incomplete
    event is never read as a transition.
    """
    if observation.deleted is not None:
        deleted = observation.deleted is True
    elif previous is not None:
        deleted = previous.deleted
    else:
        deleted = False
    return deleted, observation.is_restricted is True


def decide(previous: Optional[MemberStatus],
           observation: MemberObservation,
           now_ms: int) -> Tuple[MemberStatus, List[NotificationEvent]]:
    """Pure decision: (previous status, observation) -> (new status, events)."""
    deleted, is_restricted = normalize(previous, observation)
    events: List[NotificationEvent] = []

    # First sight of an active member is not a reactivation.
    if not deleted and previous is not None and previous.deleted:
        events.append(MemberReactivated(observation.member_id))

    # Only an explicit deleted=true announces; a filled-in value never does.
    if observation.deleted is True:
        events.append(MemberDeactivated(observation.member_id))

    status = MemberStatus(
        member_id=observation.member_id,
        deleted=deleted,
        is_restricted=is_restricted,
        observed_at=now_ms,
    )
    return status, events


def apply_observation(store: MemberStateStore,
                      observation: MemberObservation,
                      now_ms: Optional[int] = None) -> List[NotificationEvent]:
    previous = store.get(observation.member_id)
    log.debug(
        "user_change for %s: deleted=%s is_restricted=%s previous=%s",
        observation.member_id,
        observation.deleted,
        observation.is_restricted,
        previous,
    )

    status, events = decide(previous, observation, now_ms if now_ms is not None else now_millis())

    for ev in events:
        if isinstance(ev, MemberReactivated):
            log.info("Reactivation detected for %s", ev.member_id)
        elif isinstance(ev, MemberDeactivated):
            log.info("Deactivation detected for %s", ev.member_id)

    store.set(status)
    return events


def handle_member_joined(member_id: str) -> List[NotificationEvent]:
    log.info("Member joined: %s", member_id)
    return [MemberJoined(member_id)]
