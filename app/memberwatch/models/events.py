
from dataclasses import dataclass
from typing import Optional, Union

@dataclass(frozen=True)
class MemberObservation:
    """A member's status fields as seen on a platform event.

    ``None`` means the payload did not carry the field at all.
    """
    member_id: str
    deleted: Optional[bool] = None
    is_restricted: Optional[bool] = None

@dataclass(frozen=True)
class MemberJoined:
    member_id: str

@dataclass(frozen=True)
class MemberReactivated:
    member_id: str

@dataclass(frozen=True)
class MemberDeactivated:
    member_id: str

NotificationEvent = Union[MemberJoined, MemberReactivated, MemberDeactivated]
