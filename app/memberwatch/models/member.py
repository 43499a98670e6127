from dataclasses import dataclass


@dataclass(frozen=True)
class MemberStatus:
    """Last known account status of one workspace member."""

    member_id: str
    deleted: bool
    is_restricted: bool
    observed_at: int  # epoch millis

    def to_json(self) -> dict:
        return {
            "deleted": self.deleted,
            "isRestricted": self.is_restricted,
            "timestamp": self.observed_at,
        }

    @staticmethod
    def from_json(member_id: str, data: dict) -> "MemberStatus":
        if not isinstance(data, dict):
            raise ValueError(f"status for {member_id} is not an object")
        return MemberStatus(
            member_id=member_id,
            deleted=data.get("deleted") is True,
            is_restricted=data.get("isRestricted") is True,
            observed_at=int(data.get("timestamp") or 0),
        )
