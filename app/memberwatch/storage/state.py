
import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from ..models.member import MemberStatus

log = logging.getLogger("memberwatch.storage")


class JsonStateFile:
    """Persistence backend: one JSON object on disk."""

    def __init__(self, path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> dict:
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def write(self, raw: dict) -> None:
        """Write to a sibling temp file and swap it in, so readers never see half a file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(raw, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            try:
                tmp.unlink()
            except OSError:
                pass
            raise


class MemberStateStore:
    """member_id -> MemberStatus, flushed to the backend on every change.

    Storage failures are logged and swallowed: a bad file means starting
    with empty knowledge, a failed write means keeping the in-memory state.
    """

    def __init__(self, backend: JsonStateFile):
        self.backend = backend
        self._statuses: Dict[str, MemberStatus] = {}

    def load(self) -> Dict[str, MemberStatus]:
        self._statuses = self._read_backend()
        log.info("Loaded %d member status(es) from %s", len(self._statuses), self.backend.path)
        return dict(self._statuses)

    def _read_backend(self) -> Dict[str, MemberStatus]:
        if not self.backend.exists():
            return {}
        try:
            raw = self.backend.read()
        except Exception:
            log.exception("Error loading member states from %s", self.backend.path)
            return {}

        if not isinstance(raw, dict):
            log.error(
                "Member state file %s does not hold a JSON object; starting empty",
                self.backend.path,
            )
            return {}

        statuses: Dict[str, MemberStatus] = {}
        for member_id, data in raw.items():
            try:
                statuses[member_id] = MemberStatus.from_json(member_id, data)
            except (TypeError, ValueError):
                log.warning("Skipping malformed state entry for %s: %r", member_id, data)
        return statuses

    def save(self) -> bool:
        raw = {member_id: status.to_json() for member_id, status in self._statuses.items()}
        try:
            self.backend.write(raw)
        except (OSError, TypeError, ValueError):
            log.exception("Error saving member states to %s", self.backend.path)
            return False
        return True

    def get(self, member_id: str) -> Optional[MemberStatus]:
        return self._statuses.get(member_id)

    def put(self, status: MemberStatus) -> MemberStatus:
        """Replace a member's status in memory only. Callers must save()."""
        previous = self._statuses.get(status.member_id)
        if previous is not None and status.observed_at < previous.observed_at:
            # clock stepped backwards; keep timestamps monotonic per member
            status = MemberStatus(
                member_id=status.member_id,
                deleted=status.deleted,
                is_restricted=status.is_restricted,
                observed_at=previous.observed_at,
            )
        self._statuses[status.member_id] = status
        return status

    def set(self, status: MemberStatus) -> MemberStatus:
        stored = self.put(status)
        self.save()
        return stored

    def snapshot(self) -> Dict[str, MemberStatus]:
        return dict(self._statuses)

    def __len__(self) -> int:
        return len(self._statuses)

    def __contains__(self, member_id) -> bool:
        return member_id in self._statuses
