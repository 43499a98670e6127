from .files import ensure_data_dir, state_path
from .state import JsonStateFile, MemberStateStore


def open_store(data_dir: str) -> MemberStateStore:
    """Create the data directory if needed and load the member state file in it."""
    ensure_data_dir(data_dir)
    store = MemberStateStore(JsonStateFile(state_path(data_dir)))
    store.load()
    return store

__all__ = ["JsonStateFile", "MemberStateStore", "open_store"]
