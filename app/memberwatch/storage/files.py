
import os

STATE_FILENAME = "user-states.json"

def ensure_data_dir(data_dir: str) -> str:
    if not os.path.exists(data_dir):
        os.makedirs(data_dir, exist_ok=True)
    return data_dir

def state_path(data_dir: str) -> str:
    return os.path.join(data_dir, STATE_FILENAME)
