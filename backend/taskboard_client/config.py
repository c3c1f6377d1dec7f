# taskboard_client/config.py — Client settings
import os
from pathlib import Path

from pydantic import BaseModel


class ClientSettings(BaseModel):
    api_url: str = "http://localhost:8000"
    request_timeout: float = 30.0
    # Seconds a toast stays visible
    toast_seconds: float = 3.0
    search_debounce_seconds: float = 0.3
    # Keeps the board loader visible long enough to register; 0 disables
    min_board_load_seconds: float = 0.8
    session_path: Path = Path.home() / ".taskboard" / "session.json"
    session_max_bytes: int = 5 * 1024 * 1024
    rollback_on_failure: bool = True
    # Send the drop index with reorders so the server keeps a persistent rank
    persist_positions: bool = True

    @classmethod
    def from_env(cls) -> "ClientSettings":
        values = {}
        if os.getenv("TASKBOARD_API_URL"):
            values["api_url"] = os.environ["TASKBOARD_API_URL"]
        if os.getenv("TASKBOARD_SESSION_PATH"):
            values["session_path"] = Path(os.environ["TASKBOARD_SESSION_PATH"])
        if os.getenv("TASKBOARD_REQUEST_TIMEOUT"):
            values["request_timeout"] = float(os.environ["TASKBOARD_REQUEST_TIMEOUT"])
        if os.getenv("TASKBOARD_ROLLBACK_ON_FAILURE"):
            values["rollback_on_failure"] = os.environ["TASKBOARD_ROLLBACK_ON_FAILURE"].lower() == "true"
        return cls(**values)
