# taskboard_client/session.py — Local session record so a restart skips login
import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from taskboard_client.errors import StorageQuotaError
from taskboard_client.models import Session

logger = logging.getLogger("taskboard.client.session")


class SessionStore:
    """One JSON file holding the signed-in user's profile and tokens."""

    def __init__(self, path: Path, max_bytes: int = 5 * 1024 * 1024):
        self.path = Path(path)
        self.max_bytes = max_bytes

    def load(self) -> Optional[Session]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Could not read session {self.path}: {e}")
            return None
        try:
            return Session.model_validate(json.loads(raw))
        except (ValueError, ValidationError):
            logger.warning(f"Discarding unreadable session record {self.path}")
            self.clear()
            return None

    def save(self, session: Session) -> None:
        data = json.dumps(session.model_dump(by_alias=True), ensure_ascii=False)
        if len(data.encode("utf-8")) > self.max_bytes:
            raise StorageQuotaError(f"Session record exceeds {self.max_bytes} bytes")
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(data, encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageQuotaError(str(e)) from e

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
