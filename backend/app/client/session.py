"""
Client-side session state.

Holds the token and user identity returned by validateOTP, optionally
persisted to a JSON file so a CLI can stay logged in between runs. Logging
out only forgets the token locally; the server keeps accepting it until it
expires.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


class SessionContext:

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self.token: Optional[str] = None
        self.user_id: Optional[int] = None
        self.user: Optional[Dict[str, Any]] = None

    @classmethod
    def load(cls, path: Union[str, Path]) -> "SessionContext":
        """Restore a session from `path`. A missing or unreadable file gives a logged-out session."""
        session = cls(path)
        if not session.path.exists():
            return session
        try:
            data = json.loads(session.path.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"[Client] Ignoring unreadable session file {session.path}: {e}")
            return session

        if data.get("token") and data.get("user_id") is not None:
            session.token = data["token"]
            session.user_id = data["user_id"]
            session.user = data.get("user")
        return session

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user_id is not None

    def set_session(self, token: str, user_id: int, user: Optional[Dict[str, Any]] = None) -> None:
        self.token = token
        self.user_id = user_id
        self.user = user
        self.save()

    def save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"token": self.token, "user_id": self.user_id, "user": self.user}
        # Token file is readable by the owner only
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(payload, f)

    def logout(self) -> None:
        self.token = None
        self.user_id = None
        self.user = None
        if self.path is not None:
            self.path.unlink(missing_ok=True)

    def auth_headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}
