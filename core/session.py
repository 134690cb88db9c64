"""Who is logged in.

The session is a plain value passed into every component that needs it.
Only login and logout change it; everything else reads it.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from core.errors import Unauthenticated

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserSession:
    """An authenticated user."""

    user_id: str
    email: Optional[str] = None
    access_token: Optional[str] = None


class SessionContext:
    """Holds the current UserSession, if any."""

    def __init__(self, session: Optional[UserSession] = None):
        self._session = session

    @property
    def current(self) -> Optional[UserSession]:
        return self._session

    def login(self, session: UserSession) -> None:
        self._session = session
        logger.info(f"Logged in as {session.user_id}")

    def logout(self) -> None:
        if self._session:
            logger.info(f"Logged out {self._session.user_id}")
        self._session = None

    def require_user(self) -> UserSession:
        """Return the current session or raise Unauthenticated."""
        if self._session is None:
            raise Unauthenticated()
        return self._session

    # ==================== PERSISTENCE (CLI) ====================

    @classmethod
    def load(cls, path: Path) -> "SessionContext":
        """Restore the session saved by the CLI, or an empty context."""
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {path}: {e}")
            return cls()
        if not isinstance(data, dict) or not data.get("user_id"):
            return cls()
        return cls(
            UserSession(
                user_id=str(data["user_id"]),
                email=data.get("email"),
                access_token=data.get("access_token"),
            )
        )

    def save(self, path: Path) -> None:
        if self._session is None:
            if path.exists():
                path.unlink()
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "user_id": self._session.user_id,
            "email": self._session.email,
            "access_token": self._session.access_token,
        }
        path.write_text(json.dumps(payload), encoding="utf-8")
