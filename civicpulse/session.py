# Persisted login session (token + user profile)

import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .config import SESSION_FILE
from .errors import RedirectRequired
from .models import ApiModel, User

logger = logging.getLogger(__name__)

SIGNIN = "login"


class Session(ApiModel):
    token: str
    user: User


class SessionStore:
    """JSON file holding the current session; absent file means logged out."""

    def __init__(self, path: Path = SESSION_FILE):
        self.path = Path(path)

    def load(self) -> Optional[Session]:
        if not self.path.is_file():
            return None
        try:
            return Session.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (ValidationError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return None

    def save(self, session: Session) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(session.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        logger.info("Session saved for user %s", session.user.id)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info("Session cleared")

    def require(self, role: Optional[str] = None) -> Session:
        """Current session, or ``RedirectRequired`` when missing or for another role."""
        session = self.load()
        if session is None:
            raise RedirectRequired(SIGNIN, "Please login first.")
        if role is not None and session.user.role != role.upper():
            raise RedirectRequired(SIGNIN, f"Access denied. This page is for {role.lower()}s only.")
        return session
