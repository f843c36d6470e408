# services/session_store.py

"""Server-side login sessions bound to user ids."""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from database import Database
from models.schemas import UserRecord
from services.errors import UserNotFoundError
from services.user_store import UserStore, store_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionToken:
    session_id: str
    cookie_value: str
    expires_at: datetime


class SessionStore:
    """
    Sessions live in the ``sessions`` table; the client only holds a signed id.

    Expiry is absolute: ``max_age_seconds`` from issuance, never extended.
    """

    def __init__(
        self,
        database: Database,
        users: UserStore,
        secret: str,
        max_age_seconds: int,
    ):
        self._db = database
        self._users = users
        self._secret = secret.encode("utf-8")
        self.max_age_seconds = max_age_seconds

    async def establish(self, user: UserRecord) -> SessionToken:
        session_id = secrets.token_urlsafe(32)
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=self.max_age_seconds)
        with store_errors():
            await self._db.execute(
                """
                INSERT INTO sessions (id, user_id, expires_at)
                VALUES ($1, $2, $3)
                """,
                session_id,
                user.id,
                expires_at,
            )
        return SessionToken(
            session_id=session_id,
            cookie_value=f"{session_id}.{self._sign(session_id)}",
            expires_at=expires_at,
        )

    async def resolve(self, cookie_value: str | None) -> UserRecord | None:
        """
        Return the user behind a session cookie, or None for no valid session.

        Raises UserNotFoundError if the session outlived its user record.
        """
        session_id = self._unsign(cookie_value)
        if session_id is None:
            return None

        with store_errors():
            row = await self._db.fetchrow(
                "SELECT user_id FROM sessions WHERE id = $1 AND expires_at > NOW()",
                session_id,
            )
        if not row:
            return None

        user = await self._users.get_by_id(row["user_id"])
        if user is None:
            raise UserNotFoundError("User not found")
        return user

    async def purge_expired(self) -> int:
        with store_errors():
            result = await self._db.execute("DELETE FROM sessions WHERE expires_at <= NOW()")
        # asyncpg returns "DELETE N"
        return int(result.split()[-1]) if result else 0

    def _sign(self, session_id: str) -> str:
        return hmac.new(self._secret, session_id.encode("utf-8"), hashlib.sha256).hexdigest()

    def _unsign(self, cookie_value: str | None) -> str | None:
        if not cookie_value:
            return None
        session_id, _, signature = cookie_value.rpartition(".")
        expected = self._sign(session_id)
        if not session_id or not hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8")):
            logger.debug("Rejected session cookie with bad signature")
            return None
        return session_id
