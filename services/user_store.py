# services/user_store.py

"""User record persistence: one row per email, written through atomic upserts."""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Iterator
from uuid import UUID

import asyncpg

from database import Database
from models.schemas import UserRecord
from services.errors import ConflictError, StoreUnavailableError

logger = logging.getLogger(__name__)

# Columns an upsert may write besides the email key.
UPSERT_COLUMNS = ("full_name", "country", "profession", "source", "provider")

USER_COLUMNS = "id, email, full_name, country, profession, source, provider, registered_at"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserStore:
    """Create-or-update access to the ``users`` table keyed by email."""

    def __init__(self, database: Database):
        self._db = database

    async def upsert(self, email: str, fields: dict[str, Any] | None = None) -> UserRecord:
        """
        Insert a record for ``email`` or overwrite exactly ``fields`` on the existing one.

        A single INSERT ... ON CONFLICT statement, so concurrent calls for the
        same email always land on one row. ``registered_at`` and ``id`` are only
        set by the insert branch.
        """
        fields = dict(fields or {})
        unknown = set(fields) - set(UPSERT_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot upsert unknown user fields: {sorted(unknown)}")

        columns = ["email", *fields]
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
        if fields:
            assignments = ", ".join(f"{column} = EXCLUDED.{column}" for column in fields)
        else:
            # No-op update so RETURNING also yields the existing row.
            assignments = "email = EXCLUDED.email"

        row = await self._fetchrow(
            f"""
            INSERT INTO users ({", ".join(columns)})
            VALUES ({placeholders})
            ON CONFLICT (email) DO UPDATE SET {assignments}
            RETURNING {USER_COLUMNS}
            """,
            normalize_email(email),
            *fields.values(),
        )
        return UserRecord.model_validate(dict(row))

    async def get_by_id(self, user_id: UUID) -> UserRecord | None:
        row = await self._fetchrow(
            f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
            user_id,
        )
        return UserRecord.model_validate(dict(row)) if row else None

    async def get_by_email(self, email: str) -> UserRecord | None:
        row = await self._fetchrow(
            f"SELECT {USER_COLUMNS} FROM users WHERE email = $1",
            normalize_email(email),
        )
        return UserRecord.model_validate(dict(row)) if row else None

    async def _fetchrow(self, query: str, *args):
        with store_errors():
            return await self._db.fetchrow(query, *args)


@contextmanager
def store_errors() -> Iterator[None]:
    """Translate driver failures into service errors."""
    try:
        yield
    except asyncpg.UniqueViolationError as exc:
        raise ConflictError("User record was modified concurrently") from exc
    except (
        OSError,
        asyncio.TimeoutError,
        asyncpg.InterfaceError,
        asyncpg.PostgresError,
    ) as exc:
        logger.error("User store call failed: %s", exc)
        raise StoreUnavailableError("User store unavailable") from exc
