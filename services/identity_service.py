# services/identity_service.py

"""Resolve third-party identity assertions to user records."""

from __future__ import annotations

import logging

from models.schemas import IdentityAssertion, UserRecord
from services.errors import MissingEmailClaimError
from services.user_store import UserStore

logger = logging.getLogger(__name__)


async def normalize_identity(
    users: UserStore,
    provider: str,
    assertion: IdentityAssertion,
) -> UserRecord:
    """
    Upsert the user behind ``assertion``, keyed by its email claim.

    The same email from a different provider resolves to the same record;
    ``provider`` and ``full_name`` then reflect the latest sign-in.
    """
    email = (assertion.email or "").strip()
    if not email:
        raise MissingEmailClaimError(f"No email in {provider} profile")

    fields: dict[str, object] = {"provider": provider}
    if assertion.display_name:
        fields["full_name"] = assertion.display_name

    user = await users.upsert(email, fields)
    logger.info("Signed in user %s via %s", user.id, provider)
    return user
