"""Waitlist signup routes."""
import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_user_store
from models.schemas import (
    RegisterEmailRequest,
    RegisterEmailResponse,
    UpdateDetailsRequest,
    UpdateDetailsResponse,
)
from services.errors import BadRequestError
from services.user_store import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["signup"])


@router.post("/register-email", response_model=RegisterEmailResponse)
async def register_email(
    body: RegisterEmailRequest,
    users: UserStore = Depends(get_user_store),
):
    """Capture an email for the waitlist. Repeat calls return the same user id."""
    email = (body.email or "").strip()
    if not email or "@" not in email:
        raise BadRequestError("Valid email required")

    user = await users.upsert(email)
    logger.info("Registered waitlist email for user %s", user.id)
    return RegisterEmailResponse(message="Email registered", user_id=user.id)


@router.post("/update-details", response_model=UpdateDetailsResponse)
async def update_details(
    body: UpdateDetailsRequest,
    users: UserStore = Depends(get_user_store),
):
    """Attach profile details to a waitlist entry.

    Only the fields present in the body are written; send ``null`` to clear one.
    """
    email = (body.email or "").strip()
    if not email:
        raise BadRequestError("Email required")
    if "@" not in email:
        raise BadRequestError("Valid email required")

    user = await users.upsert(email, body.supplied_details())
    return UpdateDetailsResponse(
        message="Details saved. You're now part of the waitlist!",
        data=user,
    )
