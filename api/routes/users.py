"""User routes."""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.dependencies import get_app_settings, get_session_store
from config import Settings
from models.schemas import UserRecord
from services.errors import UnauthorizedError, UserNotFoundError
from services.session_store import SessionStore

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserRecord)
async def get_current_user(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_app_settings),
):
    """Return the user signed in through the session cookie."""
    try:
        user = await sessions.resolve(request.cookies.get(settings.session_cookie_name))
    except UserNotFoundError:
        response = JSONResponse(status_code=401, content={"detail": "Session user no longer exists"})
        response.delete_cookie(
            settings.session_cookie_name,
            httponly=True,
            secure=settings.session_cookie_secure,
            samesite=settings.session_cookie_samesite,
        )
        return response
    if user is None:
        raise UnauthorizedError("Not signed in")
    return user
