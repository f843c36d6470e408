"""Social sign-in routes (Google, LinkedIn)."""
import hmac
import logging
import secrets
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from api.dependencies import (
    get_app_settings,
    get_identity_providers,
    get_session_store,
    get_user_store,
)
from config import Settings
from services.errors import NotFoundError, ProviderNotConfiguredError, ServiceError
from services.identity_providers import SUPPORTED_PROVIDERS, IdentityProvider
from services.identity_service import normalize_identity
from services.session_store import SessionStore
from services.user_store import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _get_provider(providers: dict[str, IdentityProvider], name: str) -> IdentityProvider:
    if name not in SUPPORTED_PROVIDERS:
        raise NotFoundError(f"Unknown identity provider: {name}")
    provider = providers.get(name)
    if provider is None:
        raise ProviderNotConfiguredError(f"{name} sign-in is not configured")
    return provider


def _set_cookie(
    response: RedirectResponse,
    settings: Settings,
    key: str,
    value: str,
    max_age: int,
) -> None:
    response.set_cookie(
        key,
        value,
        max_age=max_age,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
    )


def _clear_state_cookie(response: RedirectResponse, settings: Settings) -> None:
    response.delete_cookie(
        settings.oauth_state_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
    )


def _failure_redirect(settings: Settings) -> RedirectResponse:
    response = RedirectResponse(url=settings.auth_failure_url, status_code=302)
    _clear_state_cookie(response, settings)
    return response


def _state_matches(received: str | None, expected: str | None) -> bool:
    if not received or not expected:
        return False
    return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))


@router.get("/auth/{provider_name}")
async def oauth_login(
    provider_name: str,
    providers: dict[str, IdentityProvider] = Depends(get_identity_providers),
    settings: Settings = Depends(get_app_settings),
):
    """Redirect the browser to the provider's consent screen."""
    provider = _get_provider(providers, provider_name)
    state = secrets.token_urlsafe(24)
    response = RedirectResponse(url=provider.authorization_url(state), status_code=302)
    _set_cookie(
        response,
        settings,
        settings.oauth_state_cookie_name,
        state,
        settings.oauth_state_max_age_seconds,
    )
    return response


@router.get("/auth/{provider_name}/callback")
async def oauth_callback(
    provider_name: str,
    request: Request,
    code: str | None = Query(None),
    state: str | None = Query(None),
    error: str | None = Query(None),
    providers: dict[str, IdentityProvider] = Depends(get_identity_providers),
    users: UserStore = Depends(get_user_store),
    sessions: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_app_settings),
):
    """
    OAuth callback - resolve the provider identity to a user and start a session.
    Redirects to the landing page's details form, or to the failure URL.
    """
    provider = _get_provider(providers, provider_name)

    if error:
        logger.warning("%s sign-in denied: %s", provider.name, error)
        return _failure_redirect(settings)
    if not code or not _state_matches(state, request.cookies.get(settings.oauth_state_cookie_name)):
        logger.warning("%s callback rejected: missing code or state mismatch", provider.name)
        return _failure_redirect(settings)

    try:
        assertion = await provider.fetch_assertion(code)
        user = await normalize_identity(users, provider.name, assertion)
        token = await sessions.establish(user)
    except ServiceError as exc:
        logger.warning("%s sign-in failed: %s", provider.name, exc.detail)
        return _failure_redirect(settings)

    frontend_url = settings.frontend_url.rstrip("/")
    response = RedirectResponse(
        url=f"{frontend_url}/details?email={quote(user.email, safe='')}",
        status_code=302,
    )
    _set_cookie(
        response,
        settings,
        settings.session_cookie_name,
        token.cookie_value,
        sessions.max_age_seconds,
    )
    _clear_state_cookie(response, settings)
    return response


@router.get("/error")
async def auth_error():
    return JSONResponse(status_code=401, content={"detail": "Authentication failed"})
