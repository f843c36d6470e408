# api/dependencies.py

"""Shared API dependencies.

Process-wide resources are built once in the lifespan and parked on
``app.state``; routes reach them through these providers so tests can
swap them with ``app.dependency_overrides``.
"""

from fastapi import Request

from config import Settings, get_settings
from services.identity_providers import IdentityProvider
from services.session_store import SessionStore
from services.user_store import UserStore


def get_app_settings() -> Settings:
    return get_settings()


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_identity_providers(request: Request) -> dict[str, IdentityProvider]:
    return request.app.state.identity_providers
