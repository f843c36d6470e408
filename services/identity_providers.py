# services/identity_providers.py

"""OAuth 2.0 / OpenID Connect identity providers (Google, LinkedIn)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlencode

import httpx

from config import Settings
from models.schemas import IdentityAssertion
from services.errors import UpstreamServiceError

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    """
    Two-step authorization-code flow against one external provider.

    ``authorization_url`` builds the redirect that sends the browser out;
    ``fetch_assertion`` handles the callback by trading the code for an
    access token and reading the provider's userinfo endpoint.
    Subclasses supply endpoints, scopes, and profile parsing.
    """

    name: str
    authorize_uri: str
    token_uri: str
    userinfo_uri: str
    scopes: tuple[str, ...]

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        http: httpx.AsyncClient,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._http = http

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
        }
        return self.authorize_uri + "?" + urlencode(params)

    async def fetch_assertion(self, code: str) -> IdentityAssertion:
        access_token = await self._exchange_code(code)
        profile = await self._request(
            "GET",
            self.userinfo_uri,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return self.parse_profile(profile)

    @abstractmethod
    def parse_profile(self, profile: dict[str, Any]) -> IdentityAssertion:
        """Map a userinfo payload to an assertion; unusable emails become None."""

    async def _exchange_code(self, code: str) -> str:
        data = await self._request(
            "POST",
            self.token_uri,
            data={
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        access_token = data.get("access_token")
        if not access_token:
            raise UpstreamServiceError(f"{self.name} token response had no access_token")
        return access_token

    async def _request(self, method: str, url: str, **kwargs) -> dict[str, Any]:
        try:
            resp = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s request to %s failed: %s", self.name, url, exc)
            raise UpstreamServiceError(f"{self.name} is unreachable") from exc
        if resp.status_code != 200:
            logger.warning("%s returned HTTP %s for %s", self.name, resp.status_code, url)
            raise UpstreamServiceError(f"{self.name} rejected the request")
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamServiceError(f"{self.name} returned malformed JSON") from exc
        if not isinstance(data, dict):
            raise UpstreamServiceError(f"{self.name} returned a non-object JSON body")
        return data


class GoogleProvider(IdentityProvider):
    name = "google"
    authorize_uri = "https://accounts.google.com/o/oauth2/v2/auth"
    token_uri = "https://oauth2.googleapis.com/token"
    userinfo_uri = "https://openidconnect.googleapis.com/v1/userinfo"
    scopes = ("openid", "email", "profile")

    def parse_profile(self, profile: dict[str, Any]) -> IdentityAssertion:
        email = profile.get("email") or None
        # An unverified address must not be merged into an existing record.
        if profile.get("email_verified") is False:
            email = None
        return IdentityAssertion(
            email=email,
            display_name=profile.get("name") or None,
        )


class LinkedInProvider(IdentityProvider):
    name = "linkedin"
    authorize_uri = "https://www.linkedin.com/oauth/v2/authorization"
    token_uri = "https://www.linkedin.com/oauth/v2/accessToken"
    userinfo_uri = "https://api.linkedin.com/v2/userinfo"
    scopes = ("openid", "profile", "email")

    def parse_profile(self, profile: dict[str, Any]) -> IdentityAssertion:
        email = profile.get("email")
        if not email:
            emails = profile.get("emails") or []
            if emails and isinstance(emails[0], dict):
                email = emails[0].get("value")
        if profile.get("email_verified") is False:
            email = None
        name = profile.get("name")
        if not name:
            parts = [profile.get("given_name"), profile.get("family_name")]
            name = " ".join(part for part in parts if part)
        return IdentityAssertion(email=email or None, display_name=name or None)


def build_providers(settings: Settings, http: httpx.AsyncClient) -> dict[str, IdentityProvider]:
    """Instantiate every provider that has a client id and secret configured."""
    configured = [
        (
            GoogleProvider,
            settings.google_client_id,
            settings.google_client_secret,
            settings.google_redirect_uri,
        ),
        (
            LinkedInProvider,
            settings.linkedin_client_id,
            settings.linkedin_client_secret,
            settings.linkedin_redirect_uri,
        ),
    ]
    providers: dict[str, IdentityProvider] = {}
    for provider_cls, client_id, client_secret, redirect_uri in configured:
        if not (client_id and client_secret):
            logger.info("%s sign-in disabled: client id/secret not set", provider_cls.name)
            continue
        providers[provider_cls.name] = provider_cls(client_id, client_secret, redirect_uri, http)
    return providers


SUPPORTED_PROVIDERS = (GoogleProvider.name, LinkedInProvider.name)
