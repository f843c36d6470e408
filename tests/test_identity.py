"""Tests for identity providers and identity normalization."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from config import Settings
from models.schemas import IdentityAssertion
from services.errors import MissingEmailClaimError, UpstreamServiceError
from services.identity_providers import (
    GoogleProvider,
    IdentityProvider,
    LinkedInProvider,
    build_providers,
)
from services.identity_service import normalize_identity


def _provider(cls, handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return cls("client-id", "client-secret", "https://api.example/callback", http)


class TestAuthorizationUrl:
    def test_linkedin_params(self):
        provider = _provider(LinkedInProvider, lambda request: httpx.Response(200))

        url = urlparse(provider.authorization_url("xyz"))

        query = parse_qs(url.query)
        assert url.netloc == "www.linkedin.com"
        assert query["response_type"] == ["code"]
        assert query["scope"] == ["openid profile email"]
        assert query["state"] == ["xyz"]
        assert query["redirect_uri"] == ["https://api.example/callback"]


class TestFetchAssertion:
    @pytest.mark.asyncio
    async def test_google_code_exchange_and_userinfo(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path == "/token":
                return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
            return httpx.Response(200, json={"email": "ada@example.com", "name": "Ada Lovelace"})

        provider = _provider(GoogleProvider, handler)

        assertion = await provider.fetch_assertion("the-code")

        assert assertion == IdentityAssertion(email="ada@example.com", display_name="Ada Lovelace")
        token_request, userinfo_request = seen
        form = parse_qs(token_request.content.decode())
        assert form["code"] == ["the-code"]
        assert form["grant_type"] == ["authorization_code"]
        assert form["client_secret"] == ["client-secret"]
        assert userinfo_request.headers["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_token_endpoint_rejection(self):
        provider = _provider(GoogleProvider, lambda request: httpx.Response(401, json={}))

        with pytest.raises(UpstreamServiceError):
            await provider.fetch_assertion("bad")

    @pytest.mark.asyncio
    async def test_missing_access_token(self):
        provider = _provider(GoogleProvider, lambda request: httpx.Response(200, json={}))

        with pytest.raises(UpstreamServiceError):
            await provider.fetch_assertion("code")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [["ada@example.com"], "ada@example.com", 42])
    async def test_non_object_userinfo(self, body):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/token":
                return httpx.Response(200, json={"access_token": "tok"})
            return httpx.Response(200, json=body)

        provider = _provider(GoogleProvider, handler)

        with pytest.raises(UpstreamServiceError):
            await provider.fetch_assertion("code")

    @pytest.mark.asyncio
    async def test_non_object_token_response(self):
        provider = _provider(LinkedInProvider, lambda request: httpx.Response(200, json=[]))

        with pytest.raises(UpstreamServiceError):
            await provider.fetch_assertion("code")

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        provider = _provider(LinkedInProvider, handler)

        with pytest.raises(UpstreamServiceError):
            await provider.fetch_assertion("code")


class TestParseProfile:
    def test_linkedin_email_list_fallback(self):
        provider = _provider(LinkedInProvider, lambda request: httpx.Response(200))

        assertion = provider.parse_profile(
            {"emails": [{"value": "ada@example.com"}], "given_name": "Ada", "family_name": "Lovelace"}
        )

        assert assertion.email == "ada@example.com"
        assert assertion.display_name == "Ada Lovelace"

    def test_google_unverified_email_is_dropped(self):
        provider = _provider(GoogleProvider, lambda request: httpx.Response(200))

        assertion = provider.parse_profile(
            {"email": "ada@example.com", "email_verified": False, "name": "Ada"}
        )

        assert assertion.email is None
        assert assertion.display_name == "Ada"

    def test_google_verified_email_is_kept(self):
        provider = _provider(GoogleProvider, lambda request: httpx.Response(200))

        assertion = provider.parse_profile({"email": "ada@example.com", "email_verified": True})

        assert assertion.email == "ada@example.com"

    def test_linkedin_unverified_email_is_dropped(self):
        provider = _provider(LinkedInProvider, lambda request: httpx.Response(200))

        assertion = provider.parse_profile({"email": "ada@example.com", "email_verified": False})

        assert assertion.email is None

    def test_google_without_email(self):
        provider = _provider(GoogleProvider, lambda request: httpx.Response(200))

        assert provider.parse_profile({"name": "Ada"}).email is None


class TestProviderBase:
    def test_variant_without_profile_parsing_cannot_be_created(self):
        class Incomplete(IdentityProvider):
            name = "incomplete"

        with pytest.raises(TypeError):
            Incomplete("id", "secret", "https://api.example/callback", httpx.AsyncClient())


class TestBuildProviders:
    def test_skips_unconfigured(self):
        settings = Settings(google_client_id="id", google_client_secret="secret",
                            linkedin_client_id="", linkedin_client_secret="")

        providers = build_providers(settings, httpx.AsyncClient())

        assert list(providers) == ["google"]


class TestNormalizeIdentity:
    @pytest.mark.asyncio
    async def test_creates_record(self, user_store):
        user = await normalize_identity(
            user_store, "google", IdentityAssertion(email="ada@example.com", display_name="Ada")
        )

        assert user.provider == "google"
        assert user.full_name == "Ada"

    @pytest.mark.asyncio
    async def test_later_provider_overwrites_provider_and_name(self, user_store):
        first = await normalize_identity(
            user_store, "google", IdentityAssertion(email="a@x.com", display_name="Google Name")
        )
        second = await normalize_identity(
            user_store, "linkedin", IdentityAssertion(email="a@x.com", display_name="LinkedIn Name")
        )

        assert len(user_store.records) == 1
        assert second.id == first.id
        assert second.provider == "linkedin"
        assert second.full_name == "LinkedIn Name"

    @pytest.mark.asyncio
    async def test_missing_display_name_keeps_existing(self, user_store):
        await user_store.upsert("a@x.com", {"full_name": "Known"})

        user = await normalize_identity(user_store, "google", IdentityAssertion(email="a@x.com"))

        assert user.full_name == "Known"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", [None, "", "   "])
    async def test_missing_email_claim(self, user_store, email):
        with pytest.raises(MissingEmailClaimError):
            await normalize_identity(user_store, "google", IdentityAssertion(email=email, display_name="X"))

        assert user_store.upsert_calls == []
