"""Application settings from environment variables."""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

# Used only when SESSION_SECRET is unset; startup logs a warning when it is.
INSECURE_SESSION_SECRET = "waitlist-insecure-session-secret"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Empty means "not configured"; the lifespan refuses to start without it.
    database_url: str = Field(default="", validation_alias="DATABASE_URL")
    session_secret: str = Field(default="", validation_alias="SESSION_SECRET")
    cors_origins: list[str] = ["https://quantumshell.live"]
    frontend_url: str = Field(default="https://quantumshell.live", validation_alias="FRONTEND_URL")
    auth_failure_url: str = Field(default="/error", validation_alias="AUTH_FAILURE_URL")

    # Google OAuth (optional - sign-in is disabled without a client id/secret)
    google_client_id: str = Field(default="", validation_alias="GOOGLE_CLIENT_ID")
    google_client_secret: str = Field(default="", validation_alias="GOOGLE_CLIENT_SECRET")
    google_redirect_uri: str = Field(
        default="https://api.quantumshell.live/auth/google/callback",
        validation_alias="GOOGLE_REDIRECT_URI",
    )
    # LinkedIn OAuth (optional, OpenID Connect flavour)
    linkedin_client_id: str = Field(default="", validation_alias="LINKEDIN_CLIENT_ID")
    linkedin_client_secret: str = Field(default="", validation_alias="LINKEDIN_CLIENT_SECRET")
    linkedin_redirect_uri: str = Field(
        default="https://api.quantumshell.live/auth/linkedin/callback",
        validation_alias="LINKEDIN_REDIRECT_URI",
    )

    # The API and the landing page live on different origins, so the session
    # cookie has to be Secure + SameSite=None to survive the redirect chain.
    session_cookie_name: str = "waitlist_session"
    session_max_age_seconds: int = 24 * 60 * 60
    session_cookie_secure: bool = True
    session_cookie_samesite: str = "none"
    oauth_state_cookie_name: str = "waitlist_oauth_state"
    oauth_state_max_age_seconds: int = 10 * 60
    session_sweep_interval_seconds: int = 15 * 60

    store_timeout_seconds: float = 5.0
    provider_timeout_seconds: float = 10.0

    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=5000, validation_alias="PORT")

    @property
    def effective_session_secret(self) -> str:
        return self.session_secret or INSECURE_SESSION_SECRET


@lru_cache
def get_settings() -> Settings:
    return Settings()
