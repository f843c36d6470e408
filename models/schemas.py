"""Pydantic schemas for API request/response."""
from datetime import datetime
from typing import Literal, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Provider = Literal["local", "google", "linkedin"]


class CamelModel(BaseModel):
    """JSON bodies use camelCase keys (fullName, registeredAt, userId)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Users
class UserRecord(CamelModel):
    id: UUID
    email: str
    full_name: Optional[str] = None
    country: Optional[str] = None
    profession: Optional[str] = None
    source: Optional[str] = None
    provider: Provider = "local"
    registered_at: datetime


# Signup
class RegisterEmailRequest(CamelModel):
    email: Optional[str] = None


class RegisterEmailResponse(CamelModel):
    message: str
    user_id: UUID


class UpdateDetailsRequest(CamelModel):
    email: Optional[str] = None
    full_name: Optional[str] = None
    country: Optional[str] = None
    profession: Optional[str] = None
    source: Optional[str] = None

    def supplied_details(self) -> dict[str, Optional[str]]:
        """Detail fields present in the request body; explicit nulls included."""
        return self.model_dump(exclude_unset=True, exclude={"email"})


class UpdateDetailsResponse(CamelModel):
    message: str
    data: UserRecord


# Auth
class IdentityAssertion(BaseModel):
    """Normalized profile data returned by an identity provider."""

    email: Optional[str] = None
    display_name: Optional[str] = None


# Health
class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
