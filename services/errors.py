# services/errors.py

"""Shared domain-level service exceptions."""


class ServiceError(Exception):
    """Base class for domain/service failures that map to HTTP responses."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class BadRequestError(ServiceError):
    """Missing or malformed client input."""

    status_code = 400


class UnauthorizedError(ServiceError):
    status_code = 401


class MissingEmailClaimError(UnauthorizedError):
    """The identity provider asserted an identity without a usable email."""


class NotFoundError(ServiceError):
    status_code = 404


class UserNotFoundError(NotFoundError):
    """A session points at a user record that no longer exists."""


class ConflictError(ServiceError):
    """A unique-key race on the user store; safe for the caller to retry once."""

    status_code = 409


class StoreUnavailableError(ServiceError):
    status_code = 500


class UpstreamServiceError(ServiceError):
    status_code = 502


class ProviderNotConfiguredError(ServiceError):
    status_code = 503
