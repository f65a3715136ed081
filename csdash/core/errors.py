"""
Authorization and invitation error taxonomy.

Every error here is terminal for the current request. Only StoreUnavailable
may be retried, and only by the caller.
"""

from __future__ import annotations


class AuthorizationError(Exception):
    """Base class for denials raised by the access and invitation core."""

    code = "AUTHORIZATION_ERROR"
    status_code = 403
    default_message = "Access denied"
    retryable = False

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(AuthorizationError):
    code = "UNAUTHENTICATED"
    status_code = 401
    default_message = "Authentication required"


class NotAMember(AuthorizationError):
    code = "NOT_A_MEMBER"
    status_code = 403
    default_message = "You are not a member of this organization"


class InsufficientRole(AuthorizationError):
    code = "INSUFFICIENT_ROLE"
    status_code = 403
    default_message = "Administrator access required"


class ResourceNotFound(AuthorizationError):
    code = "RESOURCE_NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class TokenInvalid(AuthorizationError):
    code = "TOKEN_INVALID"
    status_code = 400
    default_message = "Invitation token is invalid"


class TokenExpired(AuthorizationError):
    code = "TOKEN_EXPIRED"
    status_code = 410
    default_message = "Invitation has expired"


class EmailMismatch(AuthorizationError):
    code = "EMAIL_MISMATCH"
    status_code = 400
    default_message = "Invitation was issued to a different email address"


class StoreUnavailable(AuthorizationError):
    code = "STORE_UNAVAILABLE"
    status_code = 503
    default_message = "Membership store unavailable"
    retryable = True
