"""Error Hierarchy — typed, categorized exceptions for all VaultKeep failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages (no tokens, no hashes)

Design Decisions:
    - Single hierarchy with VaultError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Codes are stable: the transport layer maps them to statuses, clients match on them
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    secret_id: str | None = None
    debug_info: dict[str, Any] | None = None


class VaultError(Exception):
    """Base exception for all VaultKeep errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "user_id": self.context.user_id,
                    "secret_id": self.context.secret_id,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ResourceNotFoundError(VaultError):
    """Requested user or secret does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class EmailAlreadyExistsError(VaultError):
    """Email is claimed by a verified account or one still inside its grace window."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Email address is already registered",
            "EMAIL_ALREADY_EXISTS", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class InvalidTokenError(VaultError):
    """Presented token does not match the active email token."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Invalid email verification token",
            "INVALID_TOKEN", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class TokenExpiredError(VaultError):
    """Registration grace window elapsed before the email was verified."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Email verification token expired",
            "TOKEN_EXPIRED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 410,
        )


class NotOwnerError(VaultError):
    """Caller does not own the requested secret."""
    def __init__(self, secret_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Secret '{secret_id}' belongs to another user",
            "NOT_OWNER", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.secret_id = secret_id


class InvalidCredentialsError(VaultError):
    """Email/password pair or bearer token could not be verified."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Could not validate credentials",
            "INVALID_CREDENTIALS", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class EmailNotVerifiedError(VaultError):
    """Operation requires a verified email address."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Email address has not been verified",
            "EMAIL_NOT_VERIFIED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(VaultError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class EmailDeliveryError(VaultError):
    """Notification could not be handed to the mail server."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Email delivery failed: {message}",
            "EMAIL_DELIVERY_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 502,
        )


class ConcurrencyError(VaultError):
    """Concurrent modification detected."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class VersionConflictError(ConcurrencyError):
    """Another writer already inserted this (secret_id, version) pair."""
    def __init__(self, secret_id: str, version: int, context: ErrorContext | None = None):
        super().__init__(
            f"Version {version} of secret '{secret_id}' already exists",
            context,
        )
        self.secret_id = secret_id
        self.version = version
