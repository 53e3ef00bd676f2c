"""Domain error taxonomy

Raised inside an atomic unit by the subscription components and converted to a
``libs.result.Error`` by the owning use case.
"""

import logging
from enum import Enum
from typing import Optional
from sqlalchemy.exc import IntegrityError
from libs.result import Error

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"


class DomainError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION
    default_code = "DOMAIN_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.reason = reason

    def to_error(self) -> Error:
        return Error(
            code=self.code,
            message=self.message,
            reason=self.reason,
            kind=self.kind.value,
        )


class ValidationError(DomainError):
    kind = ErrorKind.VALIDATION
    default_code = "VALIDATION_ERROR"


class ConflictError(DomainError):
    kind = ErrorKind.CONFLICT
    default_code = "CONFLICT"


class AuthorizationError(DomainError):
    kind = ErrorKind.AUTHORIZATION
    default_code = "FORBIDDEN"


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND
    default_code = "NOT_FOUND"


class DependencyError(DomainError):
    kind = ErrorKind.DEPENDENCY
    default_code = "DEPENDENCY_FAILURE"


def failure(exc: Exception, code: str, message: str) -> Error:
    """
    Convert any exception caught at a use-case boundary into an Error

    Domain errors keep their own code and message. A unique-key violation is a
    conflict. Anything else is reported as a dependency failure with a generic
    message; the cause is logged and kept in ``reason`` for server-side use only.
    """
    if isinstance(exc, DomainError):
        return exc.to_error()
    if isinstance(exc, IntegrityError):
        logger.warning(f"{message}: integrity violation: {exc.orig}")
        return ConflictError(
            "The request conflicts with an existing record",
            code="DUPLICATE_KEY",
            reason=str(exc.orig),
        ).to_error()
    logger.error(f"{message}: {exc}")
    return DependencyError(message, code=code, reason=str(exc)).to_error()
