"""Application exception hierarchy following RFC 7807 Problem Details."""

from typing import Any
from uuid import UUID

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception following RFC 7807.

    All custom exceptions should inherit from this class.
    Provides consistent error response format.
    """

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.error_detail = detail or {}

        super().__init__(
            status_code=status_code,
            detail={
                "type": f"https://api.dealer-seo.local/errors/{error_code}",
                "title": error_code.replace("_", " ").title(),
                "status": status_code,
                "detail": message,
                "instance": None,  # Will be set by exception handler
                **self.error_detail,
            },
        )

    def __str__(self) -> str:
        return self.message


# ============================================================================
# Resource Exceptions (404, 409)
# ============================================================================


class NotFoundError(AppException):
    """Resource not found.

    Raised by mutations and by-id lookups only. Path resolution returns a
    typed not-found result instead so callers can fall through to a 404 page.
    """

    def __init__(
        self,
        resource: str,
        identifier: str | UUID | None = None,
    ) -> None:
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id '{identifier}' not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="not_found",
            message=message,
            detail={"resource": resource},
        )


class AlreadyExistsError(AppException):
    """Resource already exists (conflict)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str,
    ) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="already_exists",
            message=f"{resource} with {field}='{value}' already exists",
            detail={"resource": resource, "field": field, "value": value},
        )


class TenantNotFoundError(AppException):
    """Tenant could not be identified or is inactive."""

    def __init__(self, tenant_id: UUID | str | None = None) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="tenant_not_found",
            message="Tenant not found or inactive",
            detail={"tenant_id": str(tenant_id) if tenant_id else None},
        )


class FileNotFoundInStorageError(AppException):
    """Generated artifact not found in storage."""

    def __init__(self, path: str) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="file_not_found",
            message="File not found",
            detail={"path": path},
        )


# ============================================================================
# Redirect Exceptions (409)
# ============================================================================


class RedirectStateError(AppException):
    """Entry is already redirected; the transition is terminal."""

    def __init__(self, path: str, redirect_type: str) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="redirect_state_conflict",
            message=f"Path '{path}' is already redirected ({redirect_type})",
            detail={"path": path, "redirect_type": redirect_type},
        )


class RedirectLoopError(AppException):
    """Redirect would create a cycle or an overly long chain."""

    def __init__(self, chain: list[str]) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="redirect_loop",
            message="Redirect chain loops back on itself: " + " -> ".join(chain),
            detail={"chain": chain},
        )


# ============================================================================
# Validation Exceptions (400)
# ============================================================================


class ValidationError(AppException):
    """Input validation error."""

    def __init__(
        self,
        message: str,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        self.errors = errors or []
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="validation_error",
            message=message,
            detail={"errors": self.errors},
        )


class InvalidSitemapTypeError(ValidationError):
    """Unknown sitemap type requested."""

    def __init__(self, sitemap_type: str, supported: list[str]) -> None:
        super().__init__(
            message=f"Sitemap type '{sitemap_type}' is not supported",
            errors=[
                {
                    "field": "type",
                    "value": sitemap_type,
                    "supported": supported,
                }
            ],
        )


# ============================================================================
# Generation Exceptions (500)
# ============================================================================


class GenerationError(AppException):
    """Writing a generated artifact (sitemap, robots) failed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="generation_failed",
            message=f"Failed to write '{path}': {reason}",
            detail={"path": path},
        )
