"""
ARBOLEDA ADMIN - Exception Hierarchy
====================================

Structured exception types for the admin access layer.

Exception Categories:
    - PermissionDenied: Authorization failures (never swallowed)
    - NotFound: Directory operations on a nonexistent identity
    - ConflictError: Duplicate identities on create
    - StoreError: Failures reported by the document store
    - ConfigurationError: Invalid static configuration
"""

from typing import Any, Dict, Optional


class ArboledaError(Exception):
    """
    Base exception for all admin access errors.

    Attributes:
        message: Human-readable error description
        code: Optional error code for programmatic handling
        details: Optional dict with additional context
        recoverable: Whether error can potentially be retried
    """

    recoverable: bool = False

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


# =============================================================================
# AUTHORIZATION ERRORS
# =============================================================================


class PermissionDenied(ArboledaError):
    """Caller lacks the permission required for an action."""

    def __init__(self, permission: str, actor: Optional[str] = None):
        super().__init__(
            f"Permission denied: {permission}",
            code="PERMISSION_DENIED",
            details={"permission": permission, "actor": actor},
        )
        self.permission = permission
        self.actor = actor


# =============================================================================
# DIRECTORY ERRORS
# =============================================================================


class NotFound(ArboledaError):
    """No admin user matches the given identity."""

    def __init__(self, identity: str):
        super().__init__(
            f"Admin user not found: {identity}",
            code="NOT_FOUND",
            details={"identity": identity},
        )
        self.identity = identity


class ConflictError(ArboledaError):
    """An admin user with the same identity already exists."""

    def __init__(self, identity: str):
        super().__init__(
            f"Admin user already exists: {identity}",
            code="CONFLICT",
            details={"identity": identity},
        )
        self.identity = identity


# =============================================================================
# INFRASTRUCTURE ERRORS
# =============================================================================


class StoreError(ArboledaError):
    """The document store failed to complete an operation."""

    recoverable = True

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        kwargs.setdefault("code", "STORE_ERROR")
        super().__init__(message, **kwargs)
        self.operation = operation


class ConfigurationError(ArboledaError):
    """Static configuration is invalid."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("code", "CONFIG_ERROR")
        super().__init__(message, **kwargs)


__all__ = [
    "ArboledaError",
    "PermissionDenied",
    "NotFound",
    "ConflictError",
    "StoreError",
    "ConfigurationError",
]
