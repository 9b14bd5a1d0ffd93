"""
Inventory API — Custom Exceptions.
Each exception carries: message, error_code, http_status_code, optional detail dict.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

# ─────────────────────────────────────────────────────────────────────────────
# BASE
# ─────────────────────────────────────────────────────────────────────────────


class InventoryError(Exception):
    """Root exception for all Inventory API errors."""

    http_status_code: int = 400
    error_code: str = "INVENTORY_ERROR"

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.detail = detail or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "detail": self.detail,
        }


# ─────────────────────────────────────────────────────────────────────────────
# STARTUP
# ─────────────────────────────────────────────────────────────────────────────


class ConfigurationError(InventoryError):
    """Fatal at startup: the process must not serve requests."""

    http_status_code = 500
    error_code = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, reason: str = "is missing or empty") -> None:
        self.setting = setting
        super().__init__(
            message=f"Setting {setting} {reason}",
            detail={"setting": setting},
        )


# ─────────────────────────────────────────────────────────────────────────────
# INPUT & BUSINESS RULES
# ─────────────────────────────────────────────────────────────────────────────


class ValidationError(InventoryError):
    http_status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None) -> None:
        self.errors = errors or []
        super().__init__(message=message, detail={"validation_errors": self.errors})

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, errors=[{"field": field, "message": message}])


class ConflictError(InventoryError):
    http_status_code = 400
    error_code = "CONFLICT"

    def __init__(self, resource: str, field: str, value: str) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(
            message=f"A {resource} with that {field} already exists",
            detail={"resource": resource, "field": field, "value": value},
        )


class NotFoundError(InventoryError):
    http_status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Any) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            message=f"{resource.capitalize()} {resource_id} not found",
            detail={"resource": resource, "id": resource_id},
        )


class ReferentialIntegrityError(InventoryError):
    http_status_code = 400
    error_code = "REFERENTIAL_INTEGRITY"

    def __init__(self, resource: str, resource_id: Any, dependents: str) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.dependents = dependents
        super().__init__(
            message=f"Cannot remove {resource} {resource_id}: it still has active {dependents}",
            detail={"resource": resource, "id": resource_id, "dependents": dependents},
        )


class RoleChangeError(InventoryError):
    """A non-admin tried to change a role or active flag inside a profile update."""

    http_status_code = 400
    error_code = "ROLE_CHANGE_FORBIDDEN"

    def __init__(self, user_id: int, field: str = "role") -> None:
        self.user_id = user_id
        self.field = field
        super().__init__(
            message=f"You are not allowed to change the {field} of this user",
            detail={"user_id": user_id, "field": field},
        )


class LastAdminError(InventoryError):
    http_status_code = 400
    error_code = "LAST_ADMIN"

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(
            message="The last active administrator cannot be removed or demoted",
            detail={"user_id": user_id},
        )


# ─────────────────────────────────────────────────────────────────────────────
# AUTHENTICATION & AUTHORIZATION
# ─────────────────────────────────────────────────────────────────────────────


class AuthenticationError(InventoryError):
    http_status_code = 401
    error_code = "AUTHENTICATION_ERROR"

    def __init__(self, reason: str = "Invalid or expired token") -> None:
        super().__init__(message=reason, detail={})


class AuthorizationError(InventoryError):
    http_status_code = 403
    error_code = "PERMISSION_DENIED"

    def __init__(self, role: Optional[str], action: str = "", resource: str = "") -> None:
        self.role = role
        self.action = action
        self.resource = resource
        super().__init__(
            message=f"Role '{role}' is not permitted to perform {action} on {resource}",
            detail={"role": role, "action": action, "resource": resource},
        )


# ─────────────────────────────────────────────────────────────────────────────
# UNEXPECTED
# ─────────────────────────────────────────────────────────────────────────────


class InternalError(InventoryError):
    http_status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "An internal error occurred.") -> None:
        super().__init__(message=message)
