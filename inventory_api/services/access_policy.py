"""
Inventory API — Access Control Policy

Pure decision functions: given the caller's identity (or None) and a
description of the attempted operation, return an AccessDecision. Nothing
here touches the database; callers load whatever the rules need (target
role, active admin count) and pass it in.

Rules are evaluated in a fixed order, each assuming the earlier ones passed:

    1. authentication required, no identity          -> DENY 401
    2. role required, caller has another role        -> DENY 403
    3. self-or-admin operation on another user       -> DENY 403
    4. non-admin changes role or active flag         -> DENY 400
    5. operation would remove the last active admin  -> DENY 400
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from inventory_api.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InventoryError,
    LastAdminError,
    RoleChangeError,
)
from inventory_api.core.security import CurrentUser
from inventory_api.models.users import ROLE_ADMIN

logger = logging.getLogger("inventory_api.access")


@dataclass(frozen=True)
class AccessRequest:
    """What the caller is attempting. Only the fields a rule needs are set."""

    action: str
    resource: str
    requires_auth: bool = True
    required_role: Optional[str] = None
    # Self-or-admin operations on a user record
    target_user_id: Optional[int] = None
    # Current state of the target user, for rules 4 and 5
    target_role: Optional[str] = None
    target_active: bool = True
    requested_role: Optional[str] = None
    requested_active: Optional[bool] = None
    removes_target: bool = False
    active_admin_count: Optional[int] = None


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    rule: str = ""
    error: Optional[InventoryError] = None

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, rule: str, error: InventoryError) -> "AccessDecision":
        return cls(allowed=False, rule=rule, error=error)

    def raise_for_denial(self) -> None:
        if not self.allowed:
            raise self.error


ALLOW = AccessDecision.allow()


# ─── Individual rules ─────────────────────────────────────────────────────────


def check_authenticated(
    identity: Optional[CurrentUser], request: AccessRequest
) -> AccessDecision:
    if request.requires_auth and identity is None:
        return AccessDecision.deny("authentication", AuthenticationError("Not authenticated"))
    return ALLOW


def check_role(identity: Optional[CurrentUser], request: AccessRequest) -> AccessDecision:
    if request.required_role is None:
        return ALLOW
    role = identity.role if identity else None
    if role != request.required_role:
        return AccessDecision.deny(
            "role", AuthorizationError(role, request.action, request.resource)
        )
    return ALLOW


def check_self_or_admin(
    identity: Optional[CurrentUser], request: AccessRequest
) -> AccessDecision:
    if request.target_user_id is None:
        return ALLOW
    if identity is not None and (
        identity.is_admin or identity.user_id == request.target_user_id
    ):
        return ALLOW
    role = identity.role if identity else None
    return AccessDecision.deny(
        "ownership", AuthorizationError(role, request.action, request.resource)
    )


def check_role_change(
    identity: Optional[CurrentUser], request: AccessRequest
) -> AccessDecision:
    if identity is not None and identity.is_admin:
        return ALLOW
    target_id = request.target_user_id
    if request.requested_role is not None and request.requested_role != request.target_role:
        return AccessDecision.deny("role_change", RoleChangeError(target_id, "role"))
    if (
        request.requested_active is not None
        and request.requested_active != request.target_active
    ):
        return AccessDecision.deny("role_change", RoleChangeError(target_id, "active"))
    return ALLOW


def check_last_admin(
    identity: Optional[CurrentUser], request: AccessRequest
) -> AccessDecision:
    if request.target_role != ROLE_ADMIN or not request.target_active:
        return ALLOW

    loses_admin = (
        request.removes_target
        or (request.requested_role is not None and request.requested_role != ROLE_ADMIN)
        or request.requested_active is False
    )
    if not loses_admin:
        return ALLOW

    if request.active_admin_count is None or request.active_admin_count <= 1:
        return AccessDecision.deny("last_admin", LastAdminError(request.target_user_id))
    return ALLOW


RULES = (
    check_authenticated,
    check_role,
    check_self_or_admin,
    check_role_change,
    check_last_admin,
)


# ─── Policy facade ────────────────────────────────────────────────────────────


class AccessPolicy:
    """Evaluates RULES in order; the first denial wins."""

    def evaluate(
        self, identity: Optional[CurrentUser], request: AccessRequest
    ) -> AccessDecision:
        for rule in RULES:
            decision = rule(identity, request)
            if not decision.allowed:
                logger.info(
                    "access denied: rule=%s action=%s resource=%s caller=%s target=%s",
                    decision.rule,
                    request.action,
                    request.resource,
                    identity.user_id if identity else None,
                    request.target_user_id,
                )
                return decision
        return ALLOW

    def enforce(self, identity: Optional[CurrentUser], request: AccessRequest) -> None:
        """Raise the denial's error, or return None when allowed."""
        self.evaluate(identity, request).raise_for_denial()
