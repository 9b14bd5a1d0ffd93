"""
Inventory API — User Service
Registration, login, profile management and soft-deletion of users.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_api.core.exceptions import ConflictError, NotFoundError, ValidationError
from inventory_api.core.security import CurrentUser, hash_password, verify_password
from inventory_api.models.users import ROLE_ADMIN, ROLE_EMPLOYEE, User
from inventory_api.services.access_policy import AccessPolicy, AccessRequest

logger = logging.getLogger("inventory_api.users")

# Verified against when the email is unknown so both failure paths cost the same
_DUMMY_HASH = hash_password("timing-equalisation-only")


def normalize_email(email: str) -> str:
    return email.strip()


class UserService:
    """Business rules for user records. All lookups by email ignore case."""

    def __init__(self, session: Session, policy: Optional[AccessPolicy] = None) -> None:
        self.session = session
        self.policy = policy or AccessPolicy()

    # ── Queries ───────────────────────────────────────────────────────────────

    def find_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(
            func.lower(User.email) == normalize_email(email).lower()
        )
        return self.session.scalars(stmt).first()

    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        """Checks every user, active or not: the column carries a unique index."""
        stmt = select(User.id).where(
            func.lower(User.email) == normalize_email(email).lower()
        )
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return self.session.scalars(stmt).first() is not None

    def count_active_admins(self) -> int:
        stmt = (
            select(func.count())
            .select_from(User)
            .where(User.role == ROLE_ADMIN, User.active.is_(True))
        )
        return self.session.scalar(stmt) or 0

    def list_active(self) -> List[User]:
        stmt = select(User).where(User.active.is_(True)).order_by(User.name)
        return list(self.session.scalars(stmt))

    def _get(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    def _get_active(self, user_id: int) -> User:
        user = self._get(user_id)
        if not user.active:
            raise NotFoundError("user", user_id)
        return user

    def _get_editable(self, caller: CurrentUser, user_id: int) -> User:
        # Only admins reach a deactivated record, to restore it
        if caller.is_admin:
            return self._get(user_id)
        return self._get_active(user_id)

    # ── Authentication ────────────────────────────────────────────────────────

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the active user matching the credentials, or None."""
        user = self.find_by_email(email)
        if user is None or not user.active:
            verify_password(password, _DUMMY_HASH)
            logger.info("login failed for %s", normalize_email(email))
            return None
        if not verify_password(password, user.hashed_password):
            logger.info("login failed for %s", user.email)
            return None
        logger.info("login succeeded for user_id=%s", user.id)
        return user

    # ── Commands ──────────────────────────────────────────────────────────────

    def create_user(
        self, name: str, email: str, password: str, role: str = ROLE_EMPLOYEE
    ) -> User:
        email = normalize_email(email)
        if self.email_taken(email):
            raise ConflictError("user", "email", email)

        user = User(
            name=name.strip(),
            email=email,
            hashed_password=hash_password(password),
            role=role,
            active=True,
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as exc:
            # Lost the check-then-insert race against a concurrent creator
            self.session.rollback()
            raise ConflictError("user", "email", email) from exc
        self.session.refresh(user)
        logger.info("created user_id=%s role=%s", user.id, user.role)
        return user

    def get_profile(self, caller: CurrentUser, user_id: int) -> User:
        self.policy.enforce(
            caller, AccessRequest("READ", "users", target_user_id=user_id)
        )
        return self._get_active(user_id)

    def update_user(
        self,
        caller: CurrentUser,
        user_id: int,
        name: str,
        email: str,
        role: str,
        active: bool = True,
    ) -> User:
        self.policy.enforce(
            caller, AccessRequest("UPDATE", "users", target_user_id=user_id)
        )
        user = self._get_editable(caller, user_id)

        email = normalize_email(email)
        if self.email_taken(email, exclude_id=user_id):
            raise ConflictError("user", "email", email)

        self.policy.enforce(
            caller,
            AccessRequest(
                "UPDATE",
                "users",
                target_user_id=user_id,
                target_role=user.role,
                target_active=user.active,
                requested_role=role,
                requested_active=active,
                active_admin_count=self._admin_count_if_needed(user),
            ),
        )

        user.name = name.strip()
        user.email = email
        user.role = role
        user.active = active
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError("user", "email", email) from exc
        self.session.refresh(user)
        return user

    def deactivate_user(self, caller: CurrentUser, user_id: int) -> User:
        user = self._get_active(user_id)
        self.policy.enforce(
            caller,
            AccessRequest(
                "DELETE",
                "users",
                required_role=ROLE_ADMIN,
                target_role=user.role,
                target_active=user.active,
                target_user_id=user_id,
                removes_target=True,
                active_admin_count=self._admin_count_if_needed(user),
            ),
        )
        user.active = False
        self.session.commit()
        logger.info("user_id=%s deactivated by user_id=%s", user_id, caller.user_id)
        return user

    def change_password(
        self,
        caller: CurrentUser,
        user_id: int,
        current_password: Optional[str],
        new_password: str,
    ) -> None:
        self.policy.enforce(
            caller, AccessRequest("CHANGE_PASSWORD", "users", target_user_id=user_id)
        )
        user = self._get_editable(caller, user_id)

        # Administrators reset passwords without knowing the old one
        if not caller.is_admin and not verify_password(
            current_password or "", user.hashed_password
        ):
            raise ValidationError.for_field(
                "current_password", "The current password is incorrect"
            )

        user.hashed_password = hash_password(new_password)
        self.session.commit()
        logger.info("password changed for user_id=%s by user_id=%s", user_id, caller.user_id)

    def _admin_count_if_needed(self, user: User) -> Optional[int]:
        if user.role == ROLE_ADMIN and user.active:
            return self.count_active_admins()
        return None
