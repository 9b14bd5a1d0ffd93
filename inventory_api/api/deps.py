"""
Inventory API — Request dependencies
Bearer token extraction and the identity context handed to route handlers.

    NoToken      -> get_optional_user returns None; get_current_user raises 401
    Invalid      -> 401 on every route that reads the identity
    Valid        -> CurrentUser(user_id, role, name, email)
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from inventory_api.core.security import CurrentUser, TokenService
from inventory_api.models.users import ROLE_ADMIN
from inventory_api.services.access_policy import AccessPolicy, AccessRequest

bearer_scheme = HTTPBearer(auto_error=False)
access_policy = AccessPolicy()


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[CurrentUser]:
    if credentials is None:
        return None
    return tokens.verify(credentials.credentials)


def get_current_user(
    request: Request,
    user: Optional[CurrentUser] = Depends(get_optional_user),
) -> CurrentUser:
    access_policy.enforce(user, AccessRequest(request.method, request.url.path))
    return user


def require_admin(
    request: Request,
    user: Optional[CurrentUser] = Depends(get_optional_user),
) -> CurrentUser:
    access_policy.enforce(
        user,
        AccessRequest(request.method, request.url.path, required_role=ROLE_ADMIN),
    )
    return user
