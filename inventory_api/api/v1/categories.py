"""
Inventory API — API v1: Categories
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from inventory_api.api.deps import get_current_user, require_admin
from inventory_api.api.v1.users import MessageResponse
from inventory_api.core.exceptions import ValidationError
from inventory_api.core.security import CurrentUser
from inventory_api.database import get_db
from inventory_api.services.catalog import CategoryService

router = APIRouter(prefix="/categorias", tags=["categories"])


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    created_at: datetime
    active: bool

    class Config:
        from_attributes = True


class CreateCategoryRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=300)


class UpdateCategoryRequest(CreateCategoryRequest):
    id: Optional[int] = None
    active: bool = True


@router.get("", response_model=List[CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    return CategoryService(db).list_active()


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return CategoryService(db).get_active(category_id)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    req: CreateCategoryRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return CategoryService(db).create(req.name, req.description)


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    req: UpdateCategoryRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    if req.id is not None and req.id != category_id:
        raise ValidationError.for_field("id", "The id in the body does not match the URL")
    return CategoryService(db).update(category_id, req.name, req.description, req.active)


@router.delete("/{category_id}", response_model=MessageResponse)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    CategoryService(db).deactivate(category_id)
    return MessageResponse(message="Category deleted successfully")
