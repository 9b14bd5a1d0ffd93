"""
Inventory API — API v1: Suppliers
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from inventory_api.api.deps import get_current_user, require_admin
from inventory_api.api.v1.products import ProductResponse
from inventory_api.api.v1.users import MessageResponse
from inventory_api.core.exceptions import ValidationError
from inventory_api.core.security import CurrentUser
from inventory_api.database import get_db
from inventory_api.services.catalog import ProductService, SupplierService

router = APIRouter(prefix="/proveedores", tags=["suppliers"])


class SupplierResponse(BaseModel):
    id: int
    name: str
    phone: Optional[str]
    email: Optional[str]
    address: Optional[str]
    created_at: datetime
    active: bool

    class Config:
        from_attributes = True


class CreateSupplierRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    phone: Optional[str] = Field(None, max_length=20, pattern=r"^[0-9+()\-\s]+$")
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, max_length=250)


class UpdateSupplierRequest(CreateSupplierRequest):
    id: Optional[int] = None
    active: bool = True


@router.get("", response_model=List[SupplierResponse])
def list_suppliers(db: Session = Depends(get_db)):
    return SupplierService(db).list_active()


@router.get("/{supplier_id}", response_model=SupplierResponse)
def get_supplier(supplier_id: int, db: Session = Depends(get_db)):
    return SupplierService(db).get_active(supplier_id)


@router.get("/{supplier_id}/productos", response_model=List[ProductResponse])
def list_supplier_products(supplier_id: int, db: Session = Depends(get_db)):
    return ProductService(db).list_by_supplier(supplier_id)


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
def create_supplier(
    req: CreateSupplierRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return SupplierService(db).create(req.name, req.phone, req.email, req.address)


@router.put("/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: int,
    req: UpdateSupplierRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    if req.id is not None and req.id != supplier_id:
        raise ValidationError.for_field("id", "The id in the body does not match the URL")
    return SupplierService(db).update(
        supplier_id, req.name, req.phone, req.email, req.address, req.active
    )


@router.delete("/{supplier_id}", response_model=MessageResponse)
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    SupplierService(db).deactivate(supplier_id)
    return MessageResponse(message="Supplier deleted successfully")
