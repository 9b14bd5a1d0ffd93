"""
Inventory API — API v1: Products
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from inventory_api.api.deps import get_current_user, require_admin
from inventory_api.api.v1.users import MessageResponse
from inventory_api.core.security import CurrentUser
from inventory_api.database import get_db
from inventory_api.services.catalog import ProductInput, ProductService

router = APIRouter(prefix="/productos", tags=["products"])


class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    price: Decimal
    stock: int
    category_id: int
    category_name: str
    supplier_id: int
    supplier_name: str
    expires_on: Optional[date]
    created_at: datetime
    active: bool

    class Config:
        from_attributes = True


class StockMovementResponse(BaseModel):
    id: int
    product_id: int
    user_id: int
    movement_type: str
    quantity: int
    occurred_at: datetime
    reason: Optional[str]
    unit_price: Optional[Decimal]

    class Config:
        from_attributes = True


class CreateProductRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    stock: int = Field(..., ge=0)
    category_id: int
    supplier_id: int
    expires_on: Optional[date] = None

    def to_input(self, active: bool = True) -> ProductInput:
        return ProductInput(
            name=self.name,
            description=self.description,
            price=self.price,
            stock=self.stock,
            category_id=self.category_id,
            supplier_id=self.supplier_id,
            expires_on=self.expires_on,
            active=active,
        )


class UpdateProductRequest(CreateProductRequest):
    active: bool = True


@router.get("", response_model=List[ProductResponse])
def list_products(db: Session = Depends(get_db)):
    return ProductService(db).list_active()


@router.get("/categoria/{category_id}", response_model=List[ProductResponse])
def list_products_by_category(category_id: int, db: Session = Depends(get_db)):
    return ProductService(db).list_by_category(category_id)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return ProductService(db).get_active(product_id)


@router.get("/{product_id}/historial", response_model=List[StockMovementResponse])
def get_stock_history(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return ProductService(db).stock_history(product_id)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    req: CreateProductRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return ProductService(db).create(current_user, req.to_input())


@router.put("/{product_id}", response_model=MessageResponse)
def update_product(
    product_id: int,
    req: UpdateProductRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    ProductService(db).update(current_user, product_id, req.to_input(req.active))
    return MessageResponse(message="Product updated successfully")


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    ProductService(db).deactivate(product_id)
    return MessageResponse(message="Product deleted successfully")
