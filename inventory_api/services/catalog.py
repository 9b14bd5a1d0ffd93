"""
Inventory API — Catalog Services
Categories, suppliers and products: uniqueness among active rows, foreign-key
existence checks, soft-deletion and the block on removing a category or
supplier that active products still reference.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from inventory_api.core.exceptions import (
    ConflictError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
)
from inventory_api.core.security import CurrentUser
from inventory_api.models.catalog import Category, Product, StockMovement, Supplier

logger = logging.getLogger("inventory_api.catalog")


def _has_active_products(session: Session, column, value: int) -> bool:
    stmt = select(Product.id).where(column == value, Product.active.is_(True)).limit(1)
    return session.scalars(stmt).first() is not None


# ─────────────────────────────────────────────────────────────────────────────
# CATEGORIES
# ─────────────────────────────────────────────────────────────────────────────


class CategoryService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_active(self) -> List[Category]:
        stmt = select(Category).where(Category.active.is_(True)).order_by(Category.name)
        return list(self.session.scalars(stmt))

    def get_active(self, category_id: int) -> Category:
        category = self.session.get(Category, category_id)
        if category is None or not category.active:
            raise NotFoundError("category", category_id)
        return category

    def name_taken(self, name: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(Category.id).where(
            func.lower(Category.name) == name.strip().lower(),
            Category.active.is_(True),
        )
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        return self.session.scalars(stmt).first() is not None

    def create(self, name: str, description: Optional[str] = None) -> Category:
        if self.name_taken(name):
            raise ConflictError("category", "name", name)
        category = Category(name=name.strip(), description=description, active=True)
        self.session.add(category)
        self.session.commit()
        self.session.refresh(category)
        return category

    def update(
        self,
        category_id: int,
        name: str,
        description: Optional[str],
        active: bool = True,
    ) -> Category:
        category = self.session.get(Category, category_id)
        if category is None:
            raise NotFoundError("category", category_id)
        if self.name_taken(name, exclude_id=category_id):
            raise ConflictError("category", "name", name)
        if category.active and not active and _has_active_products(
            self.session, Product.category_id, category_id
        ):
            raise ReferentialIntegrityError("category", category_id, "products")

        category.name = name.strip()
        category.description = description
        category.active = active
        self.session.commit()
        self.session.refresh(category)
        return category

    def deactivate(self, category_id: int) -> None:
        category = self.get_active(category_id)
        if _has_active_products(self.session, Product.category_id, category_id):
            raise ReferentialIntegrityError("category", category_id, "products")
        category.active = False
        self.session.commit()
        logger.info("category_id=%s deactivated", category_id)


# ─────────────────────────────────────────────────────────────────────────────
# SUPPLIERS
# ─────────────────────────────────────────────────────────────────────────────


class SupplierService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_active(self) -> List[Supplier]:
        stmt = select(Supplier).where(Supplier.active.is_(True)).order_by(Supplier.name)
        return list(self.session.scalars(stmt))

    def get_active(self, supplier_id: int) -> Supplier:
        supplier = self.session.get(Supplier, supplier_id)
        if supplier is None or not supplier.active:
            raise NotFoundError("supplier", supplier_id)
        return supplier

    def email_taken(self, email: Optional[str], exclude_id: Optional[int] = None) -> bool:
        if not email:
            return False
        stmt = select(Supplier.id).where(
            func.lower(Supplier.email) == email.strip().lower(),
            Supplier.active.is_(True),
        )
        if exclude_id is not None:
            stmt = stmt.where(Supplier.id != exclude_id)
        return self.session.scalars(stmt).first() is not None

    def create(
        self,
        name: str,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Supplier:
        if self.email_taken(email):
            raise ConflictError("supplier", "email", email)
        supplier = Supplier(
            name=name.strip(),
            phone=phone,
            email=email.strip() if email else None,
            address=address,
            active=True,
        )
        self.session.add(supplier)
        self.session.commit()
        self.session.refresh(supplier)
        return supplier

    def update(
        self,
        supplier_id: int,
        name: str,
        phone: Optional[str],
        email: Optional[str],
        address: Optional[str],
        active: bool = True,
    ) -> Supplier:
        supplier = self.session.get(Supplier, supplier_id)
        if supplier is None:
            raise NotFoundError("supplier", supplier_id)
        if self.email_taken(email, exclude_id=supplier_id):
            raise ConflictError("supplier", "email", email)
        if supplier.active and not active and _has_active_products(
            self.session, Product.supplier_id, supplier_id
        ):
            raise ReferentialIntegrityError("supplier", supplier_id, "products")

        supplier.name = name.strip()
        supplier.phone = phone
        supplier.email = email.strip() if email else None
        supplier.address = address
        supplier.active = active
        self.session.commit()
        self.session.refresh(supplier)
        return supplier

    def deactivate(self, supplier_id: int) -> None:
        supplier = self.get_active(supplier_id)
        if _has_active_products(self.session, Product.supplier_id, supplier_id):
            raise ReferentialIntegrityError("supplier", supplier_id, "products")
        supplier.active = False
        self.session.commit()
        logger.info("supplier_id=%s deactivated", supplier_id)


# ─────────────────────────────────────────────────────────────────────────────
# PRODUCTS
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProductView:
    """A product with its category and supplier names already resolved."""

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


@dataclass(frozen=True)
class ProductInput:
    name: str
    price: Decimal
    stock: int
    category_id: int
    supplier_id: int
    description: Optional[str] = None
    expires_on: Optional[date] = None
    active: bool = True


class ProductService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _view_query(self) -> Select:
        return (
            select(Product, Category.name, Supplier.name)
            .join(Category, Product.category_id == Category.id)
            .join(Supplier, Product.supplier_id == Supplier.id)
        )

    @staticmethod
    def _to_view(product: Product, category_name: str, supplier_name: str) -> ProductView:
        return ProductView(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            stock=product.stock,
            category_id=product.category_id,
            category_name=category_name,
            supplier_id=product.supplier_id,
            supplier_name=supplier_name,
            expires_on=product.expires_on,
            created_at=product.created_at,
            active=product.active,
        )

    def _views(self, stmt: Select) -> List[ProductView]:
        return [self._to_view(*row) for row in self.session.execute(stmt).all()]

    def list_active(self) -> List[ProductView]:
        stmt = self._view_query().where(Product.active.is_(True)).order_by(Product.name)
        return self._views(stmt)

    def list_by_category(self, category_id: int) -> List[ProductView]:
        stmt = (
            self._view_query()
            .where(Product.category_id == category_id, Product.active.is_(True))
            .order_by(Product.name)
        )
        return self._views(stmt)

    def list_by_supplier(self, supplier_id: int) -> List[ProductView]:
        SupplierService(self.session).get_active(supplier_id)
        stmt = (
            self._view_query()
            .where(Product.supplier_id == supplier_id, Product.active.is_(True))
            .order_by(Product.name)
        )
        return self._views(stmt)

    def get_active(self, product_id: int) -> ProductView:
        stmt = self._view_query().where(
            Product.id == product_id, Product.active.is_(True)
        )
        row = self.session.execute(stmt).first()
        if row is None:
            raise NotFoundError("product", product_id)
        return self._to_view(*row)

    def _check_references(self, data: ProductInput) -> None:
        category = self.session.get(Category, data.category_id)
        if category is None or not category.active:
            raise ValidationError.for_field(
                "category_id", "The specified category does not exist"
            )
        supplier = self.session.get(Supplier, data.supplier_id)
        if supplier is None or not supplier.active:
            raise ValidationError.for_field(
                "supplier_id", "The specified supplier does not exist"
            )

    def _record_movement(
        self, product: Product, caller: CurrentUser, delta: int, reason: str
    ) -> None:
        if delta == 0:
            return
        self.session.add(
            StockMovement(
                product=product,
                user_id=caller.user_id,
                movement_type="Entrada" if delta > 0 else "Salida",
                quantity=abs(delta),
                reason=reason,
                unit_price=product.price,
            )
        )

    def create(self, caller: CurrentUser, data: ProductInput) -> ProductView:
        self._check_references(data)
        product = Product(
            name=data.name.strip(),
            description=data.description,
            price=data.price,
            stock=data.stock,
            category_id=data.category_id,
            supplier_id=data.supplier_id,
            expires_on=data.expires_on,
            active=True,
        )
        self.session.add(product)
        self._record_movement(product, caller, data.stock, "Initial stock")
        self.session.commit()
        return self.get_active(product.id)

    def update(self, caller: CurrentUser, product_id: int, data: ProductInput) -> Product:
        product = self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("product", product_id)
        self._check_references(data)

        delta = data.stock - product.stock
        product.name = data.name.strip()
        product.description = data.description
        product.price = data.price
        product.stock = data.stock
        product.category_id = data.category_id
        product.supplier_id = data.supplier_id
        product.expires_on = data.expires_on
        product.active = data.active
        self._record_movement(product, caller, delta, "Stock adjustment")
        self.session.commit()
        return product

    def deactivate(self, product_id: int) -> None:
        product = self.session.get(Product, product_id)
        if product is None or not product.active:
            raise NotFoundError("product", product_id)
        product.active = False
        self.session.commit()
        logger.info("product_id=%s deactivated", product_id)

    def stock_history(self, product_id: int) -> List[StockMovement]:
        if self.session.get(Product, product_id) is None:
            raise NotFoundError("product", product_id)
        stmt = (
            select(StockMovement)
            .where(StockMovement.product_id == product_id)
            .order_by(StockMovement.occurred_at, StockMovement.id)
        )
        return list(self.session.scalars(stmt))
