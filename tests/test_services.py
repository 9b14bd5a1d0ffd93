"""
Inventory API — Service Layer Tests
UserService and the catalog services called directly against a session,
plus the initial-data seeder.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from inventory_api.config import Settings
from inventory_api.core.exceptions import (
    ConflictError,
    LastAdminError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
)
from inventory_api.core.security import CurrentUser
from inventory_api.models.catalog import Category, Supplier
from inventory_api.models.users import User
from inventory_api.services.bootstrap import (
    INITIAL_CATEGORIES,
    INITIAL_SUPPLIERS,
    seed_initial_data,
)
from inventory_api.services.catalog import (
    CategoryService,
    ProductInput,
    ProductService,
    SupplierService,
)
from inventory_api.services.users import UserService


def _as_caller(user: User) -> CurrentUser:
    return CurrentUser(user_id=user.id, role=user.role, name=user.name, email=user.email)


# ═══════════════════════════════════════════════════════════════════════════════
# USERS
# ═══════════════════════════════════════════════════════════════════════════════


class TestUserService:
    def test_create_strips_email_and_hashes(self, db_session):
        user = UserService(db_session).create_user(" Ana ", "  ana@store.com ", "abcdef")
        assert user.name == "Ana"
        assert user.email == "ana@store.com"
        assert user.hashed_password != "abcdef"
        assert user.role == "Employee"

    def test_create_duplicate_email_conflict(self, db_session, employee_user):
        with pytest.raises(ConflictError) as exc_info:
            UserService(db_session).create_user("Dup", "EMMA@store.com", "abcdef")
        assert exc_info.value.field == "email"

    def test_authenticate_ignores_email_case(self, db_session, employee_user):
        user = UserService(db_session).authenticate("Emma@Store.COM", "Secret123")
        assert user is not None
        assert user.id == employee_user.id

    def test_authenticate_wrong_password(self, db_session, employee_user):
        assert UserService(db_session).authenticate("emma@store.com", "nope") is None

    def test_authenticate_unknown_email(self, db_session):
        assert UserService(db_session).authenticate("ghost@store.com", "Secret123") is None

    def test_count_active_admins(self, db_session, admin_user, make_user):
        make_user(name="Old Admin", email="old@store.com", role="Admin", active=False)
        make_user(name="New Admin", email="new@store.com", role="Admin")
        assert UserService(db_session).count_active_admins() == 2

    def test_list_active_ordered_by_name(self, db_session, make_user):
        make_user(name="Zoe", email="zoe@store.com")
        make_user(name="Ana", email="ana@store.com")
        make_user(name="Mia", email="mia@store.com", active=False)
        names = [u.name for u in UserService(db_session).list_active()]
        assert names == ["Ana", "Zoe"]

    def test_deactivate_last_admin_blocked(self, db_session, admin_user):
        with pytest.raises(LastAdminError):
            UserService(db_session).deactivate_user(_as_caller(admin_user), admin_user.id)
        db_session.refresh(admin_user)
        assert admin_user.active is True

    def test_deactivate_unknown_user(self, db_session, admin_user):
        with pytest.raises(NotFoundError):
            UserService(db_session).deactivate_user(_as_caller(admin_user), 424242)


# ═══════════════════════════════════════════════════════════════════════════════
# CATALOG
# ═══════════════════════════════════════════════════════════════════════════════


class TestCatalogServices:
    def test_category_name_taken_only_among_active(self, db_session):
        service = CategoryService(db_session)
        first = service.create("Limpieza")
        assert service.name_taken("LIMPIEZA")
        service.deactivate(first.id)
        assert not service.name_taken("limpieza")

    def test_category_rename_onto_existing_name(self, db_session):
        service = CategoryService(db_session)
        service.create("Limpieza")
        other = service.create("Higiene")
        with pytest.raises(ConflictError):
            service.update(other.id, "limpieza", None)

    def test_category_reactivated_by_update(self, db_session, category):
        service = CategoryService(db_session)
        service.deactivate(category.id)
        restored = service.update(category.id, "Bebidas", None, active=True)
        assert restored.active is True

    def test_category_in_use_cannot_be_deactivated(self, db_session, category, product):
        with pytest.raises(ReferentialIntegrityError) as exc_info:
            CategoryService(db_session).deactivate(category.id)
        assert exc_info.value.dependents == "products"

    def test_supplier_without_email_never_conflicts(self, db_session):
        service = SupplierService(db_session)
        service.create("Feria A")
        service.create("Feria B")
        assert len(service.list_active()) == 2

    def test_supplier_in_use_cannot_be_deactivated(self, db_session, supplier, product):
        with pytest.raises(ReferentialIntegrityError):
            SupplierService(db_session).deactivate(supplier.id)

    def test_product_create_and_view(self, db_session, employee_user, category, supplier):
        view = ProductService(db_session).create(
            _as_caller(employee_user),
            ProductInput(
                name="Yogur",
                price=Decimal("0.99"),
                stock=5,
                category_id=category.id,
                supplier_id=supplier.id,
            ),
        )
        assert view.category_name == "Bebidas"
        assert view.supplier_name == "Distribuidora Central"
        assert view.price == Decimal("0.99")

    def test_product_with_inactive_category_rejected(
        self, db_session, employee_user, category, supplier
    ):
        category.active = False
        db_session.commit()
        with pytest.raises(ValidationError) as exc_info:
            ProductService(db_session).create(
                _as_caller(employee_user),
                ProductInput(
                    name="Yogur",
                    price=Decimal("0.99"),
                    stock=5,
                    category_id=category.id,
                    supplier_id=supplier.id,
                ),
            )
        assert exc_info.value.errors[0]["field"] == "category_id"

    def test_stock_increase_recorded(self, db_session, employee_user, category, supplier, product):
        service = ProductService(db_session)
        service.update(
            _as_caller(employee_user),
            product.id,
            ProductInput(
                name=product.name,
                price=product.price,
                stock=55,
                category_id=category.id,
                supplier_id=supplier.id,
            ),
        )
        history = service.stock_history(product.id)
        assert [(m.movement_type, m.quantity) for m in history] == [("Entrada", 15)]
        assert history[0].user_id == employee_user.id

    def test_inactive_products_hidden_from_lists(self, db_session, category, product):
        service = ProductService(db_session)
        service.deactivate(product.id)
        assert service.list_active() == []
        assert service.list_by_category(category.id) == []
        with pytest.raises(NotFoundError):
            service.get_active(product.id)


# ═══════════════════════════════════════════════════════════════════════════════
# INITIAL DATA
# ═══════════════════════════════════════════════════════════════════════════════


class TestSeed:
    def _settings(self) -> Settings:
        return Settings(
            JWT_SECRET="seed-test",
            BOOTSTRAP_ADMIN_EMAIL="boss@store.com",
            BOOTSTRAP_ADMIN_PASSWORD="Boss1234",
        )

    def test_seed_populates_empty_database(self, db_session):
        added = seed_initial_data(db_session, self._settings())
        assert added == {
            "categories": len(INITIAL_CATEGORIES),
            "suppliers": len(INITIAL_SUPPLIERS),
            "users": 1,
        }
        admin = UserService(db_session).authenticate("boss@store.com", "Boss1234")
        assert admin is not None
        assert admin.role == "Admin"

    def test_seed_is_idempotent(self, db_session):
        seed_initial_data(db_session, self._settings())
        again = seed_initial_data(db_session, self._settings())
        assert again == {"categories": 0, "suppliers": 0, "users": 0}
        assert db_session.query(Category).count() == len(INITIAL_CATEGORIES)
        assert db_session.query(Supplier).count() == len(INITIAL_SUPPLIERS)

    def test_seed_keeps_existing_category(self, db_session, category):
        added = seed_initial_data(db_session, self._settings())
        assert added["categories"] == len(INITIAL_CATEGORIES) - 1
