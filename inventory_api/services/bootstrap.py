"""
Inventory API — Initial data
Starter categories, suppliers and the first administrator. Safe to run
repeatedly: rows that already exist are left alone.
"""

from __future__ import annotations

import logging
from typing import Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from inventory_api.config import Settings
from inventory_api.models.catalog import Category, Supplier
from inventory_api.models.users import ROLE_ADMIN
from inventory_api.services.users import UserService

logger = logging.getLogger("inventory_api.bootstrap")

INITIAL_CATEGORIES = [
    ("Lácteos", "Productos lácteos y derivados"),
    ("Carnes", "Carnes rojas, blancas y embutidos"),
    ("Frutas y Verduras", "Productos frescos"),
    ("Bebidas", "Bebidas alcohólicas y no alcohólicas"),
    ("Panadería", "Pan y productos de panadería"),
]

INITIAL_SUPPLIERS = [
    {
        "name": "Lácteos del Valle S.A.",
        "phone": "0981-123456",
        "email": "ventas@lacteosvalle.com",
        "address": "Av. España 1234, Asunción",
    },
    {
        "name": "Frigorífico Central",
        "phone": "0982-789012",
        "email": "pedidos@frigorifico.com",
        "address": "Ruta 1 Km 25, San Lorenzo",
    },
    {
        "name": "Distribuidora Frutas Frescas",
        "phone": "0983-345678",
        "email": "info@frutasfrescas.com",
        "address": "Mercado Central, Local 45",
    },
]


def seed_initial_data(session: Session, settings: Settings) -> Dict[str, int]:
    """Insert missing starter rows and return how many of each were added."""
    added = {"categories": 0, "suppliers": 0, "users": 0}

    for name, description in INITIAL_CATEGORIES:
        exists = session.scalars(
            select(Category.id).where(func.lower(Category.name) == name.lower())
        ).first()
        if exists is None:
            session.add(Category(name=name, description=description))
            added["categories"] += 1

    for data in INITIAL_SUPPLIERS:
        exists = session.scalars(
            select(Supplier.id).where(func.lower(Supplier.email) == data["email"].lower())
        ).first()
        if exists is None:
            session.add(Supplier(**data))
            added["suppliers"] += 1

    session.commit()

    users = UserService(session)
    if users.find_by_email(settings.BOOTSTRAP_ADMIN_EMAIL) is None:
        users.create_user(
            settings.BOOTSTRAP_ADMIN_NAME,
            settings.BOOTSTRAP_ADMIN_EMAIL,
            settings.BOOTSTRAP_ADMIN_PASSWORD,
            ROLE_ADMIN,
        )
        added["users"] += 1

    logger.info(
        "seeded %(categories)d categories, %(suppliers)d suppliers, %(users)d users",
        added,
    )
    return added
