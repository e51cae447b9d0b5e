"""
Seed a demo storefront account for local development.

    python -m storefront.seed

Idempotent: existing rows (matched on their natural keys) are left alone.
"""

import logging

from sqlalchemy.orm import Session

from . import models
from .database import Base, SessionLocal, engine

logger = logging.getLogger(__name__)

DEMO_ACCOUNT_ID = "demo-account"
DEMO_API_KEY = "demo-storefront-key"

# Prices per metre, widths and repeats in cm
DEMO_FABRICS = {
    "fab-linen-natural": {"name": "Natural Linen", "selling_price": 20.0, "width": 140.0, "pattern_repeat_vertical": 0.0},
    "fab-damask-gold": {"name": "Gold Damask", "selling_price": 45.0, "width": 137.0, "pattern_repeat_vertical": 64.0},
    "fab-voile-white": {"name": "White Voile", "selling_price": 12.5, "fabric_width": 300.0, "pattern_repeat_vertical": 0.0},
}

DEMO_LININGS = {
    "lin-blackout": {"name": "Blackout Lining", "selling_price": 8.0, "width": 140.0, "category": "lining"},
}

DEMO_TEMPLATES = {
    "tpl-pencil-pleat": {"name": "Pencil Pleat", "fullness_ratio": 2.5},
    "tpl-wave": {"name": "Wave", "fullness_ratio": 2.0},
    "tpl-flat": {"name": "Flat Panel", "fullness_ratio": 1.2},
}

DEMO_OPTION_VALUES = [
    {"option_key": "track", "value_key": "track-motorised", "label": "Motorised track", "price_modifier": 120.0},
    {"option_key": "track", "value_key": "track-standard", "label": "Standard track", "price_modifier": 25.0},
    {"option_key": "tiebacks", "value_key": "tiebacks-rope", "label": "Rope tiebacks", "price_modifier": 15.0},
]


def seed_demo_account(db: Session) -> models.AccountSettings:
    account = db.query(models.AccountSettings).filter(
        models.AccountSettings.account_owner_id == DEMO_ACCOUNT_ID
    ).first()
    if not account:
        account = models.AccountSettings(
            account_owner_id=DEMO_ACCOUNT_ID, storefront_api_key=DEMO_API_KEY, currency="GBP",
        )
        db.add(account)

    if not db.query(models.BusinessSettings).filter(models.BusinessSettings.user_id == DEMO_ACCOUNT_ID).first():
        db.add(models.BusinessSettings(
            user_id=DEMO_ACCOUNT_ID, company_name="Demo Drapery Co",
            tax_rate=20.0, default_profit_margin_percentage=40.0,
        ))

    for item_id, data in {**DEMO_FABRICS, **DEMO_LININGS}.items():
        if not db.query(models.InventoryItem).filter(models.InventoryItem.id == item_id).first():
            db.add(models.InventoryItem(id=item_id, user_id=DEMO_ACCOUNT_ID, **data))

    for template_id, data in DEMO_TEMPLATES.items():
        if not db.query(models.CurtainTemplate).filter(models.CurtainTemplate.id == template_id).first():
            db.add(models.CurtainTemplate(id=template_id, user_id=DEMO_ACCOUNT_ID, **data))

    for data in DEMO_OPTION_VALUES:
        existing = db.query(models.OptionValue).filter(
            models.OptionValue.value_key == data["value_key"]
        ).first()
        if not existing:
            db.add(models.OptionValue(**data))

    db.commit()
    return account


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_demo_account(db)
        logger.info("Seeded demo account %s", DEMO_ACCOUNT_ID)
    finally:
        db.close()
