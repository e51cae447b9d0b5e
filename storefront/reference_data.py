"""
Reference data lookup for storefront requests.

Turns database rows into the read-only snapshots the calculator accepts:
account credentials, business pricing settings, fabric, curtain template and
option prices. Lookups that the storefront treats as fatal (account, fabric)
raise NotFoundError; everything else falls back to defaults.
"""

import hmac
import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from . import models
from .config import settings
from .exceptions import AuthorizationError, NotFoundError
from .schemas import BusinessConfig, FabricReference, OptionPrice, TemplateReference

logger = logging.getLogger(__name__)


def authenticate_account(db: Session, account_id: str, api_key: str) -> models.AccountSettings:
    """Load the account and check its storefront key in constant time."""
    account = db.query(models.AccountSettings).filter(
        models.AccountSettings.account_owner_id == account_id
    ).first()
    if not account:
        logger.warning("Account not found: %s", account_id)
        raise NotFoundError("Account not found")

    stored_key = account.storefront_api_key or ""
    if not stored_key or not hmac.compare_digest(stored_key.encode(), api_key.encode()):
        logger.warning("Invalid API key for account: %s", account_id)
        raise AuthorizationError("Invalid API key")
    return account


def get_business_config(db: Session, account: models.AccountSettings) -> BusinessConfig:
    business = db.query(models.BusinessSettings).filter(
        models.BusinessSettings.user_id == account.account_owner_id
    ).first()
    return BusinessConfig(
        tax_rate_percent=(business.tax_rate if business else None) or 0.0,
        margin_percent=(business.default_profit_margin_percentage if business else None) or 0.0,
        currency=account.currency or settings.DEFAULT_CURRENCY,
    )


def get_fabric(db: Session, account_id: str, fabric_id: str) -> FabricReference:
    """Fabric must belong to the account. Width: width → fabric_width → default."""
    fabric = db.query(models.InventoryItem).filter(
        models.InventoryItem.id == fabric_id,
        models.InventoryItem.user_id == account_id,
    ).first()
    if not fabric:
        logger.warning("Fabric not found: %s (account %s)", fabric_id, account_id)
        raise NotFoundError(f"Fabric not found: {fabric_id}")
    return FabricReference(
        name=fabric.name,
        price_per_meter=fabric.selling_price or 0.0,
        width_cm=fabric.width or fabric.fabric_width or None,
        pattern_repeat_cm=fabric.pattern_repeat_vertical or 0.0,
    )


def get_template(db: Session, template_id: Optional[str]) -> Optional[TemplateReference]:
    """Missing template is not an error; the calculator uses default fullness."""
    if not template_id:
        return None
    template = db.query(models.CurtainTemplate).filter(
        models.CurtainTemplate.id == template_id
    ).first()
    if not template:
        logger.info("Template %s not found, using default fullness", template_id)
        return None
    return TemplateReference(fullness_ratio=template.fullness_ratio)


def resolve_option_prices(db: Session, account_id: str,
                          selections: Optional[Dict[str, str]]) -> Dict[str, OptionPrice]:
    """
    Resolve {option_key: value_id} selections into prices.

    Lookup order: option_values.value_key (flat modifier), then an inventory
    item of the account with that id (per-metre price). Selections matching
    neither are dropped.
    """
    resolved: Dict[str, OptionPrice] = {}
    for key, value in (selections or {}).items():
        if not value:
            continue
        option = db.query(models.OptionValue).filter(
            models.OptionValue.value_key == value
        ).first()
        if option and option.price_modifier:
            resolved[key] = OptionPrice(price_modifier=option.price_modifier)
            continue

        item = db.query(models.InventoryItem).filter(
            models.InventoryItem.id == value,
            models.InventoryItem.user_id == account_id,
        ).first()
        if item and item.selling_price:
            resolved[key] = OptionPrice(price_per_meter=item.selling_price)
            continue

        logger.debug("Option %s=%s has no price, ignored", key, value)
    return resolved
