"""
Public storefront API: quick estimates and online quote requests.

Callers authenticate with account_id + api_key in the JSON body. All
responses, including errors and preflight, carry permissive CORS headers.
"""

import logging
import math
import re
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import schemas
from ..calculators import CurtainCalculator
from ..config import settings
from ..database import get_db
from ..exceptions import InternalError, StorefrontError, ValidationError
from ..project_intake import ProjectIntake
from ..reference_data import (
    authenticate_account,
    get_business_config,
    get_fabric,
    get_template,
    resolve_option_prices,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/storefront", tags=["storefront"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _json(payload: BaseModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=payload.model_dump(), status_code=status_code, headers=CORS_HEADERS)


def _preflight() -> Response:
    return Response(status_code=204, headers=CORS_HEADERS)


# --- Validation ---

def require_credentials(account_id: Optional[str], api_key: Optional[str]) -> None:
    if not account_id:
        raise ValidationError("account_id is required")
    if not api_key:
        raise ValidationError("api_key is required")


def has_dimensions(width_mm: Optional[float], drop_mm: Optional[float]) -> bool:
    """Both present, finite and positive."""
    return all(
        value is not None and math.isfinite(value) and value > 0
        for value in (width_mm, drop_mm)
    )


def require_dimension_limits(width_mm: float, drop_mm: float, prefix: str = "") -> None:
    limit = settings.MAX_DIMENSION_MM
    if width_mm > limit or drop_mm > limit:
        raise ValidationError(f"{prefix}width_mm and drop_mm must be at most {limit:g}")


def require_quantity(quantity: Optional[int], prefix: str = "") -> int:
    if quantity is None:
        return 1
    if quantity < 1:
        raise ValidationError(f"{prefix}quantity must be at least 1")
    if quantity > settings.MAX_QUANTITY:
        raise ValidationError(f"{prefix}quantity must be at most {settings.MAX_QUANTITY}")
    return quantity


def validate_estimate_request(body: schemas.EstimateRequest) -> int:
    """Returns the effective quantity."""
    require_credentials(body.account_id, body.api_key)
    if not has_dimensions(body.width_mm, body.drop_mm):
        raise ValidationError("width_mm and drop_mm are required")
    require_dimension_limits(body.width_mm, body.drop_mm)
    return require_quantity(body.quantity)


def validate_project_request(body: schemas.ProjectRequest) -> None:
    require_credentials(body.account_id, body.api_key)

    customer = body.customer
    if not customer or not customer.name or not customer.email:
        raise ValidationError("customer.name and customer.email are required")
    if not EMAIL_RE.match(customer.email.strip()):
        raise ValidationError("Invalid email format")

    if not body.items:
        raise ValidationError("items array is required and cannot be empty")
    for number, item in enumerate(body.items, start=1):
        if not has_dimensions(item.width_mm, item.drop_mm):
            raise ValidationError(f"Item {number}: width_mm and drop_mm are required")
        require_dimension_limits(item.width_mm, item.drop_mm, prefix=f"Item {number}: ")
        require_quantity(item.quantity, prefix=f"Item {number}: ")


# --- Endpoints ---

@router.options("/estimate")
def estimate_preflight():
    return _preflight()


@router.post("/estimate")
def create_estimate(body: schemas.EstimateRequest, db: Session = Depends(get_db)):
    """Fabric quantity and price breakdown for a single treatment. Nothing is stored."""
    quantity = validate_estimate_request(body)
    try:
        account = authenticate_account(db, body.account_id, body.api_key)
        business = get_business_config(db, account)

        fabric = get_fabric(db, body.account_id, body.fabric_id) if body.fabric_id else None
        template = get_template(db, body.template_id)
        options = resolve_option_prices(db, body.account_id, body.options)

        calculator = CurtainCalculator(schemas.EstimationConfig.from_settings(settings))
        estimate = calculator.calculate(
            body.width_mm, body.drop_mm, quantity=quantity,
            fabric=fabric, template=template, options=options, business=business,
        )
    except StorefrontError:
        raise
    except Exception as e:
        logger.exception("Storefront estimate error: %s", e)
        raise InternalError()

    logger.info(
        "Estimate for account %s: %sx%smm qty=%s total=%s %s",
        body.account_id, body.width_mm, body.drop_mm, quantity, estimate.total, estimate.currency,
    )
    return _json(schemas.EstimateResponse(estimate=estimate))


@router.options("/project")
def project_preflight():
    return _preflight()


@router.post("/project")
def create_project(body: schemas.ProjectRequest, db: Session = Depends(get_db)):
    """Create client, project, draft quote and treatments from an online quote request."""
    validate_project_request(body)
    try:
        account = authenticate_account(db, body.account_id, body.api_key)
        business = get_business_config(db, account)
        logger.info(
            "Creating project for account: %s, items: %d", body.account_id, len(body.items),
        )
        intake = ProjectIntake(db, account, business, schemas.EstimationConfig.from_settings(settings))
        result = intake.submit(body)
    except StorefrontError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Storefront project error: %s", e)
        raise InternalError()

    return _json(result)
