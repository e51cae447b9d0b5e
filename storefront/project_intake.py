"""
Storefront project intake.

Turns an online quote request into workroom records:
client (found or created) → project → draft quote → rooms → treatments,
then quote totals, an activity-log entry and an owner notification.

Pricing per item reuses the curtain calculator with tax excluded; tax is
applied once on the quote subtotal.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models
from .calculators import CurtainCalculator
from .calculators.base import ZERO
from .reference_data import get_fabric, get_template, resolve_option_prices
from .schemas import (
    BusinessConfig,
    EstimationConfig,
    ProjectRequest,
    ProjectResponse,
    ProjectSummary,
    QuoteSummary,
    TreatmentSummary,
)

logger = logging.getLogger(__name__)

QUOTE_NUMBER_ATTEMPTS = 3


def generate_quote_number(db: Session, account_id: str) -> str:
    count = db.query(models.Quote).filter(models.Quote.user_id == account_id).count()
    year = datetime.utcnow().year
    return f"Q-{year}-{str(count + 1).zfill(4)}"


class ProjectIntake:
    """Creates the project, quote and treatments for one storefront request."""

    def __init__(self, db: Session, account: models.AccountSettings,
                 business: BusinessConfig, config: EstimationConfig):
        self.db = db
        self.account = account
        self.account_id = account.account_owner_id
        self.business = business
        self.calculator = CurtainCalculator(config)

    def find_or_create_client(self, request: ProjectRequest) -> tuple[models.Client, bool]:
        """Returns (client, is_new). Matches on lowercased, trimmed email."""
        email = request.customer.email.lower().strip()
        client = self.db.query(models.Client).filter(
            models.Client.user_id == self.account_id,
            models.Client.email == email,
        ).first()
        if client:
            logger.info("Found existing client: %s", client.id)
            return client, False

        client = models.Client(
            user_id=self.account_id,
            name=request.customer.name.strip(),
            email=email,
            phone=request.customer.phone.strip() if request.customer.phone else None,
            lead_source=request.source,
            notes=f"Online quote request: {request.message}" if request.message else None,
            funnel_stage="lead",
        )
        self.db.add(client)
        self.db.flush()
        logger.info("Created new client: %s", client.id)
        return client, True

    def submit(self, request: ProjectRequest) -> ProjectResponse:
        """
        create() with a retry when a concurrent request for the same account
        committed the quote number first (unique per account).
        """
        for attempt in range(1, QUOTE_NUMBER_ATTEMPTS + 1):
            try:
                return self.create(request)
            except IntegrityError:
                self.db.rollback()
                if attempt == QUOTE_NUMBER_ATTEMPTS:
                    raise
                logger.warning(
                    "Quote number taken for account %s, retrying (%d/%d)",
                    self.account_id, attempt, QUOTE_NUMBER_ATTEMPTS,
                )

    def create(self, request: ProjectRequest) -> ProjectResponse:
        client, is_new_client = self.find_or_create_client(request)

        project = models.Project(
            user_id=self.account_id,
            client_id=client.id,
            name=f"Online Quote - {request.customer.name}",
            description=request.message or None,
            source=request.source,
            status=models.ProjectStatus.PLANNING.value,
        )
        self.db.add(project)
        self.db.flush()

        quote = models.Quote(
            user_id=self.account_id,
            client_id=client.id,
            project_id=project.id,
            quote_number=generate_quote_number(self.db, self.account_id),
            status=models.QuoteStatus.DRAFT.value,
        )
        self.db.add(quote)
        self.db.flush()
        logger.info("Created quote %s (%s) for project %s", quote.id, quote.quote_number, project.id)

        # Items are priced pre-tax; tax is applied on the quote subtotal below
        item_business = BusinessConfig(currency=self.business.currency)
        rooms: dict[str, models.Room] = {}
        treatments: list[TreatmentSummary] = []
        quote_subtotal = ZERO

        for index, item in enumerate(request.items, start=1):
            room_name = item.room_name or f"Room {index}"
            quantity = item.quantity or 1

            room = rooms.get(room_name)
            if room is None:
                room = models.Room(
                    project_id=project.id, quote_id=quote.id,
                    name=room_name, user_id=self.account_id,
                )
                self.db.add(room)
                self.db.flush()
                rooms[room_name] = room

            fabric = get_fabric(self.db, self.account_id, item.fabric_id) if item.fabric_id else None
            template = get_template(self.db, item.template_id) if fabric else None
            estimate = self.calculator.calculate(
                item.width_mm, item.drop_mm, quantity=quantity,
                fabric=fabric, template=template,
                options=resolve_option_prices(self.db, self.account_id, item.options),
                business=item_business,
            )

            item_total = self.calculator.to_decimal(estimate.subtotal)
            unit_price = self.calculator.round_money(item_total / quantity)
            quote_subtotal += item_total

            treatment = models.Treatment(
                room_id=room.id,
                user_id=self.account_id,
                type="curtains",
                name=estimate.fabric_name or f"Treatment {index}",
                measurements={"width": item.width_mm, "height": item.drop_mm, "unit": "mm"},
                fabric_details=(
                    {"fabric_id": item.fabric_id, "fabric_name": estimate.fabric_name}
                    if item.fabric_id else None
                ),
                options=item.options or None,
                quantity=quantity,
                unit_price=float(unit_price),
                total=float(item_total),
                notes=item.notes or None,
            )
            self.db.add(treatment)
            self.db.flush()

            treatments.append(TreatmentSummary(
                id=treatment.id,
                room_name=room_name,
                fabric_name=estimate.fabric_name,
                unit_price=float(unit_price),
                total_price=float(item_total),
            ))

        tax_rate = self.calculator.to_decimal(self.business.tax_rate_percent)
        tax_amount = self.calculator.round_money(quote_subtotal * tax_rate / 100)
        quote_total = self.calculator.round_money(quote_subtotal + tax_amount)

        quote.subtotal = float(quote_subtotal)
        quote.tax_amount = float(tax_amount)
        quote.total_amount = float(quote_total)

        currency = self.business.currency
        item_count = len(request.items)
        self.db.add(models.ClientActivity(
            client_id=client.id,
            user_id=self.account_id,
            activity_type="note",
            title="Online Quote Request",
            description=(
                f"Quote created via {request.source} with {item_count} item(s). "
                f"Total: {currency} {quote_total:.2f}"
            ),
            metadata_json={
                "source": request.source,
                "project_id": project.id,
                "quote_id": quote.id,
                "items_count": item_count,
                "total": float(quote_total),
            },
        ))
        self.db.add(models.UserNotification(
            user_id=self.account_id,
            title=f"New Online Quote: {request.customer.name}",
            message=f"{item_count} item(s) - {currency} {quote_total:.2f}",
            type="project",
            priority="high",
            metadata_json={
                "project_id": project.id,
                "quote_id": quote.id,
                "client_id": client.id,
                "source": request.source,
            },
        ))
        self.db.commit()
        logger.info("Project completed: %s, quote total: %s %s", project.id, quote_total, currency)

        return ProjectResponse(
            project=ProjectSummary(id=project.id, title=project.name, quote_number=quote.quote_number),
            quote=QuoteSummary(
                id=quote.id,
                subtotal=float(quote_subtotal),
                tax_rate=self.business.tax_rate_percent,
                tax_amount=float(tax_amount),
                total=float(quote_total),
                currency=currency,
            ),
            treatments=treatments,
            client_id=client.id,
            is_new_client=is_new_client,
        )
