from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum
import uuid


def _uuid() -> str:
    return str(uuid.uuid4())


class QuoteStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class ProjectStatus(str, enum.Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# --- Reference data (owned by the workroom, read by the storefront) ---

class AccountSettings(Base):
    """Per-account storefront credentials and currency."""
    __tablename__ = "account_settings"

    id = Column(Integer, primary_key=True, index=True)
    account_owner_id = Column(String, unique=True, nullable=False, index=True)
    storefront_api_key = Column(String, nullable=True)
    currency = Column(String, nullable=True)  # NULL → settings.DEFAULT_CURRENCY
    created_at = Column(DateTime, default=datetime.utcnow)


class BusinessSettings(Base):
    __tablename__ = "business_settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, unique=True, nullable=False, index=True)
    company_name = Column(String, nullable=True)
    tax_rate = Column(Float, nullable=True)  # percent
    default_profit_margin_percentage = Column(Float, nullable=True)


class InventoryItem(Base):
    """Fabrics and priced accessories. Widths in cm, prices per metre."""
    __tablename__ = "enhanced_inventory_items"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    category = Column(String, default="fabric")
    selling_price = Column(Float, nullable=True)
    width = Column(Float, nullable=True)
    fabric_width = Column(Float, nullable=True)
    pattern_repeat_vertical = Column(Float, nullable=True)


class CurtainTemplate(Base):
    __tablename__ = "curtain_templates"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=True, index=True)
    name = Column(String, nullable=False)
    fullness_ratio = Column(Float, nullable=True)


class OptionValue(Base):
    """Flat price modifiers for treatment options (lining, track, etc.)."""
    __tablename__ = "option_values"

    id = Column(Integer, primary_key=True, index=True)
    option_key = Column(String, nullable=True)
    value_key = Column(String, nullable=False, index=True)
    label = Column(String, nullable=True)
    price_modifier = Column(Float, nullable=True)


# --- Records written by project intake ---

class Client(Base):
    __tablename__ = "clients"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    lead_source = Column(String, nullable=True)
    funnel_stage = Column(String, default="lead")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    projects = relationship("Project", back_populates="client")


class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    client_id = Column(String, ForeignKey("clients.id"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    source = Column(String, nullable=True)
    status = Column(String, default=ProjectStatus.PLANNING.value)
    created_at = Column(DateTime, default=datetime.utcnow)

    client = relationship("Client", back_populates="projects")
    quotes = relationship("Quote", back_populates="project")
    rooms = relationship("Room", back_populates="project")


class Quote(Base):
    __tablename__ = "quotes"
    __table_args__ = (UniqueConstraint("user_id", "quote_number", name="uq_quotes_account_number"),)

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    client_id = Column(String, ForeignKey("clients.id"), nullable=False)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False)
    quote_number = Column(String, nullable=False)
    status = Column(String, default=QuoteStatus.DRAFT.value)
    subtotal = Column(Float, default=0.0)
    tax_amount = Column(Float, default=0.0)
    total_amount = Column(Float, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)

    project = relationship("Project", back_populates="quotes")


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False)
    quote_id = Column(String, ForeignKey("quotes.id"), nullable=True)
    name = Column(String, nullable=False)

    project = relationship("Project", back_populates="rooms")
    treatments = relationship("Treatment", back_populates="room", cascade="all, delete-orphan")


class Treatment(Base):
    __tablename__ = "treatments"

    id = Column(String, primary_key=True, default=_uuid)
    room_id = Column(String, ForeignKey("rooms.id"), nullable=False)
    user_id = Column(String, nullable=False)
    type = Column(String, default="curtains")
    name = Column(String, nullable=False)
    measurements = Column(JSON, nullable=True)    # {"width": mm, "height": mm, "unit": "mm"}
    fabric_details = Column(JSON, nullable=True)
    options = Column(JSON, nullable=True)
    quantity = Column(Integer, default=1)
    unit_price = Column(Float, default=0.0)
    total = Column(Float, default=0.0)
    notes = Column(Text, nullable=True)

    room = relationship("Room", back_populates="treatments")


class ClientActivity(Base):
    __tablename__ = "client_activity_log"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(String, ForeignKey("clients.id"), nullable=False)
    user_id = Column(String, nullable=False)
    activity_type = Column(String, default="note")
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class UserNotification(Base):
    __tablename__ = "user_notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    type = Column(String, default="project")
    priority = Column(String, default="normal")
    metadata_json = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
