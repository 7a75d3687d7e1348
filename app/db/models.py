"""
SQLAlchemy ORM models for the fleet cost model.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Numeric,
    Integer,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    JSON,
    Text,
    Enum as SQLEnum,
)
from sqlalchemy.orm import declarative_base, relationship
import uuid
import enum


class CostAllocationMethod(str, enum.Enum):
    """How a project's monthly cost is split across members."""
    by_hours = "by_hours"
    equal = "equal"
    percentage = "percentage"


class MemberStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"


Base = declarative_base()

# Money columns: 18 digits, 2 decimal places, always read back as Decimal
Money = Numeric(18, 2, asdecimal=True)
Hours = Numeric(12, 2, asdecimal=True)


def generate_uuid():
    return str(uuid.uuid4())


class AuditMixin:
    """Mixin for audit fields on all models."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
    created_by = Column(String(255), nullable=True)
    updated_by = Column(String(255), nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)


class Project(AuditMixin, Base):
    """A fleet or equipment pool whose costs are tracked and shared."""

    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    owner_id = Column(String(255), nullable=True, index=True)
    organization_id = Column(String(255), nullable=True)

    currency = Column(String(3), default="USD", nullable=False)
    cost_allocation_method = Column(
        SQLEnum(CostAllocationMethod),
        default=CostAllocationMethod.by_hours,
        nullable=False,
    )
    hourly_rate = Column(Money, nullable=True)  # Nominal billing rate per hour

    # Relationships
    equipment = relationship(
        "Equipment",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Equipment.position",
    )
    members = relationship(
        "ProjectMember",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectMember.position",
    )
    operating_parameters = relationship(
        "OperatingParameters",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="OperatingParameters.position",
    )


class Equipment(AuditMixin, Base):
    """A depreciable asset belonging to a project."""

    __tablename__ = "equipment"

    id = Column(String, primary_key=True, default=generate_uuid)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    position = Column(Integer, default=0, nullable=False)  # Stable ordering within project

    name = Column(String(255), nullable=False)
    category = Column(String(50), default="Other")
    serial_number = Column(String(100))
    registration_number = Column(String(100))
    notes = Column(Text)

    # Valuation
    purchase_price = Column(Money, nullable=False)
    acquisition_date = Column(Date, nullable=False)
    service_life_years = Column(Integer, nullable=False)
    salvage_value = Column(Money, nullable=True)  # Null = 10% of purchase price
    depreciation_method = Column(String(30), default="straight_line", nullable=False)
    expected_usage_hours = Column(Hours, nullable=True)  # units_of_production only

    archived = Column(Boolean, default=False, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="equipment")


class OperatingParameters(AuditMixin, Base):
    """Monthly operating assumptions; ``month`` is null for the project default."""

    __tablename__ = "operating_parameters"

    id = Column(String, primary_key=True, default=generate_uuid)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    position = Column(Integer, default=0, nullable=False)  # Stable ordering within project
    month = Column(Date, nullable=True)  # First day of the month it overrides

    operating_hours_per_month = Column(Hours, default=0, nullable=False)
    fuel_cost_per_hour = Column(Money, default=0, nullable=False)
    maintenance_cost_per_hour = Column(Money, default=0, nullable=False)
    insurance_monthly = Column(Money, default=0, nullable=False)
    staff_salaries_monthly = Column(Money, default=0, nullable=False)
    facility_rent_monthly = Column(Money, default=0, nullable=False)

    # Ordered list of {"description": str, "amount": str}
    other_expenses = Column(JSON, default=list)

    # Relationships
    project = relationship("Project", back_populates="operating_parameters")


class ProjectMember(AuditMixin, Base):
    """A participant sharing a project's costs."""

    __tablename__ = "project_members"

    id = Column(String, primary_key=True, default=generate_uuid)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    position = Column(Integer, default=0, nullable=False)  # Stable ordering within project
    user_id = Column(String(255), nullable=True)

    name = Column(String(255))
    email = Column(String(255))
    role = Column(String(20), default="member", nullable=False)
    ownership_share = Column(Numeric(5, 2, asdecimal=True), default=0, nullable=False)
    operating_hours_per_month = Column(Hours, default=0, nullable=False)
    status = Column(SQLEnum(MemberStatus), default=MemberStatus.active, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="members")
