"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os
from datetime import date
from decimal import Decimal

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.database import get_db
# Import all models to ensure all tables are created
from app.db.models import Base, Project, Equipment, OperatingParameters, ProjectMember
from app.calculations.models import (
    DEFAULT_SCOPE,
    Equipment as EquipmentRecord,
    OperatingParameters as ParametersRecord,
    Project as ProjectRecord,
    ProjectMember as MemberRecord,
)
from app.services.cache import InMemoryReportCache
from app.services.reports import ReportService, get_report_service


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture(scope="session")
def anyio_backend():
    """Backend for async tests."""
    return "asyncio"


# Create a shared test database engine
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency globally for all tests
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and drop after."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(autouse=True)
def report_service():
    """Fresh report cache per test so cached reports never leak between tests."""
    service = ReportService(InMemoryReportCache())
    app.dependency_overrides[get_report_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_report_service, None)


@pytest.fixture
def db_session():
    """Create database session for test setup."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# ============================================================================
# DOMAIN FIXTURES
# ============================================================================


@pytest.fixture
def helicopter():
    """10M helicopter, 1M salvage, 10 years: 75,000.00 per month."""
    return EquipmentRecord(
        id="heli-1",
        name="Bell 407",
        category="Helicopter",
        purchase_price=Decimal("10000000"),
        acquisition_date=date(2024, 1, 1),
        service_life_years=10,
        salvage_value=Decimal("1000000"),
    )


@pytest.fixture
def default_parameters():
    """80 hours at 1,050/hour variable cost, 69,500 fixed."""
    return ParametersRecord(
        scope=DEFAULT_SCOPE,
        operating_hours_per_month=Decimal("80"),
        fuel_cost_per_hour=Decimal("450"),
        maintenance_cost_per_hour=Decimal("600"),
        insurance_monthly=Decimal("18000"),
        staff_salaries_monthly=Decimal("42000"),
        facility_rent_monthly=Decimal("9500"),
    )


@pytest.fixture
def members():
    return (
        MemberRecord(id="m1", name="Northshore", operating_hours_per_month=Decimal("40")),
        MemberRecord(id="m2", name="Harbor", operating_hours_per_month=Decimal("25")),
        MemberRecord(id="m3", name="Island", operating_hours_per_month=Decimal("15")),
    )


@pytest.fixture
def project(helicopter, default_parameters, members):
    """Helicopter project whose monthly total is 228,500.00."""
    return ProjectRecord(
        id="proj-1",
        name="Coastal Air",
        equipment=(helicopter,),
        members=members,
        operating_parameters=(default_parameters,),
    )


@pytest.fixture
def project_payload():
    """JSON body equivalent of the ``project`` fixture."""
    return {
        "id": "proj-1",
        "name": "Coastal Air",
        "cost_allocation_method": "by_hours",
        "equipment": [
            {
                "id": "heli-1",
                "name": "Bell 407",
                "category": "Helicopter",
                "purchase_price": "10000000",
                "acquisition_date": "2024-01-01",
                "service_life_years": 10,
                "salvage_value": "1000000",
            }
        ],
        "members": [
            {"id": "m1", "name": "Northshore", "operating_hours_per_month": "40"},
            {"id": "m2", "name": "Harbor", "operating_hours_per_month": "25"},
            {"id": "m3", "name": "Island", "operating_hours_per_month": "15"},
        ],
        "operating_parameters": [
            {
                "operating_hours_per_month": "80",
                "fuel_cost_per_hour": "450",
                "maintenance_cost_per_hour": "600",
                "insurance_monthly": "18000",
                "staff_salaries_monthly": "42000",
                "facility_rent_monthly": "9500",
            }
        ],
    }
