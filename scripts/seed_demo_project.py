"""
Seed the database with a demo helicopter operation.

Usage:
    python scripts/seed_demo_project.py [--reset]
"""
import argparse
import sys
import os
from datetime import date
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.calculations.monthly import generate_monthly_report
from app.api.projects import project_to_domain
from app.db.database import SessionLocal, drop_db, init_db
from app.db.models import (
    CostAllocationMethod,
    Equipment,
    MemberStatus,
    OperatingParameters,
    Project,
    ProjectMember,
)

DEMO_NAME = "Coastal Air Charter"


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--reset", action="store_true", help="drop all tables first")
    args = parser.parse_args()

    if args.reset:
        drop_db()
    init_db()

    db = SessionLocal()

    try:
        existing = db.query(Project).filter(Project.name == DEMO_NAME).first()
        if existing:
            print(f"Project '{DEMO_NAME}' already exists (ID: {existing.id})")
            return

        project = Project(
            name=DEMO_NAME,
            description="Shared helicopter and ground support fleet",
            currency="USD",
            cost_allocation_method=CostAllocationMethod.by_hours,
        )
        db.add(project)
        db.flush()
        print(f"Created project: {project.name} (ID: {project.id})")

        db.add_all([
            Equipment(
                project_id=project.id,
                position=0,
                name="Bell 407GXi",
                category="Helicopter",
                purchase_price=Decimal("10000000"),
                acquisition_date=date(2024, 1, 1),
                service_life_years=10,
                salvage_value=Decimal("1000000"),  # 75,000 per month
                depreciation_method="straight_line",
            ),
            Equipment(
                project_id=project.id,
                position=1,
                name="Fuel truck",
                category="Vehicle",
                purchase_price=Decimal("180000"),
                acquisition_date=date(2024, 6, 1),
                service_life_years=8,
                depreciation_method="units_of_production",
                expected_usage_hours=Decimal("9600"),
            ),
        ])

        db.add_all([
            ProjectMember(
                project_id=project.id,
                position=0,
                name="Northshore Medical",
                email="ops@northshore.example",
                role="owner",
                ownership_share=Decimal("50"),
                operating_hours_per_month=Decimal("40"),
                status=MemberStatus.active,
            ),
            ProjectMember(
                project_id=project.id,
                position=1,
                name="Harbor Survey Co",
                email="fleet@harborsurvey.example",
                ownership_share=Decimal("30"),
                operating_hours_per_month=Decimal("25"),
                status=MemberStatus.active,
            ),
            ProjectMember(
                project_id=project.id,
                position=2,
                name="Island Tours",
                email="charter@islandtours.example",
                ownership_share=Decimal("20"),
                operating_hours_per_month=Decimal("15"),
                status=MemberStatus.active,
            ),
        ])

        db.add_all([
            OperatingParameters(
                project_id=project.id,
                position=0,
                month=None,
                operating_hours_per_month=Decimal("80"),
                fuel_cost_per_hour=Decimal("450"),
                maintenance_cost_per_hour=Decimal("600"),
                insurance_monthly=Decimal("18000"),
                staff_salaries_monthly=Decimal("42000"),
                facility_rent_monthly=Decimal("9500"),
                other_expenses=[
                    {"description": "Navigation data subscription", "amount": "1200"},
                    {"description": "Training", "amount": "3500"},
                ],
            ),
            # Peak season: more flying, same fixed costs
            OperatingParameters(
                project_id=project.id,
                position=1,
                month=date(2025, 7, 1),
                operating_hours_per_month=Decimal("120"),
                fuel_cost_per_hour=Decimal("470"),
                maintenance_cost_per_hour=Decimal("600"),
                insurance_monthly=Decimal("18000"),
                staff_salaries_monthly=Decimal("42000"),
                facility_rent_monthly=Decimal("9500"),
                other_expenses=[],
            ),
        ])

        db.commit()
        db.refresh(project)

        report = generate_monthly_report(project_to_domain(project), date.today())
        print(f"\nDemo project created successfully!")
        print(f"  {report.year}-{report.month:02d} total cost: {report.total_cost}")
        print(f"  Cost per hour: {report.cost_per_hour}")
        for allocation in report.member_allocations:
            print(f"  {allocation.member_name}: {allocation.allocated_cost}")
        print(f"\nReports: /api/projects/{project.id}/reports/monthly")

    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
