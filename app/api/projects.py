"""
Project management and report API endpoints.

Projects are stored with their equipment, members and operating parameters.
Reports are computed from the stored records through the report service, so
repeated requests for the same project and period are served from the cache
until the project changes.
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date
from decimal import Decimal
from sqlalchemy.orm import Session

from app.api.calculations import (
    EquipmentInput,
    MemberInput,
    OperatingParametersInput,
    ScenarioInput,
    decimal_to_str,
    forecast_summary_to_dict,
    health_to_dict,
    monthly_response,
    report_to_dict,
    resolve_target_date,
    scenario_definitions,
    scenario_to_dict,
    summary_to_dict,
)
from app.calculations import forecast
from app.calculations import models as domain
from app.calculations.periods import month_start
from app.config import get_settings
from app.db.database import get_db
from app.db.models import (
    CostAllocationMethod,
    Equipment,
    MemberStatus,
    OperatingParameters,
    Project,
    ProjectMember,
)
from app.services.reports import ReportService, get_report_service

logger = logging.getLogger(__name__)

router = APIRouter()


class ProjectCreate(BaseModel):
    """Schema for creating a project with its initial records."""

    name: str
    description: Optional[str] = None
    owner_id: Optional[str] = None
    currency: Optional[str] = None
    cost_allocation_method: CostAllocationMethod = CostAllocationMethod.by_hours
    hourly_rate: Optional[Decimal] = None
    equipment: List[EquipmentInput] = []
    members: List[MemberInput] = []
    operating_parameters: List[OperatingParametersInput] = []


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    currency: Optional[str] = None
    cost_allocation_method: Optional[CostAllocationMethod] = None
    hourly_rate: Optional[Decimal] = None


class ScenarioReportRequest(BaseModel):
    scenarios: Optional[List[ScenarioInput]] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=1, le=9999)


# ============================================================================
# CONVERSION
# ============================================================================


def project_to_domain(project: Project) -> domain.Project:
    """Hydrate a stored project into the calculation engine's records."""
    return domain.Project(
        id=project.id,
        name=project.name,
        currency=project.currency,
        cost_allocation_method=CostAllocationMethod(project.cost_allocation_method).value,
        hourly_rate=project.hourly_rate,
        equipment=tuple(
            domain.Equipment(
                id=eq.id,
                project_id=project.id,
                name=eq.name,
                category=eq.category or "Other",
                purchase_price=eq.purchase_price,
                acquisition_date=eq.acquisition_date,
                service_life_years=eq.service_life_years,
                salvage_value=eq.salvage_value,
                depreciation_method=eq.depreciation_method,
                expected_usage_hours=eq.expected_usage_hours,
                archived=eq.archived,
            )
            for eq in project.equipment
            if not eq.is_deleted
        ),
        members=tuple(
            domain.ProjectMember(
                id=m.id,
                name=m.name,
                email=m.email,
                role=m.role,
                ownership_share=m.ownership_share,
                operating_hours_per_month=m.operating_hours_per_month,
                status=MemberStatus(m.status).value,
            )
            for m in project.members
            if not m.is_deleted
        ),
        operating_parameters=tuple(
            domain.OperatingParameters(
                scope=domain.ForMonth.of(p.month) if p.month else domain.DEFAULT_SCOPE,
                operating_hours_per_month=p.operating_hours_per_month,
                fuel_cost_per_hour=p.fuel_cost_per_hour,
                maintenance_cost_per_hour=p.maintenance_cost_per_hour,
                insurance_monthly=p.insurance_monthly,
                staff_salaries_monthly=p.staff_salaries_monthly,
                facility_rent_monthly=p.facility_rent_monthly,
                other_expenses=tuple(
                    domain.OtherExpense(
                        description=e.get("description", ""),
                        amount=Decimal(str(e.get("amount", "0"))),
                    )
                    for e in (p.other_expenses or [])
                ),
            )
            for p in project.operating_parameters
            if not p.is_deleted
        ),
    )


def project_to_response(project: Project) -> dict:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "owner_id": project.owner_id,
        "currency": project.currency,
        "cost_allocation_method": CostAllocationMethod(project.cost_allocation_method).value,
        "hourly_rate": decimal_to_str(project.hourly_rate),
        "equipment_count": sum(1 for eq in project.equipment if not eq.is_deleted),
        "member_count": sum(1 for m in project.members if not m.is_deleted),
        "created_at": project.created_at.isoformat() if project.created_at else None,
        "updated_at": project.updated_at.isoformat() if project.updated_at else None,
    }


def equipment_row(project_id: str, position: int, data: EquipmentInput) -> Equipment:
    return Equipment(
        project_id=project_id,
        position=position,
        name=data.name or "Equipment",
        category=data.category,
        purchase_price=data.purchase_price,
        acquisition_date=data.acquisition_date,
        service_life_years=data.service_life_years,
        salvage_value=data.salvage_value,
        depreciation_method=data.depreciation_method,
        expected_usage_hours=data.expected_usage_hours,
        archived=data.archived,
    )


def member_row(project_id: str, position: int, data: MemberInput) -> ProjectMember:
    return ProjectMember(
        project_id=project_id,
        position=position,
        name=data.name,
        email=data.email,
        role=data.role,
        ownership_share=data.ownership_share,
        operating_hours_per_month=data.operating_hours_per_month,
        status=MemberStatus(data.status),
    )


def parameters_row(
    project_id: str, position: int, data: OperatingParametersInput
) -> OperatingParameters:
    return OperatingParameters(
        project_id=project_id,
        position=position,
        month=month_start(data.month) if data.month else None,
        operating_hours_per_month=data.operating_hours_per_month,
        fuel_cost_per_hour=data.fuel_cost_per_hour,
        maintenance_cost_per_hour=data.maintenance_cost_per_hour,
        insurance_monthly=data.insurance_monthly,
        staff_salaries_monthly=data.staff_salaries_monthly,
        facility_rent_monthly=data.facility_rent_monthly,
        other_expenses=[
            {"description": e.description, "amount": str(e.amount)}
            for e in data.other_expenses
        ],
    )


def get_project_or_404(project_id: str, db: Session) -> Project:
    project = (
        db.query(Project)
        .filter(Project.id == project_id, Project.is_deleted == False)
        .first()
    )
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


# ============================================================================
# PROJECT CRUD
# ============================================================================


@router.get("/")
async def list_projects(
    skip: int = 0,
    limit: int = 100,
    owner_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List projects with optional owner filter."""
    query = db.query(Project).filter(Project.is_deleted == False)

    if owner_id:
        query = query.filter(Project.owner_id == owner_id)

    total = query.count()
    projects = query.offset(skip).limit(limit).all()

    return {"projects": [project_to_response(p) for p in projects], "total": total}


@router.post("/", status_code=201)
async def create_project(project_data: ProjectCreate, db: Session = Depends(get_db)):
    """Create a project together with its equipment, members and parameters."""
    project = Project(
        name=project_data.name,
        description=project_data.description,
        owner_id=project_data.owner_id,
        currency=project_data.currency or get_settings().default_currency,
        cost_allocation_method=project_data.cost_allocation_method,
        hourly_rate=project_data.hourly_rate,
    )
    db.add(project)
    db.flush()

    for i, eq in enumerate(project_data.equipment):
        db.add(equipment_row(project.id, i, eq))
    for i, member in enumerate(project_data.members):
        db.add(member_row(project.id, i, member))
    for i, params in enumerate(project_data.operating_parameters):
        db.add(parameters_row(project.id, i, params))

    db.commit()
    db.refresh(project)
    logger.info(f"Created project {project.id} ({project.name})")

    return project_to_response(project)


@router.get("/{project_id}")
async def get_project(project_id: str, db: Session = Depends(get_db)):
    """Get a project by ID."""
    return project_to_response(get_project_or_404(project_id, db))


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    db: Session = Depends(get_db),
    reports: ReportService = Depends(get_report_service),
):
    """Update project settings."""
    project = get_project_or_404(project_id, db)

    for field, value in project_data.model_dump(exclude_unset=True).items():
        setattr(project, field, value)

    db.commit()
    db.refresh(project)
    reports.invalidate(project_id)

    return project_to_response(project)


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    db: Session = Depends(get_db),
    reports: ReportService = Depends(get_report_service),
):
    """Soft delete a project."""
    project = get_project_or_404(project_id, db)
    project.is_deleted = True
    db.commit()
    reports.invalidate(project_id)

    return {"deleted": True}


@router.post("/{project_id}/equipment", status_code=201)
async def add_equipment(
    project_id: str,
    equipment_data: EquipmentInput,
    db: Session = Depends(get_db),
    reports: ReportService = Depends(get_report_service),
):
    """Add a piece of equipment to a project."""
    project = get_project_or_404(project_id, db)
    row = equipment_row(project.id, len(project.equipment), equipment_data)
    db.add(row)
    db.commit()
    db.refresh(row)
    reports.invalidate(project_id)

    return {"id": row.id, "name": row.name}


@router.delete("/{project_id}/equipment/{equipment_id}")
async def archive_equipment(
    project_id: str,
    equipment_id: str,
    db: Session = Depends(get_db),
    reports: ReportService = Depends(get_report_service),
):
    """Archive equipment; archived equipment is excluded from all reports."""
    project = get_project_or_404(project_id, db)
    row = next((eq for eq in project.equipment if eq.id == equipment_id), None)
    if row is None:
        raise HTTPException(status_code=404, detail="Equipment not found")

    row.archived = True
    db.commit()
    reports.invalidate(project_id)

    return {"archived": True}


@router.post("/{project_id}/members", status_code=201)
async def add_member(
    project_id: str,
    member_data: MemberInput,
    db: Session = Depends(get_db),
    reports: ReportService = Depends(get_report_service),
):
    """Add a member to a project."""
    project = get_project_or_404(project_id, db)
    row = member_row(project.id, len(project.members), member_data)
    db.add(row)
    db.commit()
    db.refresh(row)
    reports.invalidate(project_id)

    return {"id": row.id, "name": row.name}


@router.put("/{project_id}/operating-parameters")
async def upsert_operating_parameters(
    project_id: str,
    params_data: OperatingParametersInput,
    db: Session = Depends(get_db),
    reports: ReportService = Depends(get_report_service),
):
    """Create or replace the default (no month) or a month's parameters."""
    project = get_project_or_404(project_id, db)
    month = month_start(params_data.month) if params_data.month else None

    existing = next(
        (p for p in project.operating_parameters if p.month == month and not p.is_deleted),
        None,
    )
    if existing is not None:
        position = existing.position
        db.delete(existing)
        db.flush()
    else:
        position = len(project.operating_parameters)

    db.add(parameters_row(project.id, position, params_data))
    db.commit()
    reports.invalidate(project_id)

    return {"month": month.isoformat() if month else None, "updated": existing is not None}


# ============================================================================
# REPORTS
# ============================================================================


@router.get("/{project_id}/reports/monthly")
async def monthly_report(
    project_id: str,
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1, le=9999),
    db: Session = Depends(get_db),
    reports: ReportService = Depends(get_report_service),
):
    """Monthly report with its trailing trend and health score."""
    project = project_to_domain(get_project_or_404(project_id, db))
    target = resolve_target_date(month, year)

    report = reports.monthly_report(project, target)
    trend = reports.trend(project, get_settings().trend_default_months, target)
    score = reports.health_score(project, target)

    return {
        "report": monthly_response(report),
        "trend": [report_to_dict(r) for r in trend],
        "health": health_to_dict(score),
    }


@router.get("/{project_id}/reports/annual")
async def annual_report(
    project_id: str,
    start_month: Optional[int] = None,
    start_year: Optional[int] = Query(None, ge=1, le=9999),
    db: Session = Depends(get_db),
    reports: ReportService = Depends(get_report_service),
):
    """Twelve-month forecast from the start month (default: this month)."""
    project = project_to_domain(get_project_or_404(project_id, db))
    today = date.today()
    if start_month is not None and not 1 <= start_month <= 12:
        raise HTTPException(status_code=400, detail="start_month must be between 1 and 12")

    reports_list = reports.annual_forecast(
        project, start_month or today.month, start_year or today.year
    )
    return {
        "months": [report_to_dict(r) for r in reports_list],
        "summary": forecast_summary_to_dict(forecast.summarize_forecast(reports_list)),
    }


@router.get("/{project_id}/reports/depreciation")
async def depreciation_report(
    project_id: str,
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
    reports: ReportService = Depends(get_report_service),
):
    """Depreciation position of every active piece of equipment."""
    project = project_to_domain(get_project_or_404(project_id, db))
    as_of = as_of or date.today()
    summaries = reports.depreciation_schedule(project, as_of)
    return {"as_of": as_of.isoformat(), "equipment": [summary_to_dict(s) for s in summaries]}


@router.get("/{project_id}/reports/trend")
async def trend_report(
    project_id: str,
    months: Optional[int] = Query(None, ge=1, le=60),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1, le=9999),
    db: Session = Depends(get_db),
    reports: ReportService = Depends(get_report_service),
):
    """Trailing monthly reports ending at the given month."""
    project = project_to_domain(get_project_or_404(project_id, db))
    count = months or get_settings().trend_default_months
    series = reports.trend(project, count, resolve_target_date(month, year))
    return {"months": [report_to_dict(r) for r in series]}


@router.get("/{project_id}/reports/health")
async def health_report(
    project_id: str,
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1, le=9999),
    db: Session = Depends(get_db),
    reports: ReportService = Depends(get_report_service),
):
    """Financial health score for a month."""
    project = project_to_domain(get_project_or_404(project_id, db))
    score = reports.health_score(project, resolve_target_date(month, year))
    return health_to_dict(score)


@router.post("/{project_id}/reports/scenarios")
async def scenario_report(
    project_id: str,
    request: ScenarioReportRequest,
    db: Session = Depends(get_db),
    reports: ReportService = Depends(get_report_service),
):
    """Compare what-if scenarios with the month's baseline."""
    project = project_to_domain(get_project_or_404(project_id, db))
    target = resolve_target_date(request.month, request.year)

    results = reports.scenario_analysis(project, scenario_definitions(request.scenarios), target)
    baseline = reports.monthly_report(project, target)
    return {
        "baseline": report_to_dict(baseline),
        "scenarios": [scenario_to_dict(r) for r in results],
    }
