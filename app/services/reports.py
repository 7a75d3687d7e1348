"""
Report service.

Runs calculation engine operations for a hydrated project through the report
cache. Cache hits skip the engine entirely; engine errors are logged and
re-raised for the API layer to map onto HTTP responses.
"""

import logging
from datetime import date
from typing import Any, Callable, Optional, Sequence, Tuple

from app.calculations.depreciation import depreciation_schedule_report
from app.calculations.errors import CalculationError
from app.calculations.forecast import AnnualForecastEngine
from app.calculations.health import FinancialHealthScorer
from app.calculations.models import (
    DepreciationSummary,
    HealthScore,
    MonthlyReport,
    Project,
    ScenarioDefinition,
    ScenarioResult,
)
from app.calculations.monthly import MonthlyReportGenerator, usage_from_parameters
from app.calculations.periods import period_label
from app.calculations.scenarios import ScenarioAnalysisEngine
from app.calculations.trend import TrendDataGenerator
from app.services.cache import ReportCache, cache_key, get_report_cache

logger = logging.getLogger(__name__)


def _scenario_signature(scenarios: Sequence[ScenarioDefinition]) -> str:
    return ";".join(
        f"{s.name}|{s.operating_hours_multiplier}|{s.cost_multiplier}" for s in scenarios
    )


class ReportService:
    """Cached access to the calculation engine for one cache backend."""

    def __init__(self, cache: ReportCache):
        self.cache = cache
        self.generator = MonthlyReportGenerator()
        self.forecast_engine = AnnualForecastEngine(self.generator)
        self.scenario_engine = ScenarioAnalysisEngine(self.generator)
        self.trend_generator = TrendDataGenerator(self.generator)
        self.health_scorer = FinancialHealthScorer()

    def _cached(self, key: str, compute: Callable[[], Any]) -> Any:
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Report cache hit: {key}")
            return cached

        logger.debug(f"Report cache miss: {key}")
        try:
            result = compute()
        except CalculationError as e:
            logger.warning(f"Report calculation failed for {key}: {e}")
            raise
        self.cache.set(key, result)
        return result

    def monthly_report(self, project: Project, target: date) -> MonthlyReport:
        key = cache_key(project.id, "monthly", period_label(target))
        return self._cached(key, lambda: self.generator.generate(project, target))

    def annual_forecast(
        self, project: Project, start_month: int, start_year: int
    ) -> Tuple[MonthlyReport, ...]:
        key = cache_key(project.id, "annual", f"{start_year:04d}-{start_month:02d}")
        return self._cached(
            key, lambda: self.forecast_engine.forecast(project, start_month, start_year)
        )

    def depreciation_schedule(
        self, project: Project, as_of: date
    ) -> Tuple[DepreciationSummary, ...]:
        key = cache_key(project.id, "depreciation", period_label(as_of))
        return self._cached(
            key,
            lambda: tuple(
                depreciation_schedule_report(
                    project.equipment, as_of, usage_from_parameters(project)
                )
            ),
        )

    def scenario_analysis(
        self,
        project: Project,
        scenarios: Sequence[ScenarioDefinition],
        target: date,
    ) -> Tuple[ScenarioResult, ...]:
        period = f"{period_label(target)}:{_scenario_signature(scenarios)}"
        key = cache_key(project.id, "scenarios", period)
        return self._cached(
            key, lambda: tuple(self.scenario_engine.analyze(project, scenarios, target))
        )

    def trend(self, project: Project, month_count: int, as_of: date) -> Tuple[MonthlyReport, ...]:
        key = cache_key(project.id, f"trend{month_count}", period_label(as_of))
        return self._cached(
            key, lambda: self.trend_generator.trend(project, month_count, as_of)
        )

    def health_score(self, project: Project, target: date) -> HealthScore:
        key = cache_key(project.id, "health", period_label(target))
        return self._cached(
            key,
            lambda: self.health_scorer.score(project, self.monthly_report(project, target)),
        )

    def invalidate(self, project_id: str) -> None:
        removed = self.cache.invalidate_project(project_id)
        logger.info(f"Project {project_id} changed; dropped {removed} cached reports")


# Singleton instance
_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    """Get the report service singleton."""
    global _report_service
    if _report_service is None:
        _report_service = ReportService(get_report_cache())
    return _report_service
