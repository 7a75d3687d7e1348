"""
Financial Calculation Engine

Core calculation modules for equipment cost analysis: depreciation, cost
allocation, monthly reports, annual forecasts, scenarios, trends and health
scores. All calculations are pure functions of their inputs and use Decimal
arithmetic throughout.
"""

from app.calculations import (
    allocation,
    depreciation,
    forecast,
    health,
    monthly,
    scenarios,
    trend,
)
from app.calculations.allocation import allocate
from app.calculations.depreciation import DepreciationCalculator
from app.calculations.forecast import AnnualForecastEngine
from app.calculations.health import FinancialHealthScorer
from app.calculations.monthly import MonthlyReportGenerator
from app.calculations.scenarios import ScenarioAnalysisEngine
from app.calculations.trend import TrendDataGenerator

__all__ = [
    "allocation",
    "depreciation",
    "forecast",
    "health",
    "monthly",
    "scenarios",
    "trend",
    "allocate",
    "DepreciationCalculator",
    "AnnualForecastEngine",
    "FinancialHealthScorer",
    "MonthlyReportGenerator",
    "ScenarioAnalysisEngine",
    "TrendDataGenerator",
]
