"""
Tests for the cost calculation engine.
"""

import pytest
from dataclasses import replace
from datetime import date
from decimal import Decimal, ROUND_HALF_EVEN, ROUND_HALF_UP, localcontext

from app.calculations.allocation import allocate, distribute
from app.calculations.depreciation import (
    DepreciationCalculator,
    auto_salvage_value,
    full_schedule,
    monthly_depreciation,
    total_monthly_depreciation,
)
from app.calculations.errors import (
    AllocationError,
    InvalidAllocationMethod,
    InvalidEquipmentConfiguration,
    InvalidScenario,
    MissingConfigurationError,
    MissingOperatingParameters,
    NoActiveMembers,
)
from app.calculations.forecast import generate_annual_forecast, summarize_forecast
from app.calculations.health import (
    calculate_financial_health_score,
    depreciation_load_score,
    project_category,
)
from app.calculations.models import (
    Equipment,
    ForMonth,
    OtherExpense,
    Project,
    ProjectMember,
    ScenarioDefinition,
)
from app.calculations.money import MONEY_CONTEXT, UNDEFINED, in_money_context
from app.calculations.monthly import (
    MonthlyReportGenerator,
    calculate_break_even_hours,
    find_operating_parameters,
    generate_monthly_report,
    monthly_reserve,
)
from app.calculations.scenarios import analyze_scenarios, calculate_delta
from app.calculations.trend import generate_trend_data


def d(value) -> Decimal:
    return Decimal(str(value))


class TestMoneyContext:
    """Engine arithmetic ignores the caller's decimal context."""

    def test_context_settings(self):
        assert MONEY_CONTEXT.prec == 28
        assert MONEY_CONTEXT.rounding == ROUND_HALF_UP

    def test_rounds_half_up_under_caller_context(self):
        @in_money_context
        def scale(value):
            return value / 1

        with localcontext() as ctx:
            ctx.prec = 10
            ctx.rounding = ROUND_HALF_EVEN
            result = scale(Decimal("10000000000000000000000000025"))
        assert result == Decimal("1.000000000000000000000000003E+28")

    def test_report_unaffected_by_caller_precision(self, project):
        expected = generate_monthly_report(project, date(2025, 3, 1))
        with localcontext() as ctx:
            ctx.prec = 3
            assert generate_monthly_report(project, date(2025, 3, 1)) == expected


class TestStraightLineDepreciation:
    """Test straight-line depreciation."""

    def test_monthly_amount(self, helicopter):
        """(10M - 1M) / 120 months = 75,000.00 every month of the life."""
        assert monthly_depreciation(helicopter, date(2024, 1, 1)) == d("75000.00")
        assert monthly_depreciation(helicopter, date(2029, 6, 15)) == d("75000.00")
        assert monthly_depreciation(helicopter, date(2033, 12, 1)) == d("75000.00")

    def test_zero_outside_service_life(self, helicopter):
        assert monthly_depreciation(helicopter, date(2023, 12, 31)) == 0
        assert monthly_depreciation(helicopter, date(2034, 1, 1)) == 0

    def test_schedule_sums_to_depreciable_base(self, helicopter):
        schedule = full_schedule(helicopter)
        assert len(schedule) == 120
        assert sum(e.amount for e in schedule) == d("9000000")
        assert schedule[-1].book_value == d("1000000")
        assert schedule[-1].month == date(2033, 12, 1)

    def test_last_month_absorbs_rounding(self):
        """1000 / 12 = 83.33 a month; the last month takes the residue."""
        eq = Equipment(
            id="eq",
            purchase_price=d("1000"),
            salvage_value=d("0"),
            acquisition_date=date(2025, 1, 1),
            service_life_years=1,
        )
        schedule = full_schedule(eq)
        assert [e.amount for e in schedule[:11]] == [d("83.33")] * 11
        assert schedule[11].amount == d("83.37")
        assert sum(e.amount for e in schedule) == d("1000")

    def test_rounded_up_amounts_never_overshoot(self):
        """0.10 over 12 months rounds to 0.01; the base is used up after 10."""
        eq = Equipment(
            id="eq",
            purchase_price=d("0.10"),
            salvage_value=d("0"),
            acquisition_date=date(2025, 1, 1),
            service_life_years=1,
        )
        schedule = full_schedule(eq)
        assert len(schedule) == 10
        assert sum(e.amount for e in schedule) == d("0.10")
        assert monthly_depreciation(eq, date(2025, 12, 1)) == 0

    def test_auto_salvage_value(self):
        """Missing salvage value defaults to 10% of the purchase price."""
        eq = Equipment(
            id="eq",
            purchase_price=d("1000"),
            acquisition_date=date(2025, 1, 1),
            service_life_years=1,
        )
        assert auto_salvage_value(d("1000")) == d("100.00")
        assert monthly_depreciation(eq, date(2025, 3, 1)) == d("75.00")

    def test_fully_salvaged_equipment_has_empty_schedule(self):
        eq = Equipment(
            id="eq",
            purchase_price=d("500"),
            salvage_value=d("500"),
            acquisition_date=date(2025, 1, 1),
            service_life_years=3,
        )
        assert full_schedule(eq) == ()
        assert monthly_depreciation(eq, date(2025, 1, 1)) == 0

    def test_summary(self, helicopter):
        summary = DepreciationCalculator(helicopter).summary(date(2024, 12, 20))
        assert summary.months_elapsed == 12
        assert summary.months_remaining == 108
        assert summary.years_remaining == 9
        assert summary.accumulated_depreciation == d("900000")
        assert summary.current_book_value == d("9100000")
        assert summary.annual_depreciation == d("900000.00")
        assert summary.monthly_depreciation == d("75000.00")

    def test_archived_equipment_excluded_from_total(self, helicopter):
        archived = replace(helicopter, id="heli-2", archived=True)
        total = total_monthly_depreciation((helicopter, archived), date(2025, 1, 1))
        assert total == d("75000.00")


class TestUnitsOfProduction:
    """Test usage-based depreciation."""

    def equipment(self, **overrides):
        values = dict(
            id="truck",
            purchase_price=d("10000"),
            salvage_value=d("0"),
            acquisition_date=date(2025, 1, 1),
            service_life_years=1,
            depreciation_method="units_of_production",
            expected_usage_hours=d("1000"),
        )
        values.update(overrides)
        return Equipment(**values)

    def test_amount_follows_usage(self):
        """10 per hour at 50 hours a month, including the last month of the life."""
        eq = self.equipment()
        usage = lambda month: d("50")
        assert monthly_depreciation(eq, date(2025, 1, 1), usage) == d("500.00")
        assert monthly_depreciation(eq, date(2025, 12, 1), usage) == d("500.00")
        schedule = full_schedule(eq, usage)
        assert len(schedule) == 12
        assert sum(e.amount for e in schedule) == d("6000.00")
        assert schedule[-1].book_value == d("4000.00")

    def test_idle_equipment_accrues_nothing(self):
        eq = self.equipment()
        idle = lambda month: d("0")
        assert monthly_depreciation(eq, date(2025, 12, 1), idle) == 0
        assert sum(e.amount for e in full_schedule(eq, idle)) == 0

    def test_heavy_usage_stops_at_base(self):
        eq = self.equipment()
        usage = lambda month: d("200")
        schedule = full_schedule(eq, usage)
        assert len(schedule) == 5
        assert schedule[-1].accumulated_depreciation == d("10000")
        assert monthly_depreciation(eq, date(2025, 7, 1), usage) == 0

    def test_no_usage_means_no_depreciation(self):
        eq = self.equipment()
        assert monthly_depreciation(eq, date(2025, 1, 1)) == 0
        assert monthly_depreciation(eq, date(2025, 6, 1), lambda month: None) == 0

    def test_requires_expected_usage(self):
        eq = self.equipment(expected_usage_hours=None)
        with pytest.raises(InvalidEquipmentConfiguration):
            monthly_depreciation(eq, date(2025, 1, 1))


class TestInvalidEquipment:
    """Invalid configurations fail every call instead of producing numbers."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"salvage_value": d("20000")},
            {"service_life_years": 0},
            {"purchase_price": d("-1")},
            {"depreciation_method": "declining_balance"},
        ],
    )
    def test_invalid_configuration(self, overrides):
        values = dict(
            id="bad",
            purchase_price=d("10000"),
            salvage_value=d("1000"),
            acquisition_date=date(2025, 1, 1),
            service_life_years=5,
        )
        values.update(overrides)
        calculator = DepreciationCalculator(Equipment(**values))

        assert not calculator.is_valid
        for _ in range(2):
            with pytest.raises(InvalidEquipmentConfiguration) as exc_info:
                calculator.monthly_depreciation(date(2025, 6, 1))
            assert exc_info.value.equipment_id == "bad"
        with pytest.raises(InvalidEquipmentConfiguration):
            calculator.full_schedule()


class TestAllocation:
    """Test cost allocation across members."""

    def test_equal_split_distributes_leftover_cent(self):
        members = [ProjectMember(id=f"m{i}") for i in range(3)]
        shares = [a.allocated_cost for a in allocate(d("1000"), members, "equal")]
        assert shares == [d("333.34"), d("333.33"), d("333.33")]

    def test_by_hours(self, members):
        shares = [a.allocated_cost for a in allocate(d("228500"), members, "by_hours")]
        assert shares == [d("114250.00"), d("71406.25"), d("42843.75")]

    def test_by_hours_without_hours_falls_back_to_equal(self):
        members = [ProjectMember(id="a"), ProjectMember(id="b")]
        shares = [a.allocated_cost for a in allocate(d("100"), members, "by_hours")]
        assert shares == [d("50.00"), d("50.00")]

    def test_percentage_normalized_to_share_sum(self):
        members = [
            ProjectMember(id="a", ownership_share=d("50")),
            ProjectMember(id="b", ownership_share=d("30")),
        ]
        shares = [a.allocated_cost for a in allocate(d("800"), members, "percentage")]
        assert shares == [d("500.00"), d("300.00")]

    def test_largest_remainder_gets_the_cent(self):
        assert distribute(d("0.05"), [d("1"), d("2")]) == [d("0.02"), d("0.03")]

    def test_percentage_shares_not_summing_to_100(self):
        shares = [d("10"), d("15"), d("7.5"), d("20"), d("12.5"), d("3"), d("1")]
        members = [
            ProjectMember(id=f"m{i}", ownership_share=share) for i, share in enumerate(shares)
        ]
        total = d("1234.57")
        allocations = allocate(total, members, "percentage")

        assert sum(a.allocated_cost for a in allocations) == total
        for allocation, share in zip(allocations, shares):
            assert abs(allocation.allocated_cost - total * share / d("69")) < d("0.01")

    def test_inactive_members_ignored(self):
        members = [
            ProjectMember(id="a", name="Active"),
            ProjectMember(id="b", status="inactive"),
        ]
        allocations = allocate(d("100"), members, "equal")
        assert len(allocations) == 1
        assert allocations[0].member_name == "Active"
        assert allocations[0].allocated_cost == d("100.00")

    def test_allocations_sum_to_total(self):
        members = [ProjectMember(id=f"m{i}", operating_hours_per_month=d(i + 1)) for i in range(7)]
        allocations = allocate(d("12345.67"), members, "by_hours")
        assert sum(a.allocated_cost for a in allocations) == d("12345.67")

    def test_no_active_members(self):
        members = [ProjectMember(id="a", status="inactive")]
        with pytest.raises(NoActiveMembers):
            allocate(d("10"), members, "equal")
        assert allocate(d("0"), members, "equal") == ()

    def test_invalid_method(self, members):
        with pytest.raises(InvalidAllocationMethod):
            allocate(d("10"), members, "by_weight")


class TestMonthlyReport:
    """Test monthly report generation."""

    def test_report_totals(self, project):
        report = generate_monthly_report(project, date(2025, 3, 10))
        assert (report.month, report.year) == (3, 2025)
        assert report.fixed_costs == d("69500.00")
        assert report.variable_costs == d("84000.00")
        assert report.depreciation == d("75000.00")
        assert report.total_cost == d("228500.00")
        assert report.cost_per_hour == d("2856.25")
        assert sum(a.allocated_cost for a in report.member_allocations) == report.total_cost

    def test_other_expenses_are_fixed_costs(self, project, default_parameters):
        params = replace(
            default_parameters,
            other_expenses=(OtherExpense("Training", d("3500")), OtherExpense("Nav", d("1200"))),
        )
        report = generate_monthly_report(
            replace(project, operating_parameters=(params,)), date(2025, 3, 1)
        )
        assert report.fixed_costs == d("74200.00")

    def test_break_even_without_hourly_rate(self, project):
        """Total cost / variable cost per hour = 228,500 / 1,050."""
        report = generate_monthly_report(project, date(2025, 3, 1))
        assert report.break_even_hours == d("217.62")

    def test_break_even_with_hourly_rate(self, project):
        """(fixed + depreciation) / (rate - variable rate) = 144,500 / 1,950."""
        report = generate_monthly_report(replace(project, hourly_rate=d("3000")), date(2025, 3, 1))
        assert report.break_even_hours == d("74.10")

    def test_break_even_undefined(self):
        assert calculate_break_even_hours(d("100"), d("0"), d("100"), d("0")) == UNDEFINED
        assert calculate_break_even_hours(d("100"), d("0"), d("100"), d("50"), d("50")) == UNDEFINED

    def test_zero_hours_cost_per_hour_undefined(self, project, default_parameters):
        params = replace(default_parameters, operating_hours_per_month=d("0"))
        report = generate_monthly_report(
            replace(project, operating_parameters=(params,)), date(2025, 3, 1)
        )
        assert report.cost_per_hour == UNDEFINED
        assert report.variable_costs == 0

    def test_month_record_overrides_default(self, project, default_parameters):
        july = replace(default_parameters, scope=ForMonth(2025, 7), operating_hours_per_month=d("120"))
        project = replace(project, operating_parameters=(default_parameters, july))

        assert find_operating_parameters(project, date(2025, 7, 31)) is july
        assert generate_monthly_report(project, date(2025, 7, 15)).operating_hours == d("120")
        assert generate_monthly_report(project, date(2025, 8, 1)).operating_hours == d("80")

    def test_missing_parameters(self, project, default_parameters):
        only_july = replace(default_parameters, scope=ForMonth(2025, 7))
        project = replace(project, operating_parameters=(only_july,))

        with pytest.raises(MissingOperatingParameters) as exc_info:
            generate_monthly_report(project, date(2025, 8, 1))
        assert isinstance(exc_info.value, MissingConfigurationError)
        assert (exc_info.value.year, exc_info.value.month) == (2025, 8)

    def test_before_acquisition_has_no_depreciation(self, project):
        report = generate_monthly_report(project, date(2023, 6, 1))
        assert report.depreciation == 0
        assert report.total_cost == d("153500.00")

    def test_archived_equipment_excluded(self, project, helicopter):
        archived = replace(helicopter, archived=True)
        report = generate_monthly_report(replace(project, equipment=(archived,)), date(2025, 3, 1))
        assert report.depreciation == 0

    def test_no_active_members_propagates(self, project):
        inactive = tuple(replace(m, status="inactive") for m in project.members)
        with pytest.raises(AllocationError):
            generate_monthly_report(replace(project, members=inactive), date(2025, 3, 1))

    def test_report_is_deterministic(self, project):
        generator = MonthlyReportGenerator()
        assert generator.generate(project, date(2025, 3, 1)) == generator.generate(
            project, date(2025, 3, 28)
        )

    def test_monthly_reserve(self):
        assert monthly_reserve(d("228500")) == d("34275.00")
        assert monthly_reserve(d("1000"), 10) == d("100.00")


class TestAnnualForecast:
    """Test twelve-month forecasts."""

    def test_twelve_consecutive_months_with_year_wrap(self, project):
        reports = generate_annual_forecast(project, 11, 2024)
        periods = [(r.year, r.month) for r in reports]
        assert len(reports) == 12
        assert periods[0] == (2024, 11)
        assert periods[2] == (2025, 1)
        assert periods[-1] == (2025, 10)

    def test_months_match_monthly_reports(self, project):
        reports = generate_annual_forecast(project, 1, 2025)
        assert reports[0] == generate_monthly_report(project, date(2025, 1, 1))
        assert reports[5] == generate_monthly_report(project, date(2025, 6, 1))

    def test_missing_month_fails_whole_forecast(self, project, default_parameters):
        only_one = replace(default_parameters, scope=ForMonth(2025, 1))
        with pytest.raises(MissingOperatingParameters):
            generate_annual_forecast(replace(project, operating_parameters=(only_one,)), 1, 2025)

    def test_invalid_start_month(self, project):
        with pytest.raises(ValueError):
            generate_annual_forecast(project, 13, 2025)

    def test_summary(self, project):
        summary = summarize_forecast(generate_annual_forecast(project, 1, 2025))
        assert summary.total_cost == d("2742000.00")
        assert summary.rows[-1].cumulative_cost == summary.total_cost
        assert summary.rows[0].cumulative_cost == d("228500.00")
        assert summary.operating_hours == d("960")
        assert summary.average_cost_per_hour == d("2856.25")


class TestScenarios:
    """Test what-if scenario analysis."""

    def test_identity_scenario_matches_baseline(self, project):
        baseline = generate_monthly_report(project, date(2025, 3, 1))
        [result] = analyze_scenarios(project, [ScenarioDefinition("Same")], date(2025, 3, 1))
        assert result.report == baseline
        assert result.total_cost.absolute == 0
        assert result.total_cost.percent == 0

    def test_usage_multiplier(self, project):
        [result] = analyze_scenarios(
            project,
            [ScenarioDefinition("High Usage", operating_hours_multiplier=d("1.2"))],
            date(2025, 3, 1),
        )
        assert result.report.operating_hours == d("96.0")
        assert result.report.variable_costs == d("100800.00")
        assert result.report.fixed_costs == d("69500.00")
        assert result.report.depreciation == d("75000.00")
        assert result.total_cost.absolute == d("16800.00")
        assert result.annual_cost == result.report.total_cost * 12

    def test_cost_multiplier(self, project):
        [result] = analyze_scenarios(
            project,
            [ScenarioDefinition("Cost Increase", cost_multiplier=d("1.1"))],
            date(2025, 3, 1),
        )
        assert result.report.variable_costs == d("92400.00")
        assert result.operating_hours.absolute == 0

    def test_usage_based_depreciation_unchanged(self, project):
        truck = Equipment(
            id="truck",
            purchase_price=d("10000"),
            salvage_value=d("0"),
            acquisition_date=date(2025, 1, 1),
            service_life_years=2,
            depreciation_method="units_of_production",
            expected_usage_hours=d("1000"),
        )
        project = replace(project, equipment=(truck,))
        [result] = analyze_scenarios(
            project,
            [ScenarioDefinition("Double", operating_hours_multiplier=d("2"))],
            date(2025, 3, 1),
        )
        assert result.report.depreciation == d("800.00")

    def test_results_in_input_order(self, project):
        names = ["B", "A", "C"]
        results = analyze_scenarios(
            project, [ScenarioDefinition(n) for n in names], date(2025, 3, 1)
        )
        assert [r.name for r in results] == names

    def test_negative_multiplier_rejected(self, project):
        with pytest.raises(InvalidScenario):
            analyze_scenarios(
                project,
                [ScenarioDefinition("Bad", operating_hours_multiplier=d("-1"))],
                date(2025, 3, 1),
            )

    def test_delta(self):
        delta = calculate_delta(d("100"), d("110"))
        assert delta.absolute == d("10")
        assert delta.percent == d("10.00")

        assert calculate_delta(d("0"), d("0")).percent == 0
        assert calculate_delta(d("0"), d("5")).percent == UNDEFINED
        assert calculate_delta(UNDEFINED, UNDEFINED).absolute == 0
        assert calculate_delta(UNDEFINED, d("5")).absolute == UNDEFINED


class TestTrend:
    def test_oldest_first(self, project):
        reports = generate_trend_data(project, date(2025, 3, 15))
        assert [(r.year, r.month) for r in reports] == [(2025, 1), (2025, 2), (2025, 3)]

    def test_crosses_year_boundary(self, project):
        reports = generate_trend_data(project, date(2025, 2, 1), month_count=6)
        assert len(reports) == 6
        assert (reports[0].year, reports[0].month) == (2024, 9)

    def test_invalid_count(self, project):
        with pytest.raises(ValueError):
            generate_trend_data(project, date(2025, 3, 1), month_count=0)


class TestHealthScore:
    """Test the composite financial health score."""

    def test_score(self, project):
        report = generate_monthly_report(project, date(2025, 3, 1))
        health = calculate_financial_health_score(project, report)
        factors = {f.name: f.score for f in health.factors}

        assert health.category == "Helicopter"
        assert health.benchmark_cost_per_hour == d("50000")
        assert factors["Cost Efficiency"] == d("100.00")
        assert factors["Break-Even Margin"] == d("36.76")
        assert factors["Depreciation Load"] == d("34.35")
        assert health.score == d("61.45")

    def test_weights_sum_to_one(self, project):
        report = generate_monthly_report(project, date(2025, 3, 1))
        health = calculate_financial_health_score(project, report)
        assert sum(f.weight for f in health.factors) == 1

    def test_zero_hours_scores_low_efficiency(self, project, default_parameters):
        params = replace(default_parameters, operating_hours_per_month=d("0"))
        project = replace(project, operating_parameters=(params,))
        report = generate_monthly_report(project, date(2025, 3, 1))
        health = calculate_financial_health_score(project, report)

        assert health.factors[0].score == 0
        assert 0 <= health.score <= 100

    def test_depreciation_load_bounds(self):
        assert depreciation_load_score(d("0"), d("0")) == d("100.00")
        assert depreciation_load_score(d("60"), d("100")) == d("0.00")
        assert depreciation_load_score(d("25"), d("100")) == d("50.00")

    def test_project_category(self):
        def eq(eq_id, category, price):
            return Equipment(
                id=eq_id,
                category=category,
                purchase_price=d(price),
                acquisition_date=date(2025, 1, 1),
                service_life_years=5,
            )

        project = Project(
            id="p",
            equipment=(
                eq("a", "Vehicle", 100000),
                eq("b", "Machinery", 150000),
                eq("c", "Vehicle", 100000),
            ),
        )
        assert project_category(project) == "Vehicle"
        assert project_category(Project(id="empty")) == "Other"
