"""
Hypothesis-based property tests for the salary calculators.

Properties checked:
- Working-day counts partition the range
- Proration ratio stays within [0, 1] for any hire/termination dates
- Progressive tax is monotonic and never exceeds income
- Breakdown amounts are whole, non-negative and consistent

Not covered here (see the explicit engine tests):
- Exact bracket arithmetic for specific incomes
- Attendance cap percentages
"""

from datetime import date, timedelta
from decimal import Decimal

from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from payroll_config import get_active_config
from payroll_engines import ProrationCalculator, WorkingDaysCounter
from payroll_kernel.domain.dtos import (
    Allowance,
    AttendanceFact,
    CompensationProfile,
    Deduction,
    PayPeriod,
)

CONFIG = get_active_config()

FUZZ_SETTINGS = settings(
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)

# Strategies

dates_2023_2025 = st.dates(min_value=date(2023, 1, 1), max_value=date(2025, 12, 31))
months = st.integers(min_value=1, max_value=12)
whole_amounts = st.integers(min_value=1, max_value=5_000_000).map(Decimal)
currencies = st.sampled_from(["BDT", "USD", "EUR"])


@st.composite
def employment_dates(draw):
    hire = draw(dates_2023_2025)
    terminated = draw(st.booleans())
    termination = None
    if terminated:
        termination = hire + timedelta(days=draw(st.integers(min_value=0, max_value=400)))
    return hire, termination


@st.composite
def compensation_profiles(draw):
    allowances = draw(
        st.lists(
            st.builds(
                Allowance,
                type=st.sampled_from(["housing", "transport", "medical"]),
                amount=st.integers(min_value=0, max_value=100_000).map(Decimal),
                taxable=st.booleans(),
            ),
            max_size=3,
        )
    )
    deductions = draw(
        st.lists(
            st.builds(
                Deduction,
                type=st.sampled_from(["pf", "loan"]),
                amount=st.integers(min_value=0, max_value=50_000).map(Decimal),
            ),
            max_size=2,
        )
    )
    return CompensationProfile(
        base_amount=draw(whole_amounts),
        currency=draw(currencies),
        allowances=tuple(allowances),
        deductions=tuple(deductions),
    )


def _is_whole(amount: Decimal) -> bool:
    return amount == amount.to_integral_value()


class TestWorkingDaysProperties:
    @given(
        start=dates_2023_2025,
        span=st.integers(min_value=0, max_value=90),
        holidays=st.lists(dates_2023_2025, max_size=10),
    )
    @FUZZ_SETTINGS
    def test_counts_partition_range(self, start, span, holidays):
        end = start + timedelta(days=span)

        result = WorkingDaysCounter().count(start, end, holidays=holidays)

        assert result.total_days == span + 1
        assert result.working_days + result.weekends + result.holidays == result.total_days


class TestProrationProperties:
    @given(dates=employment_dates(), month=months)
    @FUZZ_SETTINGS
    def test_ratio_bounded(self, dates, month):
        hire, termination = dates
        period = PayPeriod.for_month(month, 2024)

        result = ProrationCalculator().calculate(
            hire, termination, period.start_date, period.end_date
        )

        assert Decimal("0") <= result.ratio <= Decimal("1")
        assert 0 <= result.effective_working_days <= result.period_working_days
        assert result.is_prorated == (result.ratio < 1)


class TestTaxProperties:
    @given(
        low=st.integers(min_value=0, max_value=2_000_000),
        delta=st.integers(min_value=0, max_value=2_000_000),
        currency=st.sampled_from(["BDT", "USD"]),
    )
    @FUZZ_SETTINGS
    def test_monotonic_and_bounded(self, low, delta, currency):
        calculator = CONFIG.build_tax_calculator()

        lower = calculator.calculate(Decimal(low), currency).amount
        higher = calculator.calculate(Decimal(low + delta), currency).amount

        assert Decimal("0") <= lower <= higher
        assert higher <= Decimal(low + delta)


class TestBreakdownProperties:
    @given(
        compensation=compensation_profiles(),
        dates=employment_dates(),
        month=months,
        attended=st.one_of(st.none(), st.integers(min_value=0, max_value=25)),
    )
    @FUZZ_SETTINGS
    def test_amounts_consistent(self, compensation, dates, month, attended):
        hire, termination = dates
        period = PayPeriod.for_month(month, 2024)
        assume(hire <= period.end_date)
        assume(termination is None or termination >= period.start_date)
        attendance = None
        if attended is not None:
            attendance = AttendanceFact(expected_days=21, actual_days=attended)

        breakdown = CONFIG.build_assembler().assemble(
            compensation,
            hire,
            termination,
            period.start_date,
            period.end_date,
            attendance=attendance,
        )

        for amount in (
            breakdown.base_amount,
            breakdown.gross_salary,
            breakdown.net_salary,
            breakdown.tax_amount,
            breakdown.attendance_deduction,
        ):
            assert amount >= 0
            assert _is_whole(amount)
        assert breakdown.base_amount <= compensation.base_amount
        assert breakdown.net_salary == max(
            Decimal("0"), breakdown.gross_salary - breakdown.total_deductions
        )
        assert breakdown.taxable_amount <= breakdown.gross_salary
