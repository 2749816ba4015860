"""
Progressive Tax Calculator - monthly income tax from annual marginal brackets.

Pure functions with no I/O - bracket tables are provided as parameters.

Usage:
    from decimal import Decimal
    from payroll_engines.tax import ProgressiveTaxCalculator, TaxTable
    from payroll_kernel.domain.dtos import TaxBracket

    usd = TaxTable.from_rows("USD", [
        {"min": 0, "max": 10000, "rate": "0.10"},
        {"min": 10000, "max": None, "rate": "0.12"},
    ])
    calculator = ProgressiveTaxCalculator({"USD": usd})
    result = calculator.calculate(Decimal("5000"), "USD")
    print(result.amount)  # monthly tax

Monthly taxable income is annualised (x12), taxed bracket by bracket in
ascending order, the annual tax is rounded to a whole unit, and the monthly
tax is round(annual / 12).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.dtos import TaxBracket, TaxResult
from payroll_kernel.logging_config import get_logger
from payroll_kernel.utils.rounding import round_whole

logger = get_logger("engines.tax")

_ZERO = Decimal("0")
_ONE = Decimal("1")
_TWELVE = Decimal("12")
_RATE_QUANTUM = Decimal("0.0001")


@dataclass(frozen=True)
class TaxTable:
    """
    Ordered, non-overlapping set of marginal brackets for one currency.

    Contract:
        - Brackets are ascending by ``min``.
        - Each bracket's ``max`` is greater than its ``min``.
        - A bracket never starts below the previous bracket's ``max``.
        - Only the last bracket may be unbounded (``max=None``).
        - Rates are within [0, 1].

    Raises:
        ValueError: On any violation, at construction.
    """

    currency: str
    brackets: tuple[TaxBracket, ...]

    def __post_init__(self) -> None:
        previous: TaxBracket | None = None
        for index, bracket in enumerate(self.brackets):
            if bracket.min < _ZERO:
                raise ValueError(
                    f"{self.currency} bracket {index}: min must be >= 0"
                )
            if not _ZERO <= bracket.rate <= _ONE:
                raise ValueError(
                    f"{self.currency} bracket {index}: rate must be within [0, 1]"
                )
            if bracket.max is not None and bracket.max <= bracket.min:
                raise ValueError(
                    f"{self.currency} bracket {index}: max must exceed min"
                )
            if previous is not None:
                if previous.max is None:
                    raise ValueError(
                        f"{self.currency} bracket {index - 1}: only the last "
                        "bracket may be unbounded"
                    )
                if bracket.min < previous.max:
                    raise ValueError(
                        f"{self.currency} bracket {index}: overlaps or is out "
                        "of ascending order"
                    )
            previous = bracket

    @classmethod
    def from_rows(
        cls,
        currency: str,
        rows: Iterable[Mapping[str, Any]],
    ) -> TaxTable:
        """Build from plain mappings such as those loaded from YAML."""
        brackets = tuple(
            TaxBracket(
                min=Decimal(str(row["min"])),
                max=None if row.get("max") is None else Decimal(str(row["max"])),
                rate=Decimal(str(row["rate"])),
            )
            for row in rows
        )
        return cls(currency=currency.upper(), brackets=brackets)


def annual_tax(annual_income: Decimal, brackets: Iterable[TaxBracket]) -> Decimal:
    """Marginal-bracket summation over ascending brackets, unrounded."""
    tax = _ZERO
    for bracket in brackets:
        if annual_income <= bracket.min:
            continue
        upper = annual_income if bracket.max is None else min(annual_income, bracket.max)
        tax += (upper - bracket.min) * bracket.rate
    return tax


class ProgressiveTaxCalculator:
    """
    Monthly tax from per-currency bracket tables.

    Unknown currencies fall back to ``default_currency``'s table; when that
    is missing too, tax is zero.
    """

    def __init__(
        self,
        tables: Mapping[str, TaxTable],
        default_currency: str | None = None,
    ):
        self._tables = {code.upper(): table for code, table in tables.items()}
        self._default_currency = default_currency.upper() if default_currency else None

    def table_for(self, currency: str) -> TaxTable | None:
        table = self._tables.get(currency.upper())
        if table is None and self._default_currency is not None:
            table = self._tables.get(self._default_currency)
            if table is not None:
                logger.debug(
                    "tax_table_fallback",
                    extra={
                        "currency": currency,
                        "fallback_currency": self._default_currency,
                    },
                )
        return table

    @traced_engine(
        "progressive_tax",
        "1.0",
        fingerprint_fields=("monthly_income", "currency"),
    )
    def calculate(self, monthly_income: Decimal, currency: str) -> TaxResult:
        monthly_income = Decimal(monthly_income)
        if monthly_income <= _ZERO:
            return TaxResult(amount=_ZERO, effective_rate=_ZERO)

        table = self.table_for(currency)
        if table is None:
            logger.info("tax_table_missing", extra={"currency": currency})
            return TaxResult(amount=_ZERO, effective_rate=_ZERO)

        yearly = round_whole(annual_tax(monthly_income * _TWELVE, table.brackets))
        monthly = round_whole(yearly / _TWELVE)
        effective_rate = (monthly / monthly_income).quantize(
            _RATE_QUANTUM, rounding=ROUND_HALF_UP
        )
        return TaxResult(amount=monthly, effective_rate=effective_rate)
