"""
Payroll Configuration Schema.

Defines the structure and defaults for salary computation settings: the
workweek, which computation steps run, the deduction-proration policy, and
the progressive tax tables per currency.  Runtime values come from
``payroll_config.get_active_config()``.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Self

from payroll_engines.attendance import AttendanceDeductionCalculator
from payroll_engines.breakdown import BreakdownAssembler, BreakdownPolicy
from payroll_engines.compensation import CompensationResolver
from payroll_engines.tax import ProgressiveTaxCalculator, TaxTable
from payroll_engines.working_days import WEEKDAY_NAMES, workweek_from_names
from payroll_kernel.domain.dtos import PaymentMethod
from payroll_kernel.logging_config import get_logger
from payroll_kernel.utils.hashing import hash_payload

logger = get_logger("config.payroll")

VALID_PAYMENT_METHODS = {method.value for method in PaymentMethod}
DEFAULT_WORKWEEK = ("monday", "tuesday", "wednesday", "thursday", "friday")


@dataclass
class PayrollConfig:
    """
    Configuration schema for salary processing.

    Field defaults mirror the bundled defaults.yaml except for tax tables,
    which only exist in YAML.  Override at instantiation:

        config = PayrollConfig(
            default_currency="USD",
            prorate_deductions=False,
        )
    """

    # Currency
    default_currency: str = "BDT"
    # Table used for currencies without their own; None means zero tax
    default_tax_currency: str | None = None

    # Work week (day names)
    workweek: tuple[str, ...] = DEFAULT_WORKWEEK

    # Computation switches
    allow_proration: bool = True
    attendance_integration: bool = True
    auto_deductions: bool = True
    prorate_deductions: bool = True
    max_deduction_percent: Decimal = Decimal("100")

    # Payment
    default_payment_method: str = "bank"

    # Tax tables keyed by ISO currency code
    tax_tables: dict[str, TaxTable] = field(default_factory=dict)

    def __post_init__(self):
        if len(self.default_currency) != 3 or not self.default_currency.isalpha():
            raise ValueError(
                f"default_currency must be a 3-letter code, got '{self.default_currency}'"
            )
        self.default_currency = self.default_currency.upper()
        if self.default_tax_currency is not None:
            self.default_tax_currency = self.default_tax_currency.upper()

        # Validate work week
        if not self.workweek:
            raise ValueError("workweek must name at least one day")
        self.workweek = tuple(day.strip().lower() for day in self.workweek)
        unknown = [day for day in self.workweek if day not in WEEKDAY_NAMES]
        if unknown:
            raise ValueError(
                f"workweek days must be among {WEEKDAY_NAMES}, got {unknown}"
            )

        # Validate deduction cap
        self.max_deduction_percent = Decimal(str(self.max_deduction_percent))
        if not Decimal("0") <= self.max_deduction_percent <= Decimal("100"):
            raise ValueError("max_deduction_percent must be within [0, 100]")

        if self.default_payment_method not in VALID_PAYMENT_METHODS:
            raise ValueError(
                f"default_payment_method must be one of {sorted(VALID_PAYMENT_METHODS)}, "
                f"got '{self.default_payment_method}'"
            )

        # Tax tables
        for code, table in self.tax_tables.items():
            if not isinstance(table, TaxTable):
                raise ValueError(f"tax_tables[{code!r}] must be a TaxTable")
            if code.upper() != table.currency:
                raise ValueError(
                    f"tax_tables key {code!r} does not match table currency "
                    f"{table.currency!r}"
                )
        if (
            self.default_tax_currency is not None
            and self.default_tax_currency not in self.tax_tables
        ):
            raise ValueError(
                f"default_tax_currency '{self.default_tax_currency}' has no tax table"
            )

        logger.info(
            "payroll_config_initialized",
            extra={
                "default_currency": self.default_currency,
                "workweek": list(self.workweek),
                "allow_proration": self.allow_proration,
                "attendance_integration": self.attendance_integration,
                "auto_deductions": self.auto_deductions,
                "prorate_deductions": self.prorate_deductions,
                "tax_currencies": sorted(self.tax_tables),
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with built-in defaults (no tax tables)."""
        logger.info("payroll_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from YAML)."""
        logger.info(
            "payroll_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        data = dict(data)
        if "tax_tables" in data:
            data["tax_tables"] = {
                code.upper(): rows
                if isinstance(rows, TaxTable)
                else TaxTable.from_rows(code, rows)
                for code, rows in (data["tax_tables"] or {}).items()
            }
        if "workweek" in data:
            data["workweek"] = tuple(data["workweek"])
        if "max_deduction_percent" in data:
            data["max_deduction_percent"] = Decimal(str(data["max_deduction_percent"]))
        return cls(**data)

    @property
    def workweek_indices(self) -> frozenset[int]:
        return workweek_from_names(self.workweek)

    def breakdown_policy(self) -> BreakdownPolicy:
        return BreakdownPolicy(
            allow_proration=self.allow_proration,
            attendance_integration=self.attendance_integration,
            auto_deductions=self.auto_deductions,
        )

    def build_tax_calculator(self) -> ProgressiveTaxCalculator:
        return ProgressiveTaxCalculator(
            self.tax_tables,
            default_currency=self.default_tax_currency,
        )

    def build_assembler(self) -> BreakdownAssembler:
        """Breakdown assembler wired with this configuration's engines."""
        return BreakdownAssembler(
            tax_calculator=self.build_tax_calculator(),
            policy=self.breakdown_policy(),
            resolver=CompensationResolver(
                prorate_deductions=self.prorate_deductions
            ),
            attendance_calculator=AttendanceDeductionCalculator(
                max_deduction_percent=self.max_deduction_percent
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "default_currency": self.default_currency,
            "default_tax_currency": self.default_tax_currency,
            "workweek": list(self.workweek),
            "allow_proration": self.allow_proration,
            "attendance_integration": self.attendance_integration,
            "auto_deductions": self.auto_deductions,
            "prorate_deductions": self.prorate_deductions,
            "max_deduction_percent": str(self.max_deduction_percent),
            "default_payment_method": self.default_payment_method,
            "tax_tables": {
                code: [
                    {
                        "min": str(bracket.min),
                        "max": None if bracket.max is None else str(bracket.max),
                        "rate": str(bracket.rate),
                    }
                    for bracket in table.brackets
                ]
                for code, table in sorted(self.tax_tables.items())
            },
        }

    @property
    def fingerprint(self) -> str:
        """SHA-256 of the canonical JSON form; identical configs hash equal."""
        return hash_payload(self.to_dict())
