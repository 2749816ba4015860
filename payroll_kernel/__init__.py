"""
Payroll Kernel

Foundations for the salary calculation-and-commit engine:
- Structured JSON logging
- Typed, code-carrying exceptions
- Injectable clock
- Frozen domain DTOs (periods, compensation, breakdowns)
- SQLAlchemy persistence for payroll records and ledger transactions
"""

__version__ = "0.1.0"
