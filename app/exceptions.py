"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors without importing HTTP
concepts. The handler layer translates them into HTTP responses with a
consistent body: {"detail": "...", "error_type": "..."}.

Exception hierarchy:
    FinanceAPIError (base)
    ├── AccountNotFoundError             — requested account doesn't exist
    ├── ExpenseNotFoundError             — requested expense doesn't exist
    ├── InstallmentPurchaseNotFoundError — requested purchase doesn't exist
    ├── StatementNotFoundError           — no expense falls in the period
    ├── NotACreditCardError              — statement operation on a non-card account
    └── PersistenceError                 — the storage layer failed

Rejected statement operations (pay a zero total, move past the last
statement, ...) are NOT exceptions. They come back as a MutationOutcome
and the routers turn them into 409 responses.
"""

import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class FinanceAPIError(Exception):
    """Base exception for all domain errors."""

    status_code = 400
    error_type = "finance_error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class AccountNotFoundError(FinanceAPIError):
    """Raised when a requested account does not exist."""

    status_code = 404
    error_type = "account_not_found"

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class ExpenseNotFoundError(FinanceAPIError):
    """Raised when a requested expense does not exist."""

    status_code = 404
    error_type = "expense_not_found"

    def __init__(self, expense_id: uuid.UUID):
        self.expense_id = expense_id
        super().__init__(f"Expense {expense_id} not found")


class InstallmentPurchaseNotFoundError(FinanceAPIError):
    status_code = 404
    error_type = "installment_purchase_not_found"

    def __init__(self, purchase_id: uuid.UUID):
        self.purchase_id = purchase_id
        super().__init__(f"Installment purchase {purchase_id} not found")


class StatementNotFoundError(FinanceAPIError):
    """Raised when no expense of the account classifies into the period."""

    status_code = 404
    error_type = "statement_not_found"

    def __init__(self, account_id: uuid.UUID, period_key: str):
        self.account_id = account_id
        self.period_key = period_key
        super().__init__(f"Account {account_id} has no statement for {period_key}")


class NotACreditCardError(FinanceAPIError):
    """Raised when statement endpoints are used on a non-card account."""

    status_code = 400
    error_type = "not_a_credit_card"

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__(f"Account {account_id} is not a credit card")


class PersistenceError(FinanceAPIError):
    """
    Raised when the storage layer fails while applying a change.

    Attributes:
        operation: Short name of the storage call that failed.
    """

    status_code = 503
    error_type = "persistence_failed"

    def __init__(self, operation: str, detail: str | None = None):
        self.operation = operation
        super().__init__(detail or f"Persistence failed during {operation}")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Every FinanceAPIError subclass carries its own status code and
    error_type, so a single handler covers the whole hierarchy.

    This is called once during app startup in main.py.
    """

    @app.exception_handler(FinanceAPIError)
    async def finance_error_handler(
        request: Request, exc: FinanceAPIError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error_type": exc.error_type},
        )
