"""
Typed errors raised by the ledger engine.

Every error carries a machine-readable ``code``, the HTTP ``status_code`` the
API boundary answers with, a human ``message`` and optional structured
``details``. Routes never inspect messages; they let the global handler in
``app.main`` translate the error.

    LedgerError
    +-- NotFoundError (404)
    |   +-- AccountNotFound, NoDefaultAccount, CategoryNotFound,
    |       BudgetNotFound, TransactionNotFound, GoalNotFound
    +-- InsufficientFunds, BudgetExceeded, BudgetNotApplicable,
    |   InvalidInterval, ImmutableField, GoalCompleted, InvalidAmount,
    |   CategoryTypeMismatch, DefaultAccountRequired (400)
    +-- ConflictError (409)
        +-- DuplicateBudget, DuplicateSlug, ResourceInUse,
            ConcurrentModification
"""
from typing import Any, Dict, Optional


class LedgerError(Exception):
    code = "LEDGER_ERROR"
    status_code = 400
    default_message = "Ledger operation failed"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details: Dict[str, Any] = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            payload["context"] = {k: str(v) for k, v in self.details.items()}
        return payload


class NotFoundError(LedgerError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class AccountNotFound(NotFoundError):
    code = "ACCOUNT_NOT_FOUND"
    default_message = "Account not found or unauthorized"


class NoDefaultAccount(NotFoundError):
    code = "NO_DEFAULT_ACCOUNT"
    default_message = "No default account found. Please select an account"


class CategoryNotFound(NotFoundError):
    code = "CATEGORY_NOT_FOUND"
    default_message = "Category not found"


class BudgetNotFound(NotFoundError):
    code = "BUDGET_NOT_FOUND"
    default_message = "Budget not found"


class TransactionNotFound(NotFoundError):
    code = "TRANSACTION_NOT_FOUND"
    default_message = "Transaction not found"


class GoalNotFound(NotFoundError):
    code = "GOAL_NOT_FOUND"
    default_message = "Goal not found"


class InsufficientFunds(LedgerError):
    code = "INSUFFICIENT_FUNDS"
    default_message = "Insufficient balance"


class BudgetExceeded(LedgerError):
    code = "BUDGET_EXCEEDED"
    default_message = "Your budget limit has been exceeded"


class BudgetNotApplicable(LedgerError):
    code = "BUDGET_NOT_APPLICABLE"
    default_message = "Income categories cannot carry a budget"


class InvalidInterval(LedgerError):
    code = "INVALID_INTERVAL"
    default_message = "Invalid interval"


class ImmutableField(LedgerError):
    code = "IMMUTABLE_FIELD"
    default_message = "Field cannot be changed"


class GoalCompleted(LedgerError):
    code = "GOAL_COMPLETED"
    default_message = "Cannot update a completed goal"


class InvalidAmount(LedgerError):
    code = "INVALID_AMOUNT"
    default_message = "Invalid amount"


class CategoryTypeMismatch(LedgerError):
    code = "CATEGORY_TYPE_MISMATCH"
    default_message = "Transaction type does not match the category type"


class DefaultAccountRequired(LedgerError):
    code = "DEFAULT_ACCOUNT_REQUIRED"
    default_message = "Exactly one default account is required"


class ConflictError(LedgerError):
    code = "CONFLICT"
    status_code = 409
    default_message = "Conflicting change"


class DuplicateBudget(ConflictError):
    code = "DUPLICATE_BUDGET"
    default_message = "A budget already exists for this category"


class DuplicateSlug(ConflictError):
    code = "DUPLICATE_SLUG"
    default_message = "Name already exists"


class ResourceInUse(ConflictError):
    code = "RESOURCE_IN_USE"
    default_message = "Resource is still referenced"


class ConcurrentModification(ConflictError):
    code = "CONCURRENT_MODIFICATION"
    default_message = "The record was modified concurrently, please retry"
