"""
Account Ledger: the only code allowed to change ``Account.balance``.

Functions mutate the ORM object in place and return the new balance. They
never flush or commit; the caller's unit of work persists the account together
with whatever else the operation touched.
"""
import logging
from decimal import Decimal

from app.core.errors import InsufficientFunds, InvalidAmount
from app.models.account import Account

logger = logging.getLogger(__name__)


def _check_amount(amount: Decimal) -> Decimal:
    amount = Decimal(amount)
    if amount < 0:
        raise InvalidAmount("Amount must not be negative", amount=amount)
    return amount


def ensure_funds(account: Account, amount: Decimal) -> None:
    if account.balance < _check_amount(amount):
        raise InsufficientFunds(
            f"Insufficient balance in account {account.name}",
            account_id=account.id,
            balance=account.balance,
            amount=amount,
        )


def credit(account: Account, amount: Decimal) -> Decimal:
    amount = _check_amount(amount)
    account.balance = account.balance + amount
    logger.debug(f"Credited {amount} to account {account.id}, balance {account.balance}")
    return account.balance


def debit(account: Account, amount: Decimal) -> Decimal:
    amount = _check_amount(amount)
    ensure_funds(account, amount)
    account.balance = account.balance - amount
    logger.debug(f"Debited {amount} from account {account.id}, balance {account.balance}")
    return account.balance
