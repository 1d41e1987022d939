from decimal import Decimal

import pytest

from app.core.errors import InsufficientFunds, InvalidAmount
from app.models.account import Account
from app.services import ledger


def _account(balance="100.00"):
    return Account(name="Main", slug="main", balance=Decimal(balance), is_default=True)


class TestLedger:
    def test_credit_increases_balance(self):
        account = _account()
        assert ledger.credit(account, Decimal("25.50")) == Decimal("125.50")
        assert account.balance == Decimal("125.50")

    def test_debit_decreases_balance(self):
        account = _account()
        assert ledger.debit(account, Decimal("30.00")) == Decimal("70.00")

    def test_debit_whole_balance_is_allowed(self):
        account = _account()
        assert ledger.debit(account, Decimal("100.00")) == Decimal("0.00")

    def test_debit_more_than_balance_is_rejected_and_leaves_balance(self):
        account = _account("10.00")
        with pytest.raises(InsufficientFunds) as exc:
            ledger.debit(account, Decimal("10.01"))
        assert account.balance == Decimal("10.00")
        assert exc.value.status_code == 400
        assert exc.value.code == "INSUFFICIENT_FUNDS"

    def test_negative_amounts_are_rejected(self):
        account = _account()
        with pytest.raises(InvalidAmount):
            ledger.credit(account, Decimal("-1.00"))
        with pytest.raises(InvalidAmount):
            ledger.debit(account, Decimal("-1.00"))
        assert account.balance == Decimal("100.00")

    def test_ensure_funds_does_not_mutate(self):
        account = _account("50.00")
        ledger.ensure_funds(account, Decimal("50.00"))
        with pytest.raises(InsufficientFunds):
            ledger.ensure_funds(account, Decimal("50.01"))
        assert account.balance == Decimal("50.00")

    def test_credit_then_debit_restores_exact_balance(self):
        account = _account("0.10")
        ledger.credit(account, Decimal("0.20"))
        ledger.debit(account, Decimal("0.20"))
        assert account.balance == Decimal("0.10")
