"""
Transaction Lifecycle.

A completed transaction is the only thing that moves money: expenses debit
their account and consume their category's budget, incomes credit their
account. Pending transactions (dated after today) carry no effects until the
settlement scheduler picks them up.

Every operation here runs inside ``unit_of_work`` while holding the ledger
locks of each account and budget it may touch, and runs all of its checks
before the first mutation.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db_utils import unit_of_work
from app.core.errors import (
    AccountNotFound,
    CategoryNotFound,
    CategoryTypeMismatch,
    ImmutableField,
    LedgerError,
    NoDefaultAccount,
    TransactionNotFound,
)
from app.core.locks import account_key, budget_key, ledger_locks
from app.crud.account import get_account_by_id, get_account_for_update, get_default_account
from app.crud.budget import get_budget_for_update
from app.crud.category import get_category_for_update
from app.crud.transaction import detach_recurring_children, get_transaction_for_update
from app.models.account import Account
from app.models.category import Category
from app.models.transaction import Transaction, TransactionStatus, TransactionType
from app.schemas.transaction import TransactionCreate, TransactionUpdate
from app.services import budget_tracker, ledger
from app.utils.intervals import add_interval, is_future_day, parse_interval, start_of_day, utcnow
from app.utils.notifications import notify_budget_warning, notify_settlement_failed

logger = logging.getLogger(__name__)

# Fields a goal contribution keeps for as long as it is linked to its goal
GOAL_LOCKED_FIELDS = ("account_id", "amount", "transaction_type", "category_id")


@dataclass
class TransactionOutcome:
    transaction: Transaction
    budget_warning: Optional[str] = None


async def resolve_account_id(db: AsyncSession, user_id: uuid.UUID, account_id: Optional[uuid.UUID]) -> uuid.UUID:
    """Explicit account (must be the user's) or the user's default account."""
    if account_id is not None:
        account = await get_account_by_id(account_id, user_id, db)
        if account is None:
            raise AccountNotFound(account_id=account_id)
        return account.id
    account = await get_default_account(user_id, db)
    if account is None:
        raise NoDefaultAccount()
    return account.id


async def load_account(db: AsyncSession, account_id: uuid.UUID, user_id: uuid.UUID) -> Account:
    account = await get_account_for_update(account_id, db, user_id=user_id)
    if account is None:
        raise AccountNotFound(account_id=account_id)
    return account


async def load_category(db: AsyncSession, category_id: uuid.UUID, user_id: uuid.UUID) -> Category:
    category = await get_category_for_update(category_id, user_id, db)
    if category is None:
        raise CategoryNotFound(category_id=category_id)
    return category


def _check_category_type(category: Category, transaction_type: TransactionType) -> None:
    if category.category_type.value != TransactionType(transaction_type).value:
        raise CategoryTypeMismatch(
            f"Category {category.name} is an {category.category_type.value} category",
            category_id=category.id,
            transaction_type=transaction_type,
        )


async def _apply_effects(
    db: AsyncSession,
    tx: Transaction,
    account: Account,
    category: Category,
    now: datetime,
    track_budget: bool = True,
) -> Optional[str]:
    """Move the money for ``tx`` and mark it completed. Returns the budget warning, if any."""
    warning = None
    if tx.transaction_type == TransactionType.expense:
        ledger.ensure_funds(account, tx.amount)
        check = budget_tracker.BudgetCheck()
        if track_budget:
            check = await budget_tracker.check_and_consume(db, tx.user_id, category, tx.amount)
        ledger.debit(account, tx.amount)
        tx.budget_id = None if check.unbudgeted else check.budget.id
        if check.warning:
            warning = await notify_budget_warning(
                db, tx.user_id, category.id, category.name,
                check.budget.remaining_limit, transaction_id=tx.id,
            )
    else:
        ledger.credit(account, tx.amount)
        tx.budget_id = None

    account.updated_at = now
    tx.status = TransactionStatus.completed
    tx.failure_reason = None
    return warning


async def _revert_effects(db: AsyncSession, tx: Transaction, strict: bool = True) -> None:
    """
    Undo what settling ``tx`` did, using only the fields stored on it.

    With ``strict`` off a vanished account or budget is logged and skipped, so
    a delete can still go through.
    """
    if not tx.is_completed:
        return

    account = await get_account_for_update(tx.account_id, db)
    if account is None:
        if strict:
            raise AccountNotFound(account_id=tx.account_id)
        logger.warning(f"Transaction {tx.id} references missing account {tx.account_id}; balance not reverted")
    elif tx.transaction_type == TransactionType.expense:
        ledger.credit(account, tx.amount)
    else:
        # Never lets the balance go negative; raises InsufficientFunds instead
        ledger.debit(account, tx.amount)

    if tx.transaction_type == TransactionType.expense and tx.budget_id is not None:
        budget = await get_budget_for_update(tx.budget_id, db)
        if budget is None:
            logger.warning(f"Transaction {tx.id} references missing budget {tx.budget_id}; limit not reverted")
        else:
            budget_tracker.revert(budget, tx.amount)
    tx.budget_id = None


async def create_transaction(
    db: AsyncSession,
    user_id: uuid.UUID,
    tx_in: TransactionCreate,
    now: Optional[datetime] = None,
) -> TransactionOutcome:
    now = now or utcnow()
    account_id = await resolve_account_id(db, user_id, tx_in.account_id)

    async with ledger_locks.hold(account_key(account_id), budget_key(user_id, tx_in.category_id)):
        async with unit_of_work(db):
            account = await load_account(db, account_id, user_id)
            category = await load_category(db, tx_in.category_id, user_id)
            _check_category_type(category, tx_in.transaction_type)

            interval = parse_interval(tx_in.recurring_interval) if tx_in.is_recurring else None
            tx_date = start_of_day(tx_in.transaction_date or now)
            pending = is_future_day(tx_date, now)

            tx = Transaction(
                id=uuid.uuid4(),
                user_id=user_id,
                account_id=account.id,
                category_id=category.id,
                transaction_type=tx_in.transaction_type,
                amount=tx_in.amount,
                description=tx_in.description,
                transaction_date=tx_date,
                status=TransactionStatus.pending if pending else TransactionStatus.completed,
                is_recurring=interval is not None,
                recurring_interval=interval,
                next_recurring_date=add_interval(tx_date, interval) if interval else None,
                created_at=now,
                updated_at=now,
            )
            db.add(tx)

            warning = None
            if not pending:
                warning = await _apply_effects(db, tx, account, category, now)

        logger.info(f"Transaction {tx.id} created for user {user_id}: {tx.transaction_type.value} {tx.amount} ({tx.status.value})")
        return TransactionOutcome(transaction=tx, budget_warning=warning)


async def update_transaction(
    db: AsyncSession,
    user_id: uuid.UUID,
    tx: Transaction,
    tx_in: TransactionUpdate,
    now: Optional[datetime] = None,
) -> TransactionOutcome:
    now = now or utcnow()
    data = tx_in.model_dump(exclude_unset=True)

    if "transaction_date" in data:
        raise ImmutableField("Transaction date cannot be changed", field="transaction_date")
    if tx.goal_id is not None:
        for field in GOAL_LOCKED_FIELDS:
            if data.get(field) is not None and data[field] != getattr(tx, field):
                raise ImmutableField(f"Goal contribution field {field} cannot be changed", field=field)

    tx_id = tx.id
    old_account_id, old_category_id = tx.account_id, tx.category_id
    new_category_id = data.get("category_id") or old_category_id
    if data.get("account_id") is not None:
        new_account_id = await resolve_account_id(db, user_id, data["account_id"])
    else:
        new_account_id = old_account_id

    async with ledger_locks.hold(
        account_key(old_account_id),
        account_key(new_account_id),
        budget_key(user_id, old_category_id),
        budget_key(user_id, new_category_id),
    ):
        async with unit_of_work(db):
            tx = await get_transaction_for_update(tx_id, db)
            if tx is None or tx.user_id != user_id:
                raise TransactionNotFound(transaction_id=tx_id)

            await _revert_effects(db, tx, strict=True)

            account = await load_account(db, new_account_id, user_id)
            category = await load_category(db, new_category_id, user_id)

            if "description" in data:
                tx.description = data["description"]
            if data.get("amount") is not None:
                tx.amount = data["amount"]
            if data.get("transaction_type") is not None:
                tx.transaction_type = data["transaction_type"]
            tx.account_id = new_account_id
            tx.category_id = new_category_id

            _check_category_type(category, tx.transaction_type)

            if "is_recurring" in data or "recurring_interval" in data:
                is_recurring = data.get("is_recurring")
                if is_recurring is None:
                    is_recurring = tx.is_recurring
                if is_recurring:
                    interval = parse_interval(data.get("recurring_interval") or tx.recurring_interval)
                    base = max(tx.transaction_date, start_of_day(now))
                    tx.recurring_interval = interval
                    tx.next_recurring_date = add_interval(base, interval)
                else:
                    tx.recurring_interval = None
                    tx.next_recurring_date = None
                tx.is_recurring = is_recurring

            warning = None
            if is_future_day(tx.transaction_date, now):
                tx.status = TransactionStatus.pending
            else:
                warning = await _apply_effects(
                    db, tx, account, category, now, track_budget=tx.goal_id is None
                )
            tx.updated_at = now

        logger.info(f"Transaction {tx.id} updated for user {user_id}")
        return TransactionOutcome(transaction=tx, budget_warning=warning)


async def delete_transaction(db: AsyncSession, user_id: uuid.UUID, tx: Transaction) -> None:
    if tx.goal_id is not None:
        raise ImmutableField("Goal contributions are removed together with their goal", field="goal_id")

    tx_id = tx.id
    async with ledger_locks.hold(account_key(tx.account_id), budget_key(user_id, tx.category_id)):
        async with unit_of_work(db):
            tx = await get_transaction_for_update(tx_id, db)
            if tx is None or tx.user_id != user_id:
                raise TransactionNotFound(transaction_id=tx_id)
            await _revert_effects(db, tx, strict=False)
            await detach_recurring_children(tx.id, db)
            await db.delete(tx)
    logger.info(f"Transaction {tx_id} deleted for user {user_id}")


async def settle_pending_transaction(
    db: AsyncSession, transaction_id: uuid.UUID, now: datetime
) -> Optional[TransactionStatus]:
    """
    Make the single settlement attempt for a due pending transaction.

    Returns the resulting status, or None when the row was no longer due or
    another worker holds it. A ledger rejection marks the transaction failed
    for good; it is never retried.
    """
    peek = await get_transaction_for_update(transaction_id, db, lock=False)
    if peek is None or peek.status != TransactionStatus.pending:
        return None

    async with ledger_locks.hold(account_key(peek.account_id), budget_key(peek.user_id, peek.category_id)):
        async with unit_of_work(db):
            tx = await get_transaction_for_update(transaction_id, db, skip_locked=True)
            if tx is None or tx.status != TransactionStatus.pending or tx.transaction_date > now:
                return None

            try:
                account = await load_account(db, tx.account_id, tx.user_id)
                category = await load_category(db, tx.category_id, tx.user_id)
                await _apply_effects(db, tx, account, category, now)
            except LedgerError as exc:
                # Checks run before any mutation, so nothing needs undoing here
                tx.status = TransactionStatus.failed
                tx.failure_reason = exc.code
                await notify_settlement_failed(db, tx.user_id, tx.id, tx.amount, exc.message)
                logger.warning(f"Pending transaction {tx.id} failed to settle: {exc.code}")
            tx.last_processed = now
            tx.updated_at = now
        return tx.status


async def spawn_recurring_transaction(
    db: AsyncSession, template_id: uuid.UUID, now: datetime
) -> Optional[Transaction]:
    """
    Create today's completed occurrence of a due recurring template.

    Any rejection propagates and rolls back the whole unit, leaving the
    template's next_recurring_date untouched so the next tick retries it.
    """
    peek = await get_transaction_for_update(template_id, db, lock=False)
    if peek is None or not peek.is_recurring or peek.next_recurring_date is None:
        return None

    async with ledger_locks.hold(account_key(peek.account_id), budget_key(peek.user_id, peek.category_id)):
        async with unit_of_work(db):
            template = await get_transaction_for_update(template_id, db, skip_locked=True)
            if (
                template is None
                or not template.is_recurring
                or template.next_recurring_date is None
                or template.next_recurring_date > now
            ):
                return None

            today = start_of_day(now)
            interval = parse_interval(template.recurring_interval)
            account = await load_account(db, template.account_id, template.user_id)
            category = await load_category(db, template.category_id, template.user_id)
            _check_category_type(category, template.transaction_type)

            child = Transaction(
                id=uuid.uuid4(),
                user_id=template.user_id,
                account_id=template.account_id,
                category_id=template.category_id,
                transaction_type=template.transaction_type,
                amount=template.amount,
                description=template.description,
                transaction_date=today,
                status=TransactionStatus.completed,
                is_recurring=False,
                recurring_parent_id=template.id,
                last_processed=now,
                created_at=now,
                updated_at=now,
            )
            db.add(child)
            await _apply_effects(db, child, account, category, now)

            template.next_recurring_date = add_interval(today, interval)
            template.last_processed = now
            template.updated_at = now

        logger.info(f"Recurring transaction {template_id} spawned {child.id}; next run {template.next_recurring_date}")
        return child
