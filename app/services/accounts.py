"""
Account management.

Keeps exactly one default account per user once any account exists. Every
change to the default flag holds the user's accounts lock, and balance edits
go through the ledger like any other movement of money.
"""
import logging
import uuid
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db_utils import unit_of_work
from app.core.errors import AccountNotFound, DefaultAccountRequired, DuplicateSlug, ResourceInUse
from app.core.locks import account_key, ledger_locks, user_accounts_key
from app.crud.account import (
    count_account_references,
    get_account_by_slug,
    get_account_for_update,
    get_accounts_for_user,
)
from app.models.account import Account
from app.schemas.account import AccountCreate, AccountUpdate
from app.services import ledger
from app.utils.intervals import utcnow
from app.utils.slugs import slugify

logger = logging.getLogger(__name__)


async def _check_slug(db: AsyncSession, user_id: uuid.UUID, name: str, account_id=None) -> str:
    slug = slugify(name)
    existing = await get_account_by_slug(slug, user_id, db)
    if existing is not None and existing.id != account_id:
        raise DuplicateSlug("Account name already exists", slug=slug)
    return slug


async def _clear_default(db: AsyncSession, user_id: uuid.UUID, keep_id: uuid.UUID) -> None:
    for other in await get_accounts_for_user(user_id, db):
        if other.id != keep_id and other.is_default:
            other.is_default = False
            other.updated_at = utcnow()


async def create_account(db: AsyncSession, user_id: uuid.UUID, account_in: AccountCreate) -> Account:
    async with ledger_locks.hold(user_accounts_key(user_id)):
        async with unit_of_work(db):
            slug = await _check_slug(db, user_id, account_in.name)
            first = not await get_accounts_for_user(user_id, db)
            now = utcnow()
            account = Account(
                id=uuid.uuid4(),
                user_id=user_id,
                name=account_in.name,
                slug=slug,
                account_type=account_in.account_type,
                balance=Decimal("0.00"),
                is_default=account_in.is_default or first,
                created_at=now,
                updated_at=now,
            )
            if account.is_default:
                await _clear_default(db, user_id, account.id)
            ledger.credit(account, account_in.balance)
            db.add(account)
        logger.info(f"Account {account.id} created for user {user_id} (default={account.is_default})")
        return account


async def update_account(db: AsyncSession, user_id: uuid.UUID, account: Account, account_in: AccountUpdate) -> Account:
    data = account_in.model_dump(exclude_unset=True)
    account_id = account.id

    async with ledger_locks.hold(user_accounts_key(user_id), account_key(account_id)):
        async with unit_of_work(db):
            account = await get_account_for_update(account_id, db, user_id=user_id)
            if account is None:
                raise AccountNotFound(account_id=account_id)

            if data.get("name") and data["name"] != account.name:
                account.slug = await _check_slug(db, user_id, data["name"], account.id)
                account.name = data["name"]
            if data.get("account_type") is not None:
                account.account_type = data["account_type"]

            if data.get("is_default") is True and not account.is_default:
                await _clear_default(db, user_id, account.id)
                account.is_default = True
            elif data.get("is_default") is False and account.is_default:
                raise DefaultAccountRequired("Set another account as default instead", account_id=account.id)

            if data.get("balance") is not None:
                delta = data["balance"] - account.balance
                if delta > 0:
                    ledger.credit(account, delta)
                elif delta < 0:
                    ledger.debit(account, -delta)

            account.updated_at = utcnow()
        return account


async def delete_account(db: AsyncSession, user_id: uuid.UUID, account: Account) -> None:
    account_id = account.id
    async with ledger_locks.hold(user_accounts_key(user_id), account_key(account_id)):
        async with unit_of_work(db):
            account = await get_account_for_update(account_id, db, user_id=user_id)
            if account is None:
                raise AccountNotFound(account_id=account_id)
            if await count_account_references(account.id, db):
                raise ResourceInUse("Account has transactions or goals", account_id=account.id)

            others = [a for a in await get_accounts_for_user(user_id, db) if a.id != account.id]
            if account.is_default and others:
                raise DefaultAccountRequired(
                    "Set another account as default before deleting this one", account_id=account.id
                )
            await db.delete(account)

            if others and not any(a.is_default for a in others):
                oldest = others[0]
                oldest.is_default = True
                oldest.updated_at = utcnow()
                logger.warning(f"User {user_id} had no default account; promoted {oldest.id}")
    logger.info(f"Account {account_id} deleted for user {user_id}")
