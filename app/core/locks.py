"""
In-process serialization of ledger mutations.

Every operation that reads-then-writes an account balance or a budget's
remaining limit holds the matching keys for the whole unit of work, so an API
request and a scheduler tick never interleave their check and apply steps on
the same counter. Cross-process safety comes from the version columns on
Account and Budget.
"""
import asyncio
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional


def account_key(account_id: Optional[uuid.UUID]) -> Optional[str]:
    return f"account:{account_id}" if account_id else None


def budget_key(user_id: uuid.UUID, category_id: Optional[uuid.UUID]) -> Optional[str]:
    return f"budget:{user_id}:{category_id}" if category_id else None


def user_accounts_key(user_id: uuid.UUID) -> str:
    """Guards the one-default-account rule across a user's accounts."""
    return f"accounts:{user_id}"


class KeyedLock:
    """A registry of asyncio locks created on demand and dropped when idle."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}

    def _checkout(self, key: str) -> asyncio.Lock:
        self._holders[key] = self._holders.get(key, 0) + 1
        return self._locks.setdefault(key, asyncio.Lock())

    def _checkin(self, key: str) -> None:
        self._holders[key] -= 1
        if self._holders[key] == 0:
            del self._holders[key]
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, *keys: Optional[str]) -> AsyncIterator[None]:
        # Sorted acquisition keeps two multi-key holders from deadlocking
        ordered = sorted({k for k in keys if k})
        acquired = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                try:
                    await lock.acquire()
                except BaseException:
                    self._checkin(key)
                    raise
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)

    def held_keys(self) -> List[str]:
        return [k for k, lock in self._locks.items() if lock.locked()]


ledger_locks = KeyedLock()
