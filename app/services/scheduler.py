"""
Batch Settlement Scheduler.

One background task wakes every ``interval_seconds`` and runs three sweeps in
order: due pending transactions, due recurring templates, due goal
installments. Each record is handled in a fresh session so one bad row never
blocks the rest of its sweep.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import AsyncSessionLocal
from app.core.db_utils import with_db_retry
from app.core.errors import ConcurrentModification, LedgerError
from app.crud.goal import get_due_goal_ids
from app.crud.transaction import get_due_pending_ids, get_due_recurring_ids
from app.models.transaction import TransactionStatus
from app.services.goals import process_installment
from app.services.transactions import settle_pending_transaction, spawn_recurring_transaction
from app.utils.intervals import utcnow

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    started_at: datetime
    settled: int = 0
    failed: int = 0
    spawned: int = 0
    installments: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    ran: bool = True


class SettlementScheduler:
    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        interval_seconds: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds or settings.SCHEDULER_INTERVAL_SECONDS
        self._tick_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @with_db_retry()
    async def _due_ids(self, query, now: datetime):
        async with self.session_factory() as db:
            return await query(now, db)

    async def run_tick(self, now: Optional[datetime] = None) -> TickReport:
        """Run one pass over all three sweeps. Skipped if a tick is already in flight."""
        now = now or utcnow()
        report = TickReport(started_at=now)
        if self._tick_lock.locked():
            logger.info("Previous settlement tick still running; skipping")
            report.ran = False
            return report

        async with self._tick_lock:
            await self._pending_sweep(now, report)
            await self._recurring_sweep(now, report)
            await self._goal_sweep(now, report)

        logger.info(
            f"Settlement tick done: settled={report.settled} failed={report.failed} "
            f"spawned={report.spawned} installments={report.installments} "
            f"skipped={report.skipped} errors={len(report.errors)}"
        )
        return report

    async def _pending_sweep(self, now: datetime, report: TickReport) -> None:
        for tx_id in await self._due_ids(get_due_pending_ids, now):
            try:
                async with self.session_factory() as db:
                    status = await settle_pending_transaction(db, tx_id, now)
            except ConcurrentModification:
                report.skipped += 1
                logger.info(f"Pending transaction {tx_id} changed concurrently; retrying next tick")
                continue
            except Exception as e:
                report.errors.append(str(tx_id))
                logger.exception(f"Error settling pending transaction {tx_id}: {str(e)}")
                continue

            if status == TransactionStatus.completed:
                report.settled += 1
            elif status == TransactionStatus.failed:
                report.failed += 1
            else:
                report.skipped += 1

    async def _recurring_sweep(self, now: datetime, report: TickReport) -> None:
        for template_id in await self._due_ids(get_due_recurring_ids, now):
            try:
                async with self.session_factory() as db:
                    child = await spawn_recurring_transaction(db, template_id, now)
            except LedgerError as e:
                # Template is left as it was and comes up again next tick
                report.skipped += 1
                logger.warning(f"Recurring transaction {template_id} not spawned: {e.code}")
                continue
            except Exception as e:
                report.errors.append(str(template_id))
                logger.exception(f"Error spawning recurring transaction {template_id}: {str(e)}")
                continue

            if child is not None:
                report.spawned += 1
            else:
                report.skipped += 1

    async def _goal_sweep(self, now: datetime, report: TickReport) -> None:
        for goal_id in await self._due_ids(get_due_goal_ids, now):
            try:
                async with self.session_factory() as db:
                    goal = await process_installment(db, goal_id, now)
            except LedgerError as e:
                report.skipped += 1
                logger.warning(f"Goal {goal_id} installment not taken: {e.code}")
                continue
            except Exception as e:
                report.errors.append(str(goal_id))
                logger.exception(f"Error processing goal {goal_id}: {str(e)}")
                continue

            if goal is not None:
                report.installments += 1
            else:
                report.skipped += 1

    async def _loop(self) -> None:
        logger.info(f"Settlement scheduler started, every {self.interval_seconds}s")
        while not self._stopping.is_set():
            try:
                await self.run_tick()
            except Exception as e:
                logger.exception(f"Settlement tick failed: {str(e)}")
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info("Settlement scheduler stopped")

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Stop after the in-flight tick, if any, has finished."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None


scheduler = SettlementScheduler()
