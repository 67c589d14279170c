"""Invoice reconciliation worker

Audits every invoice against the payment ledger on a fixed schedule:

    python -m src.worker.invoice_reconciler --once
    python -m src.worker.invoice_reconciler --interval 3600

Without --interval the schedule comes from RECONCILIATION_INTERVAL_SECONDS.
Discrepancies are reported through logging only; nothing is repaired.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from src.app.use_cases.billing import ReconcileInvoices
from src.app.use_cases.billing.dtos import ReconciliationResultDTO
from src.depends import build_engine

logger = logging.getLogger(__name__)


def _skipped_result() -> ReconciliationResultDTO:
    return ReconciliationResultDTO(
        total_invoices_checked=0,
        discrepancies_found=0,
        discrepancies=[],
        reconciliation_time=datetime.utcnow(),
        execution_time_ms=0,
    )


def summarize(result: ReconciliationResultDTO) -> List[str]:
    """Human readable lines describing one reconciliation pass"""
    lines = [
        f"invoices checked: {result.total_invoices_checked}",
        f"discrepancies:    {result.discrepancies_found}",
        f"duration:         {result.execution_time_ms}ms",
    ]
    for d in result.discrepancies:
        lines.append(
            f"  {d.invoice_number} (id={d.invoice_id}) {d.check}: "
            f"expected {d.expected}, found {d.actual}"
        )
    return lines


class InvoiceReconcilerWorker:
    """
    Runs ReconcileInvoices in its own session, once or on a schedule.

    A failed pass is logged and retried on the next tick; the loop only
    ends when cancelled or interrupted.
    """

    def __init__(self, db_uri: Optional[str] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.engine = build_engine(self.db_uri, ApplicationConfig.DB_BUSY_TIMEOUT_SECONDS)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )
        logger.info("Invoice reconciler ready")

    async def run_once(self) -> ReconciliationResultDTO:
        """
        Reconcile all invoices a single time

        Raises:
            RuntimeError: If the reconciliation use case returns an error
        """
        if not ApplicationConfig.RECONCILIATION_ENABLED:
            logger.info("RECONCILIATION_ENABLED is off; pass skipped")
            return _skipped_result()

        async with self.async_session_factory() as session:
            result = await ReconcileInvoices(
                invoice_repo=SqlAlchemyInvoiceRepository(session),
                payment_repo=SqlAlchemyPaymentRepository(session),
            ).execute()

        if result.is_err():
            logger.error(f"Invoice reconciliation error {result.error.code}: {result.error.message}")
            raise RuntimeError(f"Reconciliation failed: {result.error.message}")

        self._report(result.value)
        return result.value

    def _report(self, report: ReconciliationResultDTO):
        if not report.discrepancies_found:
            return
        logger.error(
            f"{report.discrepancies_found} invoice(s) disagree with the payment ledger"
        )
        for d in report.discrepancies:
            logger.error(
                f"Invoice {d.invoice_number} (invoice_id={d.invoice_id}) failed "
                f"{d.check}: expected={d.expected}, actual={d.actual}"
            )

    async def run_forever(self, interval_seconds: int = 86400):
        """
        Reconcile every interval_seconds until cancelled

        Args:
            interval_seconds: Pause between the end of one pass and the next
        """
        logger.info(f"Invoice reconciler scheduled every {interval_seconds}s")

        passes = 0
        while True:
            passes += 1
            try:
                report = await self.run_once()
            except Exception as e:
                logger.error(f"Reconciliation pass {passes} failed: {e}")
            else:
                logger.info(
                    f"Reconciliation pass {passes}: "
                    f"{report.total_invoices_checked} checked, "
                    f"{report.discrepancies_found} discrepancies, "
                    f"{report.execution_time_ms}ms"
                )
            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("Invoice reconciler stopped")


async def main():
    import argparse

    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Reconcile invoices against recorded payments")
    parser.add_argument("--once", action="store_true", help="Run a single pass and exit")
    parser.add_argument(
        "--interval",
        type=int,
        default=ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS,
        help="Seconds between passes when running continuously",
    )
    args = parser.parse_args()

    worker = InvoiceReconcilerWorker()
    try:
        if args.once:
            print("\n".join(summarize(await worker.run_once())))
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
