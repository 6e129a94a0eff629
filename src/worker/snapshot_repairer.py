"""Received Items Snapshot Repair Worker

Rebuilds empty or malformed FNE item snapshots of certified invoices from
their certification logs, so that they can be refunded again. Can be run as a
standalone script or integrated with a scheduler.
"""

import asyncio
import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.repositories.invoice_item_repository import SqlAlchemyInvoiceItemRepository
from src.adapter.repositories.invoice_log_repository import SqlAlchemyInvoiceLogRepository
from src.adapter.repositories.received_item_repository import SqlAlchemyReceivedItemRepository
from src.adapter.repositories.tenant_repositories import SqlAlchemyCompanyRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.invoicing import FneReconciliation, RepairReceivedItems, RepairResultDTO

logger = logging.getLogger(__name__)


class SnapshotRepairWorker:
    """
    Background worker for received items snapshot repair

    Features:
    - Walks every active company, or a single tenant
    - Repairs each tenant in its own session
    - Can run once or continuously
    - Configurable interval (default: daily)

    Usage:
        worker = SnapshotRepairWorker()
        results = await worker.run_once()
        await worker.run_forever(interval_seconds=86400)
    """

    def __init__(self, db_uri: Optional[str] = None, batch_size: int = 100):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            batch_size: Invoices loaded per page
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.batch_size = batch_size

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("SnapshotRepairWorker initialized")

    async def run_once(self, tenant_id: Optional[str] = None) -> List[RepairResultDTO]:
        """
        Run the repair once

        Args:
            tenant_id: Restrict the run to one tenant (default: every active company)

        Returns:
            One RepairResultDTO per tenant processed
        """
        if not ApplicationConfig.SNAPSHOT_REPAIR_ENABLED:
            logger.info("Snapshot repair is disabled, skipping")
            return []

        if tenant_id:
            tenant_ids = [tenant_id]
        else:
            async with self.async_session_factory() as session:
                companies = await SqlAlchemyCompanyRepository(session).get_active()
                tenant_ids = [company.tenant_id for company in companies]

        results = []
        for current_tenant_id in tenant_ids:
            async with self.async_session_factory() as session:
                uow = SqlAlchemyUnitOfWork(session)
                received_item_repo = SqlAlchemyReceivedItemRepository(session)
                reconciliation = FneReconciliation(
                    uow, SqlAlchemyInvoiceItemRepository(session), received_item_repo
                )
                use_case = RepairReceivedItems(
                    uow=uow,
                    invoice_repo=SqlAlchemyInvoiceRepository(session),
                    received_item_repo=received_item_repo,
                    log_repo=SqlAlchemyInvoiceLogRepository(session),
                    reconciliation=reconciliation,
                )

                result = await use_case.execute(current_tenant_id, batch_size=self.batch_size)

                if result.is_err():
                    logger.error(
                        f"Snapshot repair failed for tenant {current_tenant_id}: "
                        f"{result.error.message} ({result.error.reason})"
                    )
                    continue

                response = result.value
                if response.unrecoverable_invoice_ids:
                    logger.error(
                        f"ALERT: tenant {current_tenant_id} has "
                        f"{len(response.unrecoverable_invoice_ids)} invoices that must be "
                        f"re-certified: {response.unrecoverable_invoice_ids}"
                    )
                results.append(response)

        return results

    async def run_forever(self, interval_seconds: int = 86400):
        """
        Run the repair continuously at specified interval

        Args:
            interval_seconds: Seconds between runs (default: 24 hours)
        """
        logger.info(f"Starting continuous snapshot repair with {interval_seconds}s interval")

        while True:
            try:
                results = await self.run_once()
                repaired = sum(r.invoices_repaired for r in results)
                logger.info(
                    f"Snapshot repair cycle complete. "
                    f"{len(results)} tenants, {repaired} invoices repaired"
                )
            except Exception as e:
                logger.error(f"Snapshot repair cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("SnapshotRepairWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once for every active company
        python -m src.worker.snapshot_repairer --once

        # Run once for one tenant
        python -m src.worker.snapshot_repairer --once --tenant TENANT_UID

        # Run continuously with custom interval (in seconds)
        python -m src.worker.snapshot_repairer --interval 3600
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Received Items Snapshot Repair Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument("--tenant", default=None, help="Only repair this tenant")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.SNAPSHOT_REPAIR_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 86400 = 24 hours)"
    )
    args = parser.parse_args()

    worker = SnapshotRepairWorker()

    try:
        if args.once:
            results = await worker.run_once(tenant_id=args.tenant)
            print("Snapshot repair complete:")
            for r in results:
                print(
                    f"  - Tenant {r.tenant_id}: checked={r.invoices_checked}, "
                    f"repaired={r.invoices_repaired}, "
                    f"unrecoverable={r.unrecoverable_invoice_ids}"
                )
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
