"""Unit tests for SnapshotRepairWorker

Tests cover:
- Worker initialization with configuration
- run_once over every active company or a single tenant
- Repair disabled scenario
- Failed tenants skipped without stopping the run
- Shutdown and cleanup
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from src.app.use_cases.invoicing.dtos import RepairResultDTO
from src.domain.company import Company
from src.worker.snapshot_repairer import SnapshotRepairWorker


def make_session_factory():
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=session)


def repair_result(tenant_id: str, repaired: int = 0, unrecoverable=None) -> RepairResultDTO:
    return RepairResultDTO(
        tenant_id=tenant_id,
        invoices_checked=5,
        invoices_repaired=repaired,
        repaired_invoice_ids=list(range(repaired)),
        unrecoverable_invoice_ids=unrecoverable or [],
        execution_time_ms=12,
    )


def ok(value):
    result = MagicMock()
    result.is_err.return_value = False
    result.value = value
    return result


class TestSnapshotRepairWorkerInit:
    @patch("src.worker.snapshot_repairer.ApplicationConfig")
    @patch("src.worker.snapshot_repairer.create_async_engine")
    def test_initializes_with_default_config(self, mock_create_engine, mock_app_config):
        mock_app_config.DB_URI = "postgresql+asyncpg://default@localhost/fne"
        mock_create_engine.return_value = MagicMock()

        worker = SnapshotRepairWorker()

        assert worker.db_uri == "postgresql+asyncpg://default@localhost/fne"
        assert worker.batch_size == 100
        mock_create_engine.assert_called_once()

    @patch("src.worker.snapshot_repairer.create_async_engine")
    def test_initializes_with_custom_values(self, mock_create_engine):
        mock_create_engine.return_value = MagicMock()

        worker = SnapshotRepairWorker(db_uri="sqlite+aiosqlite:///fne.db", batch_size=20)

        assert worker.db_uri == "sqlite+aiosqlite:///fne.db"
        assert worker.batch_size == 20


@pytest.mark.asyncio
class TestSnapshotRepairWorkerRunOnce:
    @patch("src.worker.snapshot_repairer.ApplicationConfig")
    @patch("src.worker.snapshot_repairer.RepairReceivedItems")
    @patch("src.worker.snapshot_repairer.SqlAlchemyCompanyRepository")
    @patch("src.worker.snapshot_repairer.create_async_engine")
    @patch("src.worker.snapshot_repairer.sessionmaker")
    async def test_repairs_every_active_company(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_company_repo_class,
        mock_use_case_class,
        mock_app_config,
    ):
        """
        Given: Two active companies
        When: run_once is called without a tenant
        Then: The repair runs once per tenant and both results are returned
        """
        # Arrange
        mock_app_config.DB_URI = "postgresql+asyncpg://test@localhost/db"
        mock_app_config.SNAPSHOT_REPAIR_ENABLED = True
        mock_sessionmaker.return_value = make_session_factory()
        mock_create_engine.return_value = MagicMock()

        company_repo = MagicMock()
        company_repo.get_active = AsyncMock(
            return_value=[
                Company(id=1, tenant_id="tenant_a", name="A", fne_token="a"),
                Company(id=2, tenant_id="tenant_b", name="B", fne_token="b"),
            ]
        )
        mock_company_repo_class.return_value = company_repo

        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(
            side_effect=[ok(repair_result("tenant_a", repaired=2)), ok(repair_result("tenant_b"))]
        )
        mock_use_case_class.return_value = mock_use_case

        # Act
        worker = SnapshotRepairWorker(batch_size=50)
        results = await worker.run_once()

        # Assert
        assert [r.tenant_id for r in results] == ["tenant_a", "tenant_b"]
        assert results[0].invoices_repaired == 2
        assert mock_use_case.execute.call_count == 2
        assert mock_use_case.execute.call_args_list[0].args == ("tenant_a",)
        assert mock_use_case.execute.call_args_list[0].kwargs == {"batch_size": 50}

    @patch("src.worker.snapshot_repairer.ApplicationConfig")
    @patch("src.worker.snapshot_repairer.RepairReceivedItems")
    @patch("src.worker.snapshot_repairer.SqlAlchemyCompanyRepository")
    @patch("src.worker.snapshot_repairer.create_async_engine")
    @patch("src.worker.snapshot_repairer.sessionmaker")
    async def test_single_tenant_skips_company_lookup(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_company_repo_class,
        mock_use_case_class,
        mock_app_config,
    ):
        mock_app_config.SNAPSHOT_REPAIR_ENABLED = True
        mock_sessionmaker.return_value = make_session_factory()
        mock_create_engine.return_value = MagicMock()
        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(return_value=ok(repair_result("tenant_x", unrecoverable=[9])))
        mock_use_case_class.return_value = mock_use_case

        worker = SnapshotRepairWorker(db_uri="sqlite+aiosqlite:///fne.db")
        results = await worker.run_once(tenant_id="tenant_x")

        assert results[0].unrecoverable_invoice_ids == [9]
        mock_company_repo_class.assert_not_called()

    @patch("src.worker.snapshot_repairer.ApplicationConfig")
    @patch("src.worker.snapshot_repairer.create_async_engine")
    async def test_skips_when_disabled(self, mock_create_engine, mock_app_config):
        """
        Given: Snapshot repair is disabled
        When: run_once is called
        Then: Nothing runs and an empty list is returned
        """
        mock_app_config.DB_URI = "postgresql+asyncpg://test@localhost/db"
        mock_app_config.SNAPSHOT_REPAIR_ENABLED = False
        mock_create_engine.return_value = MagicMock()

        worker = SnapshotRepairWorker()
        results = await worker.run_once()

        assert results == []

    @patch("src.worker.snapshot_repairer.ApplicationConfig")
    @patch("src.worker.snapshot_repairer.RepairReceivedItems")
    @patch("src.worker.snapshot_repairer.create_async_engine")
    @patch("src.worker.snapshot_repairer.sessionmaker")
    async def test_failed_tenant_is_skipped(
        self, mock_sessionmaker, mock_create_engine, mock_use_case_class, mock_app_config
    ):
        mock_app_config.SNAPSHOT_REPAIR_ENABLED = True
        mock_sessionmaker.return_value = make_session_factory()
        mock_create_engine.return_value = MagicMock()

        failed = MagicMock()
        failed.is_err.return_value = True
        failed.error.message = "Failed to repair received items"
        failed.error.reason = "db gone"
        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(return_value=failed)
        mock_use_case_class.return_value = mock_use_case

        worker = SnapshotRepairWorker()
        results = await worker.run_once(tenant_id="tenant_a")

        assert results == []


@pytest.mark.asyncio
class TestSnapshotRepairWorkerShutdown:
    @patch("src.worker.snapshot_repairer.create_async_engine")
    async def test_shutdown_disposes_engine(self, mock_create_engine):
        engine = MagicMock()
        engine.dispose = AsyncMock()
        mock_create_engine.return_value = engine

        worker = SnapshotRepairWorker(db_uri="sqlite+aiosqlite:///fne.db")
        await worker.shutdown()

        engine.dispose.assert_called_once()
