"""Background workers for the FNE certification service"""
from .snapshot_repairer import SnapshotRepairWorker

__all__ = ["SnapshotRepairWorker"]
