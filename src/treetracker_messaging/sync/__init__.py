"""
Sync core: checkpoint → paginated fetch + reconcile → sequential upload.
"""

from treetracker_messaging.sync.checkpoint import (
    DerivedCheckpoint,
    LastSyncTimeStore,
    PersistedCheckpoint,
    latest_checkpoint,
)
from treetracker_messaging.sync.pagination import PaginationWalker, WalkSummary
from treetracker_messaging.sync.reconciler import Reconciler, pair_surveys
from treetracker_messaging.sync.result import SyncResult
from treetracker_messaging.sync.uploader import Uploader

__all__ = [
    "DerivedCheckpoint",
    "LastSyncTimeStore",
    "PersistedCheckpoint",
    "latest_checkpoint",
    "PaginationWalker",
    "WalkSummary",
    "Reconciler",
    "pair_surveys",
    "SyncResult",
    "Uploader",
]
