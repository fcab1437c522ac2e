"""
Sync checkpoints — where the next remote fetch starts.

The default is derived from the store: the composed_at of the newest uploaded
record. `PersistedCheckpoint` keeps the older behaviour of storing the time of
the last successful fetch on disk.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from treetracker_messaging.store import messages as store
from treetracker_messaging.store.database import Database
from treetracker_messaging.timestamps import DISTANT_PAST, as_utc, utcnow

logger = logging.getLogger(__name__)

LAST_SYNC_TIME_KEY = "lastSyncTime"


def latest_checkpoint(database: Database, partition_key: str) -> datetime:
    with database.session() as db:
        newest = store.latest_uploaded(db, partition_key)
        if newest is None:
            return DISTANT_PAST
        return as_utc(newest.composed_at)


class DerivedCheckpoint:
    def __init__(self, database: Database):
        self._database = database

    def since(self, partition_key: str) -> datetime:
        return latest_checkpoint(self._database, partition_key)

    def mark_synced(self, partition_key: str, when: datetime) -> None:
        pass


class LastSyncTimeStore:
    """JSON file holding the last sync time, keyed per partition."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()

    def _load(self) -> dict:
        try:
            return json.loads(self._path.read_text())
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable sync state file %s", self._path)
            return {}

    def get_last_sync_time(self, partition_key: str) -> Optional[datetime]:
        raw = self._load().get(partition_key, {}).get(LAST_SYNC_TIME_KEY)
        if not raw:
            return None
        try:
            return as_utc(datetime.fromisoformat(raw))
        except ValueError:
            logger.warning("Ignoring invalid %s %r for %s", LAST_SYNC_TIME_KEY, raw, partition_key)
            return None

    def update_last_sync_time(self, partition_key: str, when: Optional[datetime] = None) -> None:
        state = self._load()
        state.setdefault(partition_key, {})[LAST_SYNC_TIME_KEY] = as_utc(when or utcnow()).isoformat()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(state, indent=2))


class PersistedCheckpoint:
    """Checkpoint read from a `LastSyncTimeStore`, falling back to the derived value."""

    def __init__(self, state: LastSyncTimeStore, database: Database):
        self._state = state
        self._derived = DerivedCheckpoint(database)

    def since(self, partition_key: str) -> datetime:
        stored = self._state.get_last_sync_time(partition_key)
        if stored is None:
            return self._derived.since(partition_key)
        return stored

    def mark_synced(self, partition_key: str, when: datetime) -> None:
        self._state.update_last_sync_time(partition_key, when)
