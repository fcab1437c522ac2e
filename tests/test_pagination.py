"""PaginationWalker and checkpoints."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from treetracker_messaging.errors import MissingIdentifierError, TransportError
from treetracker_messaging.store import messages as store
from treetracker_messaging.sync.checkpoint import (
    DerivedCheckpoint,
    LastSyncTimeStore,
    PersistedCheckpoint,
    latest_checkpoint,
)
from treetracker_messaging.sync.pagination import PaginationWalker
from treetracker_messaging.sync.reconciler import Reconciler
from treetracker_messaging.timestamps import DISTANT_PAST

BASE_TIME = datetime(2023, 4, 3, 10, 0, tzinfo=timezone.utc)  # matches make_message


def _walker(database, api, checkpoints=None, page_limit=50):
    return PaginationWalker(api, Reconciler(database), checkpoints or DerivedCheckpoint(database), page_limit)


class TestCheckpoint:
    def test_empty_store_is_distant_past(self, database, partition):
        assert latest_checkpoint(database, partition.key) == DISTANT_PAST

    def test_newest_uploaded_record_wins(self, database, partition, make_message):
        with database.session() as db:
            store.add_records(db, [
                store.build_record(make_message("old", 1), partition.key, uploaded=True, unread=True),
                store.build_record(make_message("new", 9), partition.key, uploaded=True, unread=True),
                store.build_record(make_message("local", 60), partition.key, uploaded=False, unread=False),
            ])

        assert latest_checkpoint(database, partition.key) == BASE_TIME + timedelta(minutes=9)

    def test_checkpoint_is_timezone_aware(self, database, partition, make_message):
        Reconciler(database).reconcile(partition, [make_message("m1")])
        assert latest_checkpoint(database, partition.key).tzinfo is not None

    def test_last_sync_time_store_round_trip(self, tmp_path):
        state = LastSyncTimeStore(tmp_path / "state.json")
        assert state.get_last_sync_time("p") is None

        state.update_last_sync_time("p", BASE_TIME)

        assert state.get_last_sync_time("p") == BASE_TIME
        assert state.get_last_sync_time("other") is None

    def test_unreadable_state_file_is_ignored(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json")
        assert LastSyncTimeStore(path).get_last_sync_time("p") is None

    def test_persisted_falls_back_to_derived(self, tmp_path, database, partition, make_message):
        Reconciler(database).reconcile(partition, [make_message("m1", 3)])
        checkpoints = PersistedCheckpoint(LastSyncTimeStore(tmp_path / "state.json"), database)

        assert checkpoints.since(partition.key) == BASE_TIME + timedelta(minutes=3)

        checkpoints.mark_synced(partition.key, BASE_TIME + timedelta(days=1))
        assert checkpoints.since(partition.key) == BASE_TIME + timedelta(days=1)


class TestPaginationWalker:
    @pytest.mark.asyncio
    async def test_follows_next_until_exhausted(self, database, partition, fake_api, make_message, make_page):
        fake_api.first_page = make_page([make_message("m1", 1), make_message("m2", 2)], next="p2")
        fake_api.pages["p2"] = make_page([make_message("m3", 3)], next="p3")
        fake_api.pages["p3"] = make_page([])

        summary = await _walker(database, fake_api, page_limit=2).drain_all(partition)

        assert (summary.pages, summary.fetched, summary.inserted) == (3, 3, 3)
        assert fake_api.next_calls == ["p2", "p3"]
        assert fake_api.fetch_calls == [{"handle": "joe", "since": DISTANT_PAST, "limit": 2}]

    @pytest.mark.asyncio
    async def test_first_fetch_starts_at_checkpoint(self, database, partition, fake_api, make_message):
        Reconciler(database).reconcile(partition, [make_message("m1", 7)])

        await _walker(database, fake_api).drain_all(partition)

        assert fake_api.fetch_calls[0]["since"] == BASE_TIME + timedelta(minutes=7)

    @pytest.mark.asyncio
    async def test_initial_cursor_skips_checkpoint_query(self, database, partition, fake_api, make_message, make_page):
        fake_api.pages["p5"] = make_page([make_message("m9", 9)])

        summary = await _walker(database, fake_api).drain_all(partition, initial_cursor="p5")

        assert fake_api.fetch_calls == []
        assert fake_api.next_calls == ["p5"]
        assert summary.inserted == 1

    @pytest.mark.asyncio
    async def test_failure_mid_walk_keeps_earlier_pages(self, database, partition, fake_api, make_message, make_page):
        fake_api.first_page = make_page([make_message("m1", 1)], next="p2")
        fake_api.fail_fetch_on = "p2"

        with pytest.raises(TransportError):
            await _walker(database, fake_api).drain_all(partition)

        with database.session() as db:
            assert [r.message_id for r in store.list_messages(db, partition.key)] == ["m1"]

    @pytest.mark.asyncio
    async def test_missing_handle(self, database, anonymous_partition, fake_api):
        with pytest.raises(MissingIdentifierError):
            await _walker(database, fake_api).drain_all(anonymous_partition)
        assert fake_api.fetch_calls == []

    @pytest.mark.asyncio
    async def test_persisted_checkpoint_updated_only_after_success(
        self, tmp_path, database, partition, fake_api, make_message, make_page,
    ):
        state = LastSyncTimeStore(tmp_path / "state.json")
        walker = _walker(database, fake_api, PersistedCheckpoint(state, database))
        fake_api.fail_fetch_on = "first"
        with pytest.raises(TransportError):
            await walker.drain_all(partition)
        assert state.get_last_sync_time(partition.key) is None

        fake_api.fail_fetch_on = None
        fake_api.first_page = make_page([make_message("m1", 1)])
        await walker.drain_all(partition)
        assert state.get_last_sync_time(partition.key) is not None

    @pytest.mark.asyncio
    async def test_store_work_runs_off_the_event_loop_thread(self, database, partition, fake_api, make_message, make_page):
        threads = []

        class RecordingReconciler(Reconciler):
            def reconcile(self, partition, incoming):
                threads.append(threading.get_ident())
                return super().reconcile(partition, incoming)

        fake_api.first_page = make_page([make_message("m1", 1)], next="p2")
        fake_api.pages["p2"] = make_page([make_message("m2", 2)])
        walker = PaginationWalker(fake_api, RecordingReconciler(database), DerivedCheckpoint(database))

        summary = await walker.drain_all(partition)

        assert summary.inserted == 2
        assert len(threads) == 2
        assert threading.get_ident() not in threads
