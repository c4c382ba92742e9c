"""
Change feed pub/sub and live view sync states.
"""

import asyncio
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from boardtrack.services import change_feed
from boardtrack.services.change_feed import ChangeEvent, ChangeFeed, SyncState


# ---------------------------------------------------------------------------
# Publish / Subscribe
# ---------------------------------------------------------------------------

class TestChangeFeed:
    def test_subscriber_receives_its_collection(self):
        feed = ChangeFeed()
        boards, mills = [], []
        feed.subscribe("boards", boards.append)
        feed.subscribe("mills", mills.append)

        feed.publish(ChangeEvent("boards", "created", 1))

        assert len(boards) == 1
        assert mills == []

    def test_wildcard_receives_everything(self):
        feed = ChangeFeed()
        seen = []
        feed.subscribe("*", seen.append)
        feed.publish(ChangeEvent("boards", "created", 1))
        feed.publish(ChangeEvent("users", "deleted", 2))
        assert [e.collection for e in seen] == ["boards", "users"]

    def test_unsubscribe(self):
        feed = ChangeFeed()
        seen = []
        feed.subscribe("boards", seen.append)
        feed.unsubscribe("boards", seen.append)
        feed.publish(ChangeEvent("boards", "created", 1))
        assert seen == []

    def test_failing_handler_does_not_block_others(self):
        feed = ChangeFeed()
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        feed.subscribe("boards", broken)
        feed.subscribe("boards", seen.append)
        feed.publish(ChangeEvent("boards", "updated", 3))
        assert len(seen) == 1

    def test_event_to_dict(self):
        data = ChangeEvent("mills", "updated", 5).to_dict()
        assert data["collection"] == "mills"
        assert data["record_id"] == 5
        assert "ts" in data


# ---------------------------------------------------------------------------
# Live views
# ---------------------------------------------------------------------------

class TestLiveViews:
    def test_connecting_until_first_read(self, views):
        assert views.status()["state"] == SyncState.CONNECTING.value
        views.boards.items()
        assert views.boards.state == SyncState.LIVE

    def test_read_your_writes(self, views, make_board):
        views.refresh_all()
        assert views.boards.items() == []

        make_board("SMW-B-001")

        assert [b.board_id for b in views.boards.items()] == ["SMW-B-001"]

    def test_lifecycle_write_visible_immediately(self, views, store, make_partner, make_board):
        from boardtrack.services.lifecycle import send_for_service

        make_partner("Sheltronics")
        board = make_board("SMW-B-001")
        views.refresh_all()

        send_for_service(store, board.id, "Sheltronics")

        assert views.boards.items()[0].current_location == "Sheltronics"

    def test_stale_keeps_last_snapshot(self, views, make_board):
        make_board("SMW-B-001")
        views.refresh_all()

        with patch.object(views, "_ping", side_effect=OperationalError("SELECT 1", {}, Exception("down"))):
            assert views.poll_once() is False

        assert views.status()["state"] == SyncState.STALE.value
        assert [b.board_id for b in views.boards.items()] == ["SMW-B-001"]
        assert views.boards.last_error

    def test_reconnect_reloads(self, views, make_board):
        views.refresh_all()
        views.boards.mark_stale("test")

        make_board("SMW-B-001")
        assert views.poll_once() is True

        assert views.status()["state"] == SyncState.LIVE.value
        assert len(views.boards.items()) == 1

    def test_loader_error_marks_stale(self, views, make_board):
        make_board("SMW-B-001")
        views.refresh_all()

        with patch.object(views.boards, "_loader", side_effect=ValueError("bad row")):
            assert views.boards.refresh() is False

        assert views.boards.state == SyncState.STALE
        assert "bad row" in views.boards.last_error
        assert [b.board_id for b in views.boards.items()] == ["SMW-B-001"]

    def test_close_unsubscribes(self, views, feed):
        views.refresh_all()
        views.close()
        feed.publish(ChangeEvent("boards", "created", 1))
        assert views.boards.state == SyncState.LIVE


@pytest.mark.parametrize("state", list(SyncState))
def test_sync_states_are_strings(state):
    assert state.value == state.name


# ---------------------------------------------------------------------------
# Background poller
# ---------------------------------------------------------------------------

def test_poller_survives_errors_and_stops(views):
    calls = []

    def poll():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        return True

    async def scenario():
        with patch.object(views, "poll_once", side_effect=poll):
            assert change_feed.start_sync(views, 0) == "started"
            assert change_feed.start_sync(views, 0) == "already_running"
            task = change_feed.sync_task
            for _ in range(200):
                if len(calls) >= 2:
                    break
                await asyncio.sleep(0.01)
            assert change_feed.stop_sync() == "stopped"
            await asyncio.gather(task, return_exceptions=True)
            return task

    task = asyncio.run(scenario())

    assert len(calls) >= 2
    assert task.cancelled()
    assert change_feed.sync_task is None
    assert change_feed.sync_running is False
