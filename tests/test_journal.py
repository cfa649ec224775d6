"""Tests for the write-through trade journal cache.

**Feature: edgelab-journal**
"""

import sqlite3
import tempfile
from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from edgelab.analytics.filters import TradeFilter
from edgelab.db.journal import TradeJournal
from edgelab.db.store import DataStore
from edgelab.models import ChatMessage, Trade


@pytest.fixture
def store():
    """Create a temporary data store for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield DataStore(Path(tmpdir) / "test.db")


def make_trade(**kwargs) -> Trade:
    fields = {
        "instrument": "ES",
        "date": date(2024, 3, 1),
        "time": "09:45",
        "session": "NY AM",
        "direction": "Long",
        "result_r": 1.0,
    }
    fields.update(kwargs)
    return Trade(**fields)


class TestWriteThrough:
    """
    **Feature: edgelab-journal, Property 14: Write-Through Consistency**

    *For any* sequence of added trades, the store holds exactly what the
    cache holds.
    """

    @given(results=st.lists(st.floats(min_value=-3, max_value=3, allow_nan=False), max_size=10))
    @settings(max_examples=20)
    def test_store_matches_cache(self, results):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            journal = TradeJournal(store)

            for r in results:
                journal.add(make_trade(result_r=r))

            assert {t.id for t in store.get_trades()} == {t.id for t in journal.trades}
            assert journal.pending == []

    def test_update_persists(self, store):
        journal = TradeJournal(store)
        trade = journal.add(make_trade())

        updated = journal.update(trade.id, tp_type="Runner", result_r=2.0)

        assert updated.id == trade.id
        assert store.get_trade(trade.id).tp_type == "Runner"
        assert store.get_trade(trade.id).result_r == 2.0

    def test_update_unknown_trade(self, store):
        with pytest.raises(KeyError):
            TradeJournal(store).update("missing", result_r=1.0)

    def test_delete(self, store):
        journal = TradeJournal(store)
        trade = journal.add(make_trade())

        assert journal.delete(trade.id)
        assert journal.get(trade.id) is None
        assert store.get_trade(trade.id) is None
        assert not journal.delete(trade.id)

    def test_loads_existing_trades(self, store):
        store.save_trade(make_trade())

        assert len(TradeJournal(store).trades) == 1


class TestLocalFallback:
    """
    **Feature: edgelab-journal, Property 15: Local Fallback on Write Failure**

    A failed database write keeps the change in the cache and retries it
    on the next sync.
    """

    def test_failed_write_kept_locally(self, store):
        journal = TradeJournal(store)

        with patch.object(store, "update_trade", side_effect=sqlite3.OperationalError("database is locked")):
            trade = journal.add(make_trade())

        assert journal.get(trade.id) == trade
        assert journal.pending == [trade.id]
        assert store.get_trade(trade.id) is None

    def test_sync_retries_pending(self, store):
        journal = TradeJournal(store)

        with patch.object(store, "update_trade", side_effect=sqlite3.OperationalError("database is locked")):
            trade = journal.add(make_trade())

        journal.sync()

        assert journal.pending == []
        assert store.get_trade(trade.id) == trade

    def test_failed_sync_keeps_cache(self, store):
        journal = TradeJournal(store)
        trade = journal.add(make_trade())

        with patch.object(store, "get_trades", side_effect=sqlite3.OperationalError("disk I/O error")):
            journal.sync()

        assert journal.get(trade.id) == trade

    def test_failed_delete_stays_deleted(self, store):
        journal = TradeJournal(store)
        trade = journal.add(make_trade())

        with patch.object(store, "delete_trade", side_effect=sqlite3.OperationalError("database is locked")):
            assert journal.delete(trade.id)
            journal.sync()

        assert journal.get(trade.id) is None
        assert journal.pending == [trade.id]

        journal.sync()

        assert journal.pending == []
        assert store.get_trade(trade.id) is None

    def test_failed_chat_write_kept_locally(self, store):
        journal = TradeJournal(store)

        with patch.object(store, "save_chat_message", side_effect=sqlite3.OperationalError("readonly")):
            message = journal.add_message(ChatMessage(role="user", content="hi"))

        assert journal.chat_messages == [message]
        journal.sync()
        assert journal.chat_messages == [message]


class TestSyncLastWriteWins:
    """Rows in the store replace stale cached copies on sync."""

    def test_store_wins(self, store):
        journal = TradeJournal(store)
        trade = journal.add(make_trade(result_r=1.0))

        newer = Trade.model_validate({**trade.model_dump(), "result_r": -1.0})
        store.update_trade(newer)
        journal.sync()

        assert journal.get(trade.id).result_r == -1.0


class TestQueries:
    """Date, day-summary and filter queries over the cache."""

    def test_trades_for_date(self, store):
        journal = TradeJournal(store)
        journal.add(make_trade(time="10:00"))
        journal.add(make_trade(time="09:00"))
        journal.add(make_trade(date=date(2024, 3, 2)))

        day_trades = journal.trades_for_date(date(2024, 3, 1))

        assert [t.time for t in day_trades] == ["09:00", "10:00"]

    def test_day_summary(self, store):
        journal = TradeJournal(store)
        journal.add(make_trade(result_r=2.0))
        journal.add(make_trade(result_r=-1.0, time="10:30"))

        summary = journal.day_summary(date(2024, 3, 1))

        assert summary.trade_count == 2
        assert summary.total_r == pytest.approx(1.0)
        assert summary.win_rate == pytest.approx(50.0)

    def test_filtered(self, store):
        journal = TradeJournal(store)
        journal.add(make_trade(instrument="ES"))
        journal.add(make_trade(instrument="NQ"))

        selected = journal.filtered(TradeFilter(instruments=["NQ"]))

        assert [t.instrument for t in selected] == ["NQ"]

    def test_clear_chat(self, store):
        journal = TradeJournal(store)
        journal.add_message(ChatMessage(role="user", content="hi"))

        journal.clear_chat()

        assert journal.chat_messages == []
        assert store.get_chat_messages() == []
