"""Tests for trade filtering and session inference.

**Feature: edgelab-journal**
"""

from datetime import date

import pytest
from pydantic import ValidationError
from hypothesis import given, settings
from hypothesis import strategies as st

from edgelab.analytics.filters import TradeFilter
from edgelab.analytics.sessions import infer_session, parse_time, session_for
from edgelab.models import Trade
from edgelab.models.trade import BREAK_TYPES, INSTRUMENTS, SESSIONS, SL_TYPES


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


trade_strategy = st.builds(
    make_trade,
    instrument=st.sampled_from(INSTRUMENTS),
    session=st.sampled_from(SESSIONS),
    break_type=st.one_of(st.none(), st.sampled_from(BREAK_TYPES)),
    sl_type=st.one_of(st.none(), st.sampled_from(SL_TYPES)),
)


class TestFilterSubset:
    """
    **Feature: edgelab-journal, Property 16: Filter Subset**

    *For any* filter, the result is an order-preserving subset of the
    input, and an inactive filter keeps everything.
    """

    @given(
        trades=st.lists(trade_strategy, max_size=30),
        instruments=st.lists(st.sampled_from(INSTRUMENTS), max_size=3),
        sessions=st.lists(st.sampled_from(SESSIONS), max_size=2),
    )
    @settings(max_examples=100)
    def test_subset_in_order(self, trades, instruments, sessions):
        selected = TradeFilter(instruments=instruments, sessions=sessions).apply(trades)

        positions = [trades.index(t) for t in selected]
        assert positions == sorted(positions)
        for trade in selected:
            assert not instruments or trade.instrument in instruments
            assert not sessions or trade.session in sessions

    @given(trades=st.lists(trade_strategy, max_size=30))
    @settings(max_examples=50)
    def test_inactive_keeps_all(self, trades):
        trade_filter = TradeFilter()

        assert not trade_filter.is_active
        assert trade_filter.apply(trades) == trades


class TestClassifierFilters:
    """Classifier filters never drop unclassified trades."""

    def test_unclassified_pass(self):
        trades = [
            make_trade(break_type="Range Break"),
            make_trade(break_type="Failed Break"),
            make_trade(break_type=None),
        ]

        selected = TradeFilter(break_types=["Range Break"]).apply(trades)

        assert [t.break_type for t in selected] == ["Range Break", None]

    def test_intent_filter_is_strict(self):
        trades = [make_trade(intent="Planned"), make_trade(intent="Revenge")]

        selected = TradeFilter(intents=["Revenge"]).apply(trades)

        assert [t.intent for t in selected] == ["Revenge"]

    def test_date_range_inclusive(self):
        trades = [make_trade(date=date(2024, 3, d)) for d in (1, 2, 3, 4)]

        selected = TradeFilter(start=date(2024, 3, 2), end=date(2024, 3, 3)).apply(trades)

        assert [t.date.day for t in selected] == [2, 3]


class TestSessionInference:
    """
    **Feature: edgelab-journal, Property 17: Session Coverage**

    *For any* wall-clock time, exactly one session applies.
    """

    @pytest.mark.parametrize(
        "clock, expected",
        [
            ("18:00", "Asia"),
            ("23:59", "Asia"),
            ("00:00", "Asia"),
            ("02:59", "Asia"),
            ("03:00", "London"),
            ("08:29", "London"),
            ("08:30", "NY AM"),
            ("11:59", "NY AM"),
            ("12:00", "NY PM"),
            ("17:59", "NY PM"),
        ],
    )
    def test_boundaries(self, clock, expected):
        assert infer_session(clock) == expected

    @given(hour=st.integers(min_value=0, max_value=23), minute=st.integers(min_value=0, max_value=59))
    @settings(max_examples=100)
    def test_every_minute_has_session(self, hour, minute):
        assert infer_session(f"{hour:02d}:{minute:02d}") in SESSIONS

    def test_converts_time_zone(self):
        # 14:45 London in March (before US DST) is 09:45 New York
        assert infer_session("14:45", tz="Europe/London", on_date=date(2024, 3, 1)) == "NY AM"

    def test_invalid_time(self):
        with pytest.raises(ValueError, match="HH:MM"):
            parse_time("9.45am")

    def test_session_for_midnight(self):
        assert session_for(parse_time("00:30")) == "Asia"


class TestEntryTime:
    """Trade entry times must be real wall-clock times."""

    @given(hour=st.integers(min_value=0, max_value=23), minute=st.integers(min_value=0, max_value=59))
    @settings(max_examples=50)
    def test_valid_times_accepted(self, hour, minute):
        assert make_trade(time=f"{hour:02d}:{minute:02d}").time == f"{hour:02d}:{minute:02d}"

    @pytest.mark.parametrize("clock", ["24:00", "25:99", "12:60", "9:45", "09:45:00"])
    def test_out_of_range_rejected(self, clock):
        with pytest.raises(ValidationError):
            make_trade(time=clock)
