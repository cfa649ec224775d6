"""Tests for CSV export and import of trades.

**Feature: edgelab-journal**
"""

from datetime import date

from edgelab.db.export import export_csv, import_csv
from edgelab.models import Trade


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


class TestCsvRoundTrip:
    """Exported journals import back unchanged."""

    def test_numeric_looking_text(self, tmp_path):
        trades = [
            make_trade(notes="1", tags=["2024"]),
            make_trade(notes="2", tags=["7"], time="10:15", size=3),
        ]
        path = tmp_path / "trades.csv"

        export_csv(trades, path)
        imported, errors = import_csv(path)

        assert errors == []
        assert imported == trades

    def test_empty_lists_and_missing_notes(self, tmp_path):
        trade = make_trade(notes=None, tags=[], emotional_states=["Calm", "Focused"])
        path = tmp_path / "trades.csv"

        export_csv([trade], path)
        imported, errors = import_csv(path)

        assert errors == []
        assert imported == [trade]


class TestInvalidRows:
    def test_bad_rows_skipped(self, tmp_path):
        path = tmp_path / "trades.csv"
        path.write_text(
            "instrument,date,time,session,direction,result_r\n"
            "ES,2024-03-01,9:45,NY AM,Long,1.5\n"
            "ES,2024-03-01,09:45,Tokyo,Long,1.5\n"
        )

        imported, errors = import_csv(path)

        assert [t.time for t in imported] == ["09:45"]
        assert len(errors) == 1
        assert errors[0].startswith("row 2: session")
