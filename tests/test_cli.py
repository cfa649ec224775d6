"""Tests for the EdgeLab command-line interface.

**Feature: edgelab-journal**
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from edgelab.cli.main import LAZY_SUBCOMMANDS, cli
from edgelab.db.store import DataStore


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """An isolated EdgeLab home directory."""
    return tmp_path / "edgelab"


def invoke(home: Path, *args: str, key: str = None):
    runner = CliRunner()
    env = {"EDGELAB_HOME": str(home), "OPENAI_API_KEY": key, "OPENAI_MODEL": None}
    return runner.invoke(cli, list(args), env=env, catch_exceptions=False)


def store_for(home: Path) -> DataStore:
    return DataStore(home / "edgelab.db")


def add_trade(home: Path, *extra: str):
    result = invoke(
        home, "add", "-i", "ES", "-d", "Long", "-t", "09:45", "-r", "2",
        "--date", "2024-03-01", *extra,
    )
    assert result.exit_code == 0, result.output
    return result


class TestCommandRegistry:
    """Every lazy command resolves to a click command."""

    @pytest.mark.parametrize("name", sorted(LAZY_SUBCOMMANDS))
    def test_help(self, home, name):
        result = invoke(home, name, "--help")

        assert result.exit_code == 0, result.output
        assert "Usage:" in result.output

    def test_root_help_lists_commands(self, home):
        result = invoke(home, "-h")

        assert result.exit_code == 0
        for name in ("add", "stats", "screenshot", "waveform"):
            assert name in result.output


class TestInit:
    def test_creates_config_and_database(self, home):
        result = invoke(home, "init")

        assert result.exit_code == 0, result.output
        assert (home / "config.toml").exists()
        assert (home / "edgelab.db").exists()

    def test_keeps_existing_config(self, home):
        invoke(home, "init")
        (home / "config.toml").write_text('[journal]\ntimezone = "Europe/London"\n')

        invoke(home, "init")

        assert "Europe/London" in (home / "config.toml").read_text()


class TestTradeCommands:
    """Trades can be logged, edited, listed and deleted."""

    def test_add_and_list(self, home):
        add_trade(home, "--tp-type", "Runner", "--emotion", "Calm", "--emotion", "Focused")

        trades = store_for(home).get_trades()
        assert len(trades) == 1
        assert trades[0].session == "NY AM"
        assert trades[0].emotional_states == ["Calm", "Focused"]

        result = invoke(home, "trades")
        assert result.exit_code == 0
        assert "Trades (1)" in result.output

    def test_session_inferred_from_time(self, home):
        result = invoke(home, "add", "-i", "CL", "-d", "Short", "-t", "04:10", "-r", "-1")

        assert result.exit_code == 0, result.output
        assert store_for(home).get_trades()[0].session == "London"

    def test_session_uses_configured_timezone(self, home):
        home.mkdir(parents=True)
        (home / "config.toml").write_text('[journal]\ntimezone = "Europe/London"\n')

        invoke(home, "add", "-i", "ES", "-d", "Long", "-t", "14:45", "-r", "1", "--date", "2024-03-01")

        assert store_for(home).get_trades()[0].session == "NY AM"

    @pytest.mark.parametrize("clock", ["25:99", "24:00", "12:60"])
    def test_add_rejects_out_of_range_time(self, home, clock):
        result = invoke(home, "add", "-i", "ES", "-d", "Long", "-t", clock, "-r", "1", "-s", "NY AM")

        assert result.exit_code == 1
        assert store_for(home).get_trades() == []

    def test_add_rejects_unknown_timezone(self, home):
        home.mkdir(parents=True)
        (home / "config.toml").write_text('[journal]\ntimezone = "Mars/Olympus"\n')

        result = invoke(home, "add", "-i", "ES", "-d", "Long", "-t", "09:45", "-r", "1")

        assert result.exit_code == 1
        assert "Unknown time zone" in result.output
        assert store_for(home).get_trades() == []

    def test_add_rejects_bad_time(self, home):
        result = invoke(home, "add", "-i", "ES", "-d", "Long", "-t", "9.45", "-r", "1")

        assert result.exit_code == 1
        assert store_for(home).get_trades() == []

    def test_edit_by_prefix(self, home):
        add_trade(home)
        trade = store_for(home).get_trades()[0]

        result = invoke(home, "edit", trade.id[:8], "--break-type", "Range Break", "-r", "-0.5")

        assert result.exit_code == 0, result.output
        stored = store_for(home).get_trade(trade.id)
        assert stored.break_type == "Range Break"
        assert stored.result_r == -0.5

    def test_edit_requires_fields(self, home):
        add_trade(home)
        trade = store_for(home).get_trades()[0]

        assert invoke(home, "edit", trade.id).exit_code == 1

    def test_edit_unknown(self, home):
        assert invoke(home, "edit", "nope", "-r", "1").exit_code == 1

    def test_delete(self, home):
        add_trade(home)
        trade = store_for(home).get_trades()[0]

        result = invoke(home, "delete", trade.id, "--yes")

        assert result.exit_code == 0
        assert store_for(home).get_trades() == []

    def test_filters(self, home):
        add_trade(home)
        invoke(home, "add", "-i", "NQ", "-d", "Short", "-t", "13:00", "-r", "-1", "--date", "2024-03-01")

        result = invoke(home, "trades", "--instrument", "NQ")

        assert "Trades (1)" in result.output

    def test_day_summary(self, home):
        add_trade(home)
        invoke(home, "add", "-i", "NQ", "-d", "Short", "-t", "13:00", "-r", "-1", "--date", "2024-03-01")

        result = invoke(home, "day", "2024-03-01")

        assert result.exit_code == 0
        assert "+1.00R" in result.output
        assert "50.0%" in result.output

    def test_calendar(self, home):
        add_trade(home)
        invoke(home, "add", "-i", "NQ", "-d", "Short", "-t", "13:00", "-r", "-0.5", "--date", "2024-03-01")

        result = invoke(home, "calendar", "2024-03")

        assert result.exit_code == 0, result.output
        assert "March 2024" in result.output
        assert "+1.5R" in result.output
        assert "1W 1L" in result.output
        assert "over 2 trades" in result.output
        assert "edgelab calendar 2024-02" in result.output
        assert "edgelab calendar 2024-04" in result.output

    def test_calendar_year_wrap(self, home):
        result = invoke(home, "calendar", "2024-12")

        assert result.exit_code == 0
        assert "edgelab calendar 2025-01" in result.output

    def test_calendar_rejects_bad_month(self, home):
        assert invoke(home, "calendar", "2024-13").exit_code == 2

    def test_empty_day(self, home):
        result = invoke(home, "day", "2024-01-01")

        assert result.exit_code == 0
        assert "No trades" in result.output


class TestStats:
    def test_json_payload(self, home):
        add_trade(home)
        invoke(home, "add", "-i", "ES", "-d", "Short", "-t", "10:00", "-r", "-1", "--date", "2024-03-01")

        result = invoke(home, "stats", "--json")

        payload = json.loads(result.output)
        assert payload["count"] == 2
        assert payload["winRate"] == 50.0
        assert payload["profitFactor"] == 2.0
        assert payload["groups"]["session"]["NY AM"]["trades"] == 2

    def test_infinite_edge_rendering(self, home):
        add_trade(home)

        result = invoke(home, "stats")

        assert result.exit_code == 0
        assert "∞" in result.output

    def test_empty_journal(self, home):
        result = invoke(home, "stats")

        assert result.exit_code == 0
        assert "No trades" in result.output


class TestCsvRoundTrip:
    def test_export_then_import(self, home, tmp_path):
        add_trade(home, "--tag", "a+", "--notes", "clean, textbook")
        csv_path = tmp_path / "trades.csv"

        assert invoke(home, "export", str(csv_path)).exit_code == 0

        other = tmp_path / "other"
        result = invoke(other, "import", str(csv_path))

        assert result.exit_code == 0, result.output
        assert store_for(other).get_trades() == store_for(home).get_trades()

    def test_import_reports_bad_rows(self, home, tmp_path):
        csv_path = tmp_path / "bad.csv"
        csv_path.write_text(
            "instrument,date,time,session,direction,result_r\n"
            "ES,2024-03-01,09:45,NY AM,Long,1.5\n"
            "XX,2024-03-01,09:45,NY AM,Long,1.5\n"
        )

        result = invoke(home, "import", str(csv_path))

        assert result.exit_code == 0
        assert "Skipped 1 rows" in result.output
        assert len(store_for(home).get_trades()) == 1


class TestAsk:
    def test_offline_answer(self, home):
        add_trade(home)

        result = invoke(home, "ask", "Which session is best?", "--offline")

        assert result.exit_code == 0
        assert "Session performance breakdown" in result.output
        messages = store_for(home).get_chat_messages()
        assert [m.role for m in messages] == ["user", "assistant"]

    def test_falls_back_without_key(self, home):
        result = invoke(home, "ask", "hello")

        assert result.exit_code == 0
        assert "No OpenAI API key configured" in result.output

    def test_image_needs_key(self, home, tmp_path):
        image = tmp_path / "chart.png"
        image.write_bytes(b"\x89PNG")

        result = invoke(home, "ask", "what happened?", "--image", str(image))

        assert result.exit_code == 1
        assert "API key not configured" in result.output

    def test_uses_model_with_key(self, home):
        add_trade(home)

        with patch("edgelab.ai.coach.run_agent_sync", return_value="Your ES longs work.") as run:
            result = invoke(home, "ask", "What works?", key="sk-test")

        assert result.exit_code == 0, result.output
        run.assert_called_once()
        assert "Your ES longs work." in result.output
        assert store_for(home).get_chat_messages()[1].citations.sample_size == 1

    def test_chat_history_and_clear(self, home):
        invoke(home, "ask", "take profit?", "--offline")

        result = invoke(home, "chat")
        assert "take profit?" in result.output

        invoke(home, "chat", "--clear")
        assert store_for(home).get_chat_messages() == []


class TestScreenshots:
    @pytest.fixture
    def image(self, tmp_path) -> Path:
        path = tmp_path / "chart.png"
        path.write_bytes(b"\x89PNG\r\n\x1a\n")
        return path

    def test_upload_and_list(self, home, image):
        add_trade(home)
        trade = store_for(home).get_trades()[0]

        result = invoke(home, "screenshot", "add", str(image), "--trade", trade.id[:8])

        assert result.exit_code == 0, result.output
        shots = store_for(home).get_screenshots(trade_id=trade.id)
        assert len(shots) == 1
        assert Path(shots[0].url).exists()
        assert "chart.png" in invoke(home, "screenshots").output

    def test_analyze_and_apply(self, home, image):
        add_trade(home, "--notes", "Good entry")
        trade = store_for(home).get_trades()[0]
        invoke(home, "screenshot", "add", str(image))
        shot = store_for(home).get_screenshots(unassigned=True)[0]

        reply = '{"breakType": "Liquidity Sweep", "tpType": null, "notes": "Swept lows"}'
        with patch("edgelab.ai.vision.run_agent_sync", return_value=reply):
            result = invoke(home, "screenshot", "analyze", shot.id, key="sk-test")
        assert result.exit_code == 0, result.output
        assert store_for(home).get_screenshot(shot.id).ai_processed

        result = invoke(home, "screenshot", "apply", shot.id, "--trade", trade.id)

        assert result.exit_code == 0, result.output
        updated = store_for(home).get_trade(trade.id)
        assert updated.break_type == "Liquidity Sweep"
        assert updated.notes == "Good entry\n\nAI Analysis: Swept lows"
        assert store_for(home).get_screenshot(shot.id).trade_id == trade.id

    def test_apply_requires_analysis(self, home, image):
        add_trade(home)
        trade = store_for(home).get_trades()[0]
        invoke(home, "screenshot", "add", str(image))
        shot = store_for(home).get_screenshots()[0]

        result = invoke(home, "screenshot", "apply", shot.id, "--trade", trade.id)

        assert result.exit_code == 1

    def test_analyze_needs_key(self, home, image):
        invoke(home, "screenshot", "add", str(image))
        shot = store_for(home).get_screenshots()[0]

        result = invoke(home, "screenshot", "analyze", shot.id)

        assert result.exit_code == 1
        assert "API key not configured" in result.output


class TestWaveform:
    def test_fallback_runs_and_stops(self, home):
        result = invoke(home, "waveform", "--fallback", "--seconds", "0.05", "--fps", "20")

        assert result.exit_code == 0, result.output
        assert "Stopped." in result.output

    def test_render_bars(self):
        from edgelab.cli.waveform import render_bars

        text = render_bars([0.0, 1.0, 0.5], rows=4).plain.split("\n")

        assert len(text) == 4
        assert [line[1] for line in text] == ["█"] * 4
        assert [line[0] for line in text] == [" "] * 4
        assert [line[2] for line in text] == [" ", " ", "█", "█"]
