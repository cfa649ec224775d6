"""SQLite data store for EdgeLab."""

import json
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from edgelab.models import ChartAnalysis, ChatMessage, Citation, Trade, TradeScreenshot


_TRADE_COLUMNS = (
    "id",
    "instrument",
    "date",
    "time",
    "session",
    "direction",
    "size",
    "entry_price",
    "stop_loss_price",
    "take_profit_price",
    "result_r",
    "result_ticks",
    "result_dollars",
    "duration",
    "intent",
    "confidence_at_entry",
    "emotional_states",
    "tp_type",
    "sl_type",
    "be_type",
    "break_type",
    "break_alignment",
    "notes",
    "tags",
    "created_at",
    "updated_at",
)

_JSON_COLUMNS = ("emotional_states", "tags")
_DATETIME_COLUMNS = ("created_at", "updated_at")


class DataStore:
    """SQLite-based data store for the trading journal."""

    REQUIRED_TABLES = [
        "trades",
        "screenshots",
        "chat_messages",
    ]

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            # Trades table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS trades (
                    id TEXT PRIMARY KEY,
                    instrument TEXT NOT NULL,
                    date TEXT NOT NULL,
                    time TEXT NOT NULL,
                    session TEXT NOT NULL,
                    direction TEXT NOT NULL,
                    size INTEGER NOT NULL,
                    entry_price REAL NOT NULL,
                    stop_loss_price REAL,
                    take_profit_price REAL,
                    result_r REAL NOT NULL,
                    result_ticks INTEGER,
                    result_dollars REAL,
                    duration INTEGER,
                    intent TEXT NOT NULL,
                    confidence_at_entry INTEGER,
                    emotional_states TEXT NOT NULL DEFAULT '[]',
                    tp_type TEXT,
                    sl_type TEXT,
                    be_type TEXT,
                    break_type TEXT,
                    break_alignment TEXT,
                    notes TEXT,
                    tags TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            # Screenshots table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS screenshots (
                    id TEXT PRIMARY KEY,
                    trade_id TEXT,
                    url TEXT NOT NULL,
                    filename TEXT NOT NULL,
                    file_size INTEGER,
                    mime_type TEXT,
                    type TEXT NOT NULL DEFAULT 'chart',
                    uploaded_at TEXT NOT NULL,
                    ai_processed INTEGER NOT NULL DEFAULT 0,
                    ai_extracted_data TEXT
                )
            """)

            # Chat messages table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS chat_messages (
                    id TEXT PRIMARY KEY,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    citations TEXT,
                    timestamp TEXT NOT NULL
                )
            """)

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Trades ====================

    @staticmethod
    def _trade_params(trade: Trade) -> tuple[Any, ...]:
        data = trade.model_dump()
        data["date"] = trade.date.isoformat()
        for column in _DATETIME_COLUMNS:
            data[column] = data[column].isoformat()
        for column in _JSON_COLUMNS:
            data[column] = json.dumps(data[column])
        return tuple(data[column] for column in _TRADE_COLUMNS)

    @staticmethod
    def _row_to_trade(row: sqlite3.Row) -> Trade:
        data = {column: row[column] for column in _TRADE_COLUMNS}
        data["date"] = date.fromisoformat(row["date"])
        for column in _DATETIME_COLUMNS:
            data[column] = datetime.fromisoformat(row[column])
        for column in _JSON_COLUMNS:
            data[column] = json.loads(row[column] or "[]")
        return Trade(**data)

    def save_trade(self, trade: Trade) -> None:
        """Insert a new trade.

        Args:
            trade: Trade to save.

        Raises:
            sqlite3.IntegrityError: If a trade with the same ID exists.
        """
        placeholders = ", ".join("?" for _ in _TRADE_COLUMNS)
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO trades ({', '.join(_TRADE_COLUMNS)}) VALUES ({placeholders})",
                self._trade_params(trade),
            )
            conn.commit()
        finally:
            conn.close()

    def update_trade(self, trade: Trade) -> bool:
        """Replace every stored field of an existing trade.

        Args:
            trade: Trade carrying the new values.

        Returns:
            True if a trade was updated, False if the ID is unknown.
        """
        columns = _TRADE_COLUMNS[1:]
        assignments = ", ".join(f"{column} = ?" for column in columns)
        params = self._trade_params(trade)

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE trades SET {assignments} WHERE id = ?",
                (*params[1:], params[0]),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def delete_trade(self, trade_id: str) -> bool:
        """Delete a trade and unlink its screenshots.

        Args:
            trade_id: ID of the trade to delete.

        Returns:
            True if a trade was deleted.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE screenshots SET trade_id = NULL WHERE trade_id = ?",
                (trade_id,),
            )
            cursor.execute("DELETE FROM trades WHERE id = ?", (trade_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        finally:
            conn.close()

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        """Get a trade by ID.

        Args:
            trade_id: Trade ID.

        Returns:
            Trade if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM trades WHERE id = ?", (trade_id,))
            row = cursor.fetchone()
            return self._row_to_trade(row) if row else None
        finally:
            conn.close()

    def get_trades(self, trade_date: Optional[date] = None) -> list[Trade]:
        """Get trades from the database.

        Args:
            trade_date: Optional date filter. If None, returns all trades.

        Returns:
            List of trades, oldest first.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if trade_date:
                cursor.execute(
                    """
                    SELECT * FROM trades
                    WHERE date = ?
                    ORDER BY date, time, created_at
                    """,
                    (trade_date.isoformat(),),
                )
            else:
                cursor.execute(
                    """
                    SELECT * FROM trades
                    ORDER BY date, time, created_at
                    """
                )
            return [self._row_to_trade(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def apply_analysis_to_trade(
        self,
        trade_id: str,
        analysis: ChartAnalysis,
        screenshot_id: Optional[str] = None,
    ) -> Trade:
        """Back-fill a trade's classification from screenshot analysis.

        Only non-null classification fields are written. Analysis notes are
        appended to the trade's existing notes.

        Args:
            trade_id: Trade to update.
            analysis: Extracted classification.
            screenshot_id: Optional screenshot to link to the trade.

        Returns:
            The updated trade.

        Raises:
            ValueError: If the trade does not exist or the analysis carries
                nothing to apply.
        """
        trade = self.get_trade(trade_id)
        if trade is None:
            raise ValueError(f"Trade not found: {trade_id}")

        updates: dict[str, Any] = analysis.classification()

        if analysis.notes:
            addition = f"AI Analysis: {analysis.notes}"
            updates["notes"] = f"{trade.notes}\n\n{addition}" if trade.notes else addition

        if not updates:
            raise ValueError("No valid fields to update")

        updated = Trade.model_validate(
            {**trade.model_dump(), **updates, "updated_at": datetime.now()}
        )
        self.update_trade(updated)

        if screenshot_id:
            self.link_screenshot(screenshot_id, trade_id)

        return updated

    # ==================== Screenshots ====================

    @staticmethod
    def _row_to_screenshot(row: sqlite3.Row) -> TradeScreenshot:
        extracted = row["ai_extracted_data"]
        return TradeScreenshot(
            id=row["id"],
            trade_id=row["trade_id"],
            url=row["url"],
            filename=row["filename"],
            file_size=row["file_size"],
            mime_type=row["mime_type"],
            type=row["type"],
            uploaded_at=datetime.fromisoformat(row["uploaded_at"]),
            ai_processed=bool(row["ai_processed"]),
            ai_extracted_data=ChartAnalysis.model_validate(json.loads(extracted))
            if extracted
            else None,
        )

    def save_screenshot(self, screenshot: TradeScreenshot) -> None:
        """Save a screenshot record.

        Args:
            screenshot: Screenshot to save.
        """
        extracted = screenshot.ai_extracted_data
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO screenshots
                (id, trade_id, url, filename, file_size, mime_type, type,
                 uploaded_at, ai_processed, ai_extracted_data)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    screenshot.id,
                    screenshot.trade_id,
                    screenshot.url,
                    screenshot.filename,
                    screenshot.file_size,
                    screenshot.mime_type,
                    screenshot.type,
                    screenshot.uploaded_at.isoformat(),
                    1 if extracted is not None else 0,
                    json.dumps(extracted.to_wire()) if extracted is not None else None,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def update_screenshot_analysis(
        self, screenshot_id: str, analysis: ChartAnalysis
    ) -> bool:
        """Store AI-extracted data for a screenshot and mark it processed.

        Returns:
            True if the screenshot exists.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE screenshots
                SET ai_processed = 1, ai_extracted_data = ?
                WHERE id = ?
                """,
                (json.dumps(analysis.to_wire()), screenshot_id),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def link_screenshot(self, screenshot_id: str, trade_id: Optional[str]) -> bool:
        """Attach a screenshot to a trade, or detach it with None.

        Returns:
            True if the screenshot exists.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE screenshots SET trade_id = ? WHERE id = ?",
                (trade_id, screenshot_id),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def get_screenshot(self, screenshot_id: str) -> Optional[TradeScreenshot]:
        """Get a screenshot by ID."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM screenshots WHERE id = ?", (screenshot_id,))
            row = cursor.fetchone()
            return self._row_to_screenshot(row) if row else None
        finally:
            conn.close()

    def get_screenshots(
        self, trade_id: Optional[str] = None, unassigned: bool = False
    ) -> list[TradeScreenshot]:
        """Get screenshots, newest first.

        Args:
            trade_id: Only screenshots linked to this trade.
            unassigned: Only screenshots not linked to any trade.

        Returns:
            List of screenshots.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if trade_id:
                cursor.execute(
                    "SELECT * FROM screenshots WHERE trade_id = ? ORDER BY uploaded_at DESC",
                    (trade_id,),
                )
            elif unassigned:
                cursor.execute(
                    "SELECT * FROM screenshots WHERE trade_id IS NULL ORDER BY uploaded_at DESC"
                )
            else:
                cursor.execute("SELECT * FROM screenshots ORDER BY uploaded_at DESC")
            return [self._row_to_screenshot(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Chat ====================

    def save_chat_message(self, message: ChatMessage) -> None:
        """Save a chat message.

        Args:
            message: Message to save.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO chat_messages (id, role, content, citations, timestamp)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    message.id,
                    message.role,
                    message.content,
                    message.citations.model_dump_json() if message.citations else None,
                    message.timestamp.isoformat(),
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def get_chat_messages(self) -> list[ChatMessage]:
        """Get the conversation, oldest first."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, role, content, citations, timestamp
                FROM chat_messages
                ORDER BY timestamp ASC, rowid ASC
                """
            )
            return [
                ChatMessage(
                    id=row["id"],
                    role=row["role"],
                    content=row["content"],
                    citations=Citation.model_validate_json(row["citations"])
                    if row["citations"]
                    else None,
                    timestamp=datetime.fromisoformat(row["timestamp"]),
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def clear_chat_messages(self) -> int:
        """Delete the whole conversation.

        Returns:
            Number of messages deleted.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM chat_messages")
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table record counts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            stats = {}
            for table in self.REQUIRED_TABLES:
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            return stats
        finally:
            conn.close()
