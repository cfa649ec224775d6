"""CSV import and export of trades with pandas."""

import logging
from pathlib import Path

import pandas as pd
from pydantic import ValidationError

from edgelab.models import Trade


logger = logging.getLogger(__name__)

LIST_SEPARATOR = ";"

EXPORT_COLUMNS = [name for name in Trade.model_fields]
LIST_COLUMNS = ("emotional_states", "tags")
INT_COLUMNS = ("size", "result_ticks", "duration", "confidence_at_entry")
TEXT_COLUMNS = ("id", "time", "notes", *LIST_COLUMNS)


def trades_to_frame(trades: list[Trade]) -> pd.DataFrame:
    """Flatten trades into a DataFrame, one row per trade.

    List fields are joined with ``;``.
    """
    rows = []
    for trade in trades:
        row = trade.model_dump(mode="json")
        for column in LIST_COLUMNS:
            row[column] = LIST_SEPARATOR.join(row[column])
        rows.append(row)
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def _row_to_fields(row: dict) -> dict:
    fields = {}
    for column, value in row.items():
        if column not in Trade.model_fields or pd.isna(value):
            continue
        if column in LIST_COLUMNS:
            fields[column] = [part for part in str(value).split(LIST_SEPARATOR) if part]
        elif column in INT_COLUMNS:
            fields[column] = int(value)
        elif column == "time":
            fields[column] = str(value).zfill(5)
        else:
            fields[column] = value
    return fields


def trades_from_frame(df: pd.DataFrame) -> tuple[list[Trade], list[str]]:
    """Build trades from a DataFrame.

    Rows that fail validation are skipped and reported.

    Returns:
        Tuple of (valid trades, error messages keyed by row number).
    """
    trades = []
    errors = []

    for index, row in enumerate(df.to_dict(orient="records"), start=1):
        try:
            trades.append(Trade(**_row_to_fields(row)))
        except ValidationError as e:
            logger.debug("Skipping row %d: %s", index, e)
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            errors.append(f"row {index}: {location}: {first['msg']}")
        except ValueError as e:
            errors.append(f"row {index}: {e}")

    return trades, errors


def export_csv(trades: list[Trade], path: Path) -> int:
    """Write trades to a CSV file.

    Returns:
        Number of trades written.
    """
    trades_to_frame(trades).to_csv(path, index=False)
    return len(trades)


def import_csv(path: Path) -> tuple[list[Trade], list[str]]:
    """Read trades from a CSV file written by :func:`export_csv`."""
    df = pd.read_csv(path, dtype={column: str for column in TEXT_COLUMNS})
    return trades_from_frame(df)
