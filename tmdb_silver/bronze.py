"""
Raw extracts.

Reads ``tmdb_5000_movies.csv`` (infos) and ``tmdb_5000_credits.csv``
(credits) into DataFrames. Nested list columns stay as their JSON text;
parsing them is the unpacker's job.
"""

import logging
from pathlib import Path
from typing import Sequence, Union

import pandas as pd

from .catalog import CREDITS_COLUMNS, INFOS_COLUMNS
from .errors import RawSourceError


logger = logging.getLogger(__name__)


def read_extract(path: Union[str, Path], required: Sequence[str], name: str) -> pd.DataFrame:
    """
    Read one CSV extract and check its columns.

    Only empty cells count as missing: titles such as "NaN" or "Null"
    must survive as text.

    Raises:
        RawSourceError: If the file can't be read or lacks a required column
    """
    path = Path(path)
    if not path.exists():
        raise RawSourceError(f"{name} extract not found: {path}")

    try:
        frame = pd.read_csv(path, keep_default_na=False, na_values=[""], encoding="utf-8")
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise RawSourceError(f"Cannot parse {name} extract {path.name}: {e}") from e

    missing = [column for column in required if column not in frame.columns]
    if missing:
        raise RawSourceError(f"{name} extract {path.name} lacks columns: {missing}")

    logger.info("Read %s extract %s: %d rows", name, path.name, len(frame))
    return frame


def read_infos(path: Union[str, Path]) -> pd.DataFrame:
    """Relation A: one row per movie with scalar and nested-list columns."""
    return read_extract(path, INFOS_COLUMNS, "infos")


def read_credits(path: Union[str, Path]) -> pd.DataFrame:
    """Relation B: one row per movie with nested ``cast`` and ``crew`` lists."""
    return read_extract(path, CREDITS_COLUMNS, "credits")
