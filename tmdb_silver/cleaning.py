"""
Value cleaning for the silver tables.

TMDB encodes several missing values as zeros or empty strings (runtime 0,
budget 0, release date ''), uses the retired ``cn`` language code next to
``zh``, and leaves stray whitespace in names. These rules were found while
profiling the extracts and are applied before entities are resolved.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Union

import pandas as pd

from .catalog import STATUS_IDS
from .errors import RawSourceError
from .unpack import coerce_column, is_missing


logger = logging.getLogger(__name__)


def trim_names(values: Iterable[Any]) -> List[Any]:
    """Strip surrounding whitespace from strings; other values pass through."""
    return [v.strip() if isinstance(v, str) else v for v in values]


def blank_to_null(values: Iterable[Any]) -> List[Any]:
    """Trim strings and turn blanks (and NaN) into None."""
    return [None if is_missing(v) else (v.strip() if isinstance(v, str) else v) for v in values]


def zero_to_null(series: pd.Series) -> pd.Series:
    """Numeric column where 0 means 'unknown' -> nullable Int64."""
    values = pd.to_numeric(series, errors="coerce").round()
    return values.where(values != 0).astype("Int64")


def parse_release_dates(series: pd.Series) -> List[Any]:
    """ISO dates -> datetime.date; empty or impossible dates (0000-00-00) -> None."""
    parsed = pd.to_datetime(series, errors="coerce", format="%Y-%m-%d")
    return [None if pd.isna(value) else value.date() for value in parsed]


def alias_codes(values: Iterable[Any], aliases: Mapping[str, str]) -> List[Any]:
    """Replace retired language codes (e.g. cn -> zh)."""
    cleaned = []
    for value in values:
        if isinstance(value, str):
            value = value.strip()
            value = aliases.get(value, value)
        cleaned.append(None if is_missing(value) else value)
    return cleaned


def map_statuses(values: Iterable[Any]) -> List[Any]:
    """Production status text -> production status id."""
    ids = []
    unknown = set()
    for value in values:
        if is_missing(value):
            ids.append(None)
            continue
        status_id = STATUS_IDS.get(str(value).strip())
        if status_id is None:
            unknown.add(value)
        ids.append(status_id)
    if unknown:
        logger.warning("Unknown production status values left empty: %s", sorted(unknown))
    return ids


def fill_character_names(values: Iterable[Any], placeholder: str) -> List[str]:
    """Character names are part of the cast key, so blanks get a placeholder."""
    return [placeholder if is_missing(v) else str(v).strip() for v in values]


def as_text(values: Iterable[Any], index: pd.Index) -> pd.Series:
    """Object column, so missing text stays None instead of NaN."""
    return pd.Series(list(values), index=index, dtype=object)


def clean_movies(infos: pd.DataFrame, language_aliases: Mapping[str, str]) -> pd.DataFrame:
    """
    Scalar movie attributes, one row per infos row, keyed by ``tmdb_id``.

    The original language stays a natural ISO code here; it is checked
    against the languages table once that table is resolved.
    """
    index = infos.index
    movies = pd.DataFrame({
        "tmdb_id": as_text(infos["id"], index),
        "title": as_text(trim_names(infos["title"]), index),
        "original_title": as_text(trim_names(infos["original_title"]), index),
        "release_date": parse_release_dates(infos["release_date"]),
        "runtime": zero_to_null(infos["runtime"]),
        "overview": as_text(blank_to_null(infos["overview"]), index),
        "tagline": as_text(blank_to_null(infos["tagline"]), index),
        "budget": zero_to_null(infos["budget"]),
        "revenue": zero_to_null(infos["revenue"]),
        "homepage": as_text(blank_to_null(infos["homepage"]), index),
        "original_language_id": as_text(alias_codes(infos["original_language"], language_aliases), index),
        "prod_status_id": pd.Series(map_statuses(infos["status"]), index=infos.index, dtype="Int64"),
    }, index=infos.index)
    coerce_column(movies, "tmdb_id", int, "id")
    return movies.reset_index(drop=True)


def clean_ratings(infos: pd.DataFrame) -> pd.DataFrame:
    """Engagement figures keyed by ``tmdb_id``; a rating without votes is no rating."""
    vote_count = pd.to_numeric(infos["vote_count"], errors="coerce").round().astype("Int64")
    vote_average = pd.to_numeric(infos["vote_average"], errors="coerce")

    ratings = pd.DataFrame({
        "tmdb_id": as_text(infos["id"], infos.index),
        "popularity": pd.to_numeric(infos["popularity"], errors="coerce"),
        "vote_average": vote_average.mask(vote_count.fillna(0) == 0),
        "vote_count": vote_count,
    }, index=infos.index)
    coerce_column(ratings, "tmdb_id", int, "id")
    return ratings.reset_index(drop=True)


def load_language_reference(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read the ISO 639-1 reference list (code, endonym, English name).

    Raises:
        RawSourceError: If the file is missing or lacks a column
    """
    path = Path(path)
    if not path.exists():
        raise RawSourceError(f"Language reference not found: {path}")

    # Codes like "no" or "nan"-ish names must stay strings
    reference = pd.read_csv(path, dtype=str, keep_default_na=False)
    expected = ["language_id", "language_name", "language_name_en"]
    missing = set(expected) - set(reference.columns)
    if missing:
        raise RawSourceError(f"{path.name} lacks columns: {sorted(missing)}")

    reference = reference[expected].copy()
    for column in expected:
        reference[column] = as_text(blank_to_null(reference[column]), reference.index)
    return reference


def complete_languages(spoken: pd.DataFrame, reference: pd.DataFrame, key: str = "iso_639_1") -> pd.DataFrame:
    """
    Languages staged from the data, completed by the reference list.

    Reference rows come first and supply both names; codes only seen in the
    data keep their source name and get no English name.

    Returns:
        DataFrame with columns ``[key, name, name_en]``
    """
    known = reference.rename(columns={
        "language_id": key, "language_name": "name", "language_name_en": "name_en"})
    extra = spoken.loc[~spoken[key].isin(set(known[key])), [key, "name"]].copy()
    extra["name_en"] = None
    if len(extra):
        logger.warning("Languages missing from the reference list: %s", extra[key].tolist())
    return pd.concat([known, extra], ignore_index=True)
