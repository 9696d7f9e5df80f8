"""
Nested-field unpacking.

The raw extracts store lists of records as JSON text inside a single cell,
e.g. ``[{"id": 28, "name": "Action"}, {"id": 12, "name": "Adventure"}]``.
These helpers expand one such column into flat records that carry the
parent row's natural id forward.
"""

import json
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

import pandas as pd

from .errors import MalformedNestedField


logger = logging.getLogger(__name__)


def is_missing(value: Any) -> bool:
    """True for None, NaN and blank strings."""
    if value is None or value is pd.NA or value is pd.NaT:
        return True
    if isinstance(value, float) and value != value:  # NaN
        return True
    return isinstance(value, str) and not value.strip()


def parse_nested(value: Any, field: str, parent_id: Any = None) -> List[Dict[str, Any]]:
    """
    Parse one nested-list cell into a list of dictionaries.

    Args:
        value: JSON text, an already parsed list, or a missing value
        field: Column name (for error messages)
        parent_id: Natural id of the owning row (for error messages)

    Returns:
        List of nested records; empty for a missing cell or ``[]``

    Raises:
        MalformedNestedField: If the cell is not a JSON list of objects
    """
    if isinstance(value, list):
        items = value
    elif is_missing(value):
        return []
    elif isinstance(value, str):
        try:
            items = json.loads(value)
        except json.JSONDecodeError as e:
            raise MalformedNestedField(field, parent_id, f"invalid JSON ({e.msg} at char {e.pos})") from e
    else:
        raise MalformedNestedField(field, parent_id, f"unexpected {type(value).__name__} value")

    if not isinstance(items, list):
        raise MalformedNestedField(field, parent_id, f"expected a list, got {type(items).__name__}")

    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise MalformedNestedField(
                field, parent_id, f"element {position} is {type(item).__name__}, not an object")
    return items


def iter_nested(
    row: Mapping[str, Any],
    field: str,
    attributes: Sequence[str],
    parent_key: str = "id",
    parent_column: str = "movie_id",
) -> Iterator[Dict[str, Any]]:
    """
    Yield one flat record per element of ``row[field]``, in source order.

    A nested record missing one of ``attributes`` yields None for it.
    """
    parent_id = row.get(parent_key)
    for item in parse_nested(row.get(field), field, parent_id):
        record = {parent_column: parent_id}
        for attribute in attributes:
            record[attribute] = item.get(attribute)
        yield record


def unpack_field(
    frame: pd.DataFrame,
    field: str,
    attributes: Sequence[str],
    parent_key: str = "id",
    parent_column: str = "movie_id",
) -> pd.DataFrame:
    """
    Unpack a nested column of a whole raw table.

    Args:
        frame: Raw table (one row per movie)
        field: Nested-list column to expand
        attributes: Sub-fields to keep from every nested record
        parent_key: Natural id column of ``frame``
        parent_column: Name of the parent id in the output

    Returns:
        DataFrame with columns ``[parent_column, *attributes]`` (object dtype,
        so ids keep their source type and missing values stay None)
    """
    columns = [parent_column, *attributes]
    records: List[Dict[str, Any]] = []
    for row in frame.to_dict(orient="records"):
        records.extend(iter_nested(row, field, attributes, parent_key, parent_column))

    unpacked = pd.DataFrame(records, columns=columns, dtype=object)
    logger.debug("Unpacked %s: %d rows -> %d records", field, len(frame), len(unpacked))
    return unpacked


def coerce_column(frame: pd.DataFrame, column: str, key_type: type, field: Optional[str] = None) -> pd.DataFrame:
    """
    Cast the non-missing values of ``column`` to ``key_type`` in place.

    Raises:
        MalformedNestedField: If a value can't be converted
    """
    def convert(value: Any) -> Any:
        if is_missing(value):
            return None
        if isinstance(value, key_type) and not isinstance(value, bool):
            return value
        try:
            if key_type is int and isinstance(value, float) and not value.is_integer():
                raise ValueError(f"non-integral id {value}")
            return key_type(value)
        except (TypeError, ValueError) as e:
            raise MalformedNestedField(field or column, None, f"bad {column} value {value!r}: {e}") from e

    frame[column] = pd.Series([convert(v) for v in frame[column]], index=frame.index, dtype=object)
    return frame

