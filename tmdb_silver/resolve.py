"""
Entity resolution: deduplicate unpacked records by natural id and give every
entity a dense surrogate id.

Resolution happens in two steps so that explicit duplicate merges can run
between them:

    staged = stage_entities(records, ...)       # one row per natural id
    resolved = assign_surrogates(staged, ...)   # ids 1..N + natural -> surrogate lookup
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence

import pandas as pd

from .errors import DuplicateNaturalId
from .unpack import is_missing


logger = logging.getLogger(__name__)


@dataclass
class ResolvedEntities:
    """A finished entity table and the lookup used to re-key link rows."""

    entity: str                                   # table name
    table: pd.DataFrame
    id_column: str                                # key column of ``table``
    lookup: Dict[Any, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.table)


def present_values(staged: pd.DataFrame, attribute: str) -> pd.DataFrame:
    """Rows whose ``attribute`` is neither missing nor blank."""
    return staged.loc[[not is_missing(v) for v in staged[attribute]]]


def find_conflicts(staged: pd.DataFrame, natural_key: str, attribute: str) -> list:
    """Natural ids that carry more than one distinct non-missing value of ``attribute``."""
    known = present_values(staged, attribute)
    if known.empty:
        return []
    distinct = known[[natural_key, attribute]].drop_duplicates()
    counts = distinct.groupby(natural_key, sort=False)[attribute].size()
    return counts[counts > 1].index.tolist()


def first_present(records: pd.DataFrame, natural_key: str, attribute: str, keys: Sequence[Any]) -> pd.Series:
    """First non-missing ``attribute`` of each natural id in ``keys``; None when never given."""
    known = present_values(records, attribute).drop_duplicates(subset=[natural_key], keep="first")
    values = dict(zip(known[natural_key].tolist(), known[attribute].tolist()))
    return pd.Series([values.get(key) for key in keys], dtype=object)


def stage_entities(
    records: pd.DataFrame,
    natural_key: str,
    name_key: Optional[str] = None,
    extra: Sequence[str] = (),
    entity: str = "entity",
) -> pd.DataFrame:
    """
    Deduplicate unpacked records on their natural id.

    Rows keep the order in which each natural id was first seen; records
    without a natural id can't become entities and are left out (link rows
    pointing at them surface later as dangling references).

    Args:
        records: Unpacked records, possibly from several sources
        natural_key: Column holding the natural id
        name_key: Display-name column; None when the natural id is the name
        extra: Further attribute columns, taken from the first occurrence
        entity: Entity table name (for errors and logs)

    Returns:
        DataFrame with columns ``[natural_key, name_key?, *extra]``

    Raises:
        DuplicateNaturalId: If one natural id appears with two different names
    """
    columns = [natural_key] + ([name_key] if name_key else []) + list(extra)
    present = records.loc[[not is_missing(v) for v in records[natural_key]], columns]

    if name_key:
        conflicts = find_conflicts(present, natural_key, name_key)
        if conflicts:
            raise DuplicateNaturalId(entity, conflicts, name_key)

    staged = present.drop_duplicates(subset=[natural_key], keep="first").reset_index(drop=True)
    if name_key:
        # a record without a name never hides a later one that has it
        staged[name_key] = first_present(present, natural_key, name_key, staged[natural_key].tolist())
    logger.debug("Staged %s: %d records -> %d entities", entity, len(records), len(staged))
    return staged


def assign_surrogates(
    staged: pd.DataFrame,
    natural_key: str,
    id_column: str,
    columns: Mapping[str, str],
    entity: str = "entity",
) -> ResolvedEntities:
    """
    Number staged entities 1..N in row order.

    Args:
        staged: Output of ``stage_entities`` (one row per natural id)
        natural_key: Column holding the natural id
        id_column: Name of the new surrogate key column
        columns: Staged column -> output column; staged columns not listed are dropped
        entity: Entity table name

    Returns:
        ResolvedEntities whose lookup maps natural id -> surrogate id
    """
    surrogate_ids = list(range(1, len(staged) + 1))
    table = staged[list(columns)].rename(columns=dict(columns))
    table.insert(0, id_column, pd.Series(surrogate_ids, index=staged.index, dtype="int64"))

    lookup = dict(zip(staged[natural_key].tolist(), surrogate_ids))
    logger.info("Resolved %-12s %6d entities", entity, len(table))
    return ResolvedEntities(entity=entity, table=table.reset_index(drop=True), id_column=id_column, lookup=lookup)


def keep_natural_keys(
    staged: pd.DataFrame,
    natural_key: str,
    id_column: str,
    columns: Mapping[str, str],
    entity: str = "entity",
) -> ResolvedEntities:
    """Use the natural id itself as key (two-letter ISO codes)."""
    mapping = {natural_key: id_column, **{k: v for k, v in columns.items() if k != natural_key}}
    table = staged[list(mapping)].rename(columns=mapping).reset_index(drop=True)

    lookup = {key: key for key in staged[natural_key].tolist()}
    logger.info("Resolved %-12s %6d entities (natural keys)", entity, len(table))
    return ResolvedEntities(entity=entity, table=table, id_column=id_column, lookup=lookup)


def resolve_entities(
    records: pd.DataFrame,
    entity: str,
    natural_key: str,
    id_column: str,
    name_key: Optional[str] = None,
    name_column: Optional[str] = None,
    extra: Sequence[str] = (),
    surrogate: bool = True,
    natural_column: str = "tmdb_id",
) -> ResolvedEntities:
    """
    Stage and number entities in one call.

    When ``name_key`` is None the natural id is the display name itself
    (departments, jobs) and is written to ``name_column``; otherwise the
    natural id is kept in ``natural_column`` for traceability.
    """
    staged = stage_entities(records, natural_key, name_key, extra, entity)
    columns = output_columns(natural_key, name_key, name_column, extra, natural_column)

    if not surrogate:
        return keep_natural_keys(staged, natural_key, id_column, columns, entity)
    return assign_surrogates(staged, natural_key, id_column, columns, entity)


def output_columns(
    natural_key: str,
    name_key: Optional[str],
    name_column: Optional[str],
    extra: Sequence[str] = (),
    natural_column: str = "tmdb_id",
) -> Dict[str, str]:
    """Staged column -> entity table column."""
    if name_key is None:
        columns = {natural_key: name_column or natural_key}
    else:
        columns = {natural_key: natural_column, name_key: name_column or name_key}
    columns.update({column: column for column in extra})
    return columns
