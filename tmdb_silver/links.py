"""
Link materialization: re-key association rows from natural ids to the
surrogate ids handed out by the resolvers.

Every participating entity table must be fully resolved before its links are
re-keyed; a natural id without an entity is an upstream bug and is reported,
never dropped.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence

import pandas as pd

from .errors import DanglingReference
from .resolve import ResolvedEntities
from .unpack import is_missing


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyMapping:
    """Natural-id column of the unpacked records and where its surrogate goes."""

    source: str
    target: str
    entities: ResolvedEntities


def rekey(
    frame: pd.DataFrame,
    source: str,
    entities: ResolvedEntities,
    allow_missing: bool = False,
) -> pd.Series:
    """
    Translate one natural-id column through an entity lookup.

    With ``allow_missing`` a missing value stays None (nullable reference
    columns such as a movie's original language); link keys never allow it.

    Raises:
        DanglingReference: If any value has no entity
    """
    lookup = entities.lookup
    mapped: List[Any] = []
    dangling: List[Any] = []
    for value in frame[source]:
        if allow_missing and is_missing(value):
            mapped.append(None)
            continue
        surrogate = None if is_missing(value) else lookup.get(value)
        if surrogate is None:
            dangling.append(None if is_missing(value) else value)
        mapped.append(surrogate)

    if dangling:
        raise DanglingReference(entities.entity, source, list(dict.fromkeys(dangling)))
    if allow_missing:
        return pd.Series(mapped, index=frame.index, dtype=object)
    return pd.Series(mapped, index=frame.index)


def materialize_links(
    records: pd.DataFrame,
    keys: Sequence[KeyMapping],
    attributes: Optional[Mapping[str, str]] = None,
    link: str = "link",
) -> pd.DataFrame:
    """
    Build a link table keyed by surrogate ids.

    Args:
        records: Unpacked association records holding natural ids
        keys: One KeyMapping per participating entity
        attributes: Extra record column -> link column (e.g. character -> character_name)
        link: Link table name (for logs)

    Returns:
        DataFrame with the key columns followed by the attribute columns;
        rows identical on all columns are collapsed to one
    """
    attributes = attributes or {}
    table = pd.DataFrame(index=records.index)
    for key in keys:
        table[key.target] = rekey(records, key.source, key.entities)
    for source, target in attributes.items():
        table[target] = records[source]

    materialized = table.drop_duplicates().reset_index(drop=True)
    collapsed = len(table) - len(materialized)
    logger.info(
        "Linked   %-22s %7d rows%s", link, len(materialized),
        f" ({collapsed} duplicates collapsed)" if collapsed else "",
    )
    return materialized
