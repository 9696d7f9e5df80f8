"""
Duplicate-entity merging from an explicit equivalence map.

Some production companies appear under several TMDB ids (same name, or a
case/accent variant). They are never matched automatically: a versioned
list of ``(superseded_id, canonical_id)`` pairs names them. Merging rewrites
the link rows first and deletes the superseded entities afterwards, so no
link is orphaned.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import pandas as pd

from .errors import RawSourceError, UnknownSupersededId


logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    entities: pd.DataFrame
    links: Dict[str, pd.DataFrame]
    merged: Dict[Any, Any] = field(default_factory=dict)   # pairs applied in this run


def load_equivalence_map(path: Union[str, Path]) -> Dict[int, int]:
    """
    Read a ``superseded_id,canonical_id`` CSV file.

    Raises:
        RawSourceError: If the file is missing or malformed, or maps an id
            twice or in a cycle
    """
    path = Path(path)
    if not path.exists():
        raise RawSourceError(f"Equivalence map not found: {path}")

    frame = pd.read_csv(path, comment="#")
    missing = {"superseded_id", "canonical_id"} - set(frame.columns)
    if missing:
        raise RawSourceError(f"{path.name} lacks columns: {sorted(missing)}")

    try:
        pairs = [(int(s), int(c)) for s, c in zip(frame["superseded_id"], frame["canonical_id"])]
    except (TypeError, ValueError) as e:
        raise RawSourceError(f"{path.name} holds a non-integer id: {e}") from e

    try:
        return flatten_equivalences(pairs)
    except ValueError as e:
        raise RawSourceError(f"{path.name}: {e}") from e


def flatten_equivalences(pairs: Iterable[Tuple[Any, Any]]) -> Dict[Any, Any]:
    """
    Build superseded -> canonical, following chains (a -> b, b -> c gives a -> c).

    Raises:
        ValueError: On a superseded id mapped twice or a cycle
    """
    direct: Dict[Any, Any] = {}
    for superseded, canonical in pairs:
        if superseded in direct and direct[superseded] != canonical:
            raise ValueError(f"Id {superseded} is mapped to both {direct[superseded]} and {canonical}")
        direct[superseded] = canonical

    flattened = {}
    for superseded in direct:
        seen = {superseded}
        target = direct[superseded]
        while target in direct:
            if target in seen:
                raise ValueError(f"Cyclic equivalence through id {target}")
            seen.add(target)
            target = direct[target]
        flattened[superseded] = target
    return flattened


def merge_duplicates(
    entities: pd.DataFrame,
    links: Mapping[str, pd.DataFrame],
    equivalences: Mapping[Any, Any],
    key: str,
    link_key: Optional[str] = None,
    entity: str = "entity",
) -> MergeResult:
    """
    Collapse superseded entities into their canonical entity.

    A pair whose superseded id is no longer in ``entities`` and no longer
    referenced by any link row counts as already merged, so running the
    merge twice gives the same tables as running it once.

    Args:
        entities: Entity table keyed by ``key``
        links: Link tables referencing the entity through ``link_key``
        equivalences: superseded id -> canonical id
        key: Id column of ``entities``
        link_key: Id column of the link tables (defaults to ``key``)
        entity: Entity name (for errors and logs)

    Raises:
        UnknownSupersededId: If a canonical id is unknown, or a superseded id is
            unknown to the entity table while links still reference it
    """
    link_key = link_key or key
    existing = set(entities[key].tolist())
    referenced = set()
    for frame in links.values():
        referenced.update(frame[link_key].tolist())

    unknown = [canonical for canonical in equivalences.values() if canonical not in existing]
    unknown += [
        superseded for superseded in equivalences
        if superseded not in existing and superseded in referenced
    ]
    if unknown:
        raise UnknownSupersededId(entity, list(dict.fromkeys(unknown)))

    pending = {s: c for s, c in equivalences.items() if s in existing}
    skipped = sorted(set(equivalences) - set(pending))
    if skipped:
        logger.warning("Skipped %d %s pairs whose superseded id is absent: %s", len(skipped), entity, skipped)

    # 1. re-point link rows, 2. collapse rows that became identical
    merged_links = {}
    for name, frame in links.items():
        rewritten = frame.copy()
        rewritten[link_key] = [pending.get(v, v) for v in rewritten[link_key]]
        merged_links[name] = rewritten.drop_duplicates().reset_index(drop=True)

    # 3. only now delete the superseded entities
    kept = entities.loc[[v not in pending for v in entities[key]]].reset_index(drop=True)

    if pending:
        logger.info("Merged %d duplicate %s into their canonical ids", len(pending), entity)
        logger.debug("Merged %s ids: %s", entity, pending)
    return MergeResult(entities=kept, links=merged_links, merged=pending)
