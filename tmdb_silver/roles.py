"""
People resolution with a derived role.

People are observed in two contexts of the credits extract: the ``cast``
list and the ``crew`` list. Both are resolved into one ``people`` table and
each person gets a role from where they were seen:

    cast and crew -> ROLE_BOTH (0)
    cast only     -> ROLE_CAST (1)
    crew only     -> ROLE_CREW (2)

TMDB carries a few people twice with the same name, once with the
"not specified" gender placeholder and once with their actual gender. Among
rows sharing a natural id, placeholder rows are dropped whenever another row
carries a real gender.
"""

import logging
from typing import Any

import pandas as pd

from .catalog import ROLE_BOTH, ROLE_CAST, ROLE_CREW
from .errors import DuplicateNaturalId, RoleClassificationError
from .resolve import ResolvedEntities, assign_surrogates, find_conflicts, first_present
from .unpack import coerce_column, is_missing


logger = logging.getLogger(__name__)


def derive_role(in_cast: bool, in_crew: bool, natural_id: Any = None) -> int:
    """Map cast/crew presence to a role id."""
    if in_cast and in_crew:
        return ROLE_BOTH
    if in_cast:
        return ROLE_CAST
    if in_crew:
        return ROLE_CREW
    raise RoleClassificationError([natural_id])


def drop_placeholder_genders(
    people: pd.DataFrame,
    natural_key: str = "id",
    gender_key: str = "gender",
    unspecified_gender: int = 0,
) -> pd.DataFrame:
    """
    Drop placeholder-gender rows for ids that also have a real gender.

    Rows of ids seen only with the placeholder are kept.
    """
    is_placeholder = people[gender_key] == unspecified_gender
    has_real_gender = (~is_placeholder).groupby(people[natural_key], sort=False).transform("any")
    superseded = is_placeholder & has_real_gender

    if superseded.any():
        ids = people.loc[superseded, natural_key].drop_duplicates().tolist()
        logger.info("Dropped placeholder gender for %d people: %s", len(ids), ids[:10])
    return people.loc[~superseded]


def classify_people(
    cast: pd.DataFrame,
    crew: pd.DataFrame,
    unspecified_gender: int = 0,
    natural_key: str = "id",
    name_key: str = "name",
    gender_key: str = "gender",
) -> ResolvedEntities:
    """
    Merge cast-context and crew-context person records into one table.

    Args:
        cast: Unpacked cast records (``natural_key``, ``name_key``, ``gender_key``, ...)
        crew: Unpacked crew records with the same columns
        unspecified_gender: Placeholder gender code

    Returns:
        ResolvedEntities for ``people`` with columns
        person_id, tmdb_id, person_name, gender_id, role_id

    Raises:
        DuplicateNaturalId: Same id with two names, or two real genders
        RoleClassificationError: Person without cast or crew presence
    """
    columns = [natural_key, name_key, gender_key]
    flagged = pd.concat(
        [
            cast[columns].assign(in_cast=True, in_crew=False),
            crew[columns].assign(in_cast=False, in_crew=True),
        ],
        ignore_index=True,
    )
    flagged = flagged.loc[[not is_missing(v) for v in flagged[natural_key]]].reset_index(drop=True)
    flagged[gender_key] = [unspecified_gender if is_missing(g) else g for g in flagged[gender_key]]
    coerce_column(flagged, gender_key, int, "gender")

    conflicts = find_conflicts(flagged, natural_key, name_key)
    if conflicts:
        raise DuplicateNaturalId("people", conflicts, name_key)

    # Presence is taken over every row, before any gender row is dropped
    presence = flagged.groupby(natural_key, sort=False).agg(
        in_cast=("in_cast", "any"), in_crew=("in_crew", "any"))

    resolved = drop_placeholder_genders(flagged, natural_key, gender_key, unspecified_gender)
    conflicts = find_conflicts(resolved, natural_key, gender_key)
    if conflicts:
        raise DuplicateNaturalId("people", conflicts, gender_key)

    staged = resolved.drop_duplicates(subset=[natural_key], keep="first")[columns].reset_index(drop=True)
    staged[name_key] = first_present(flagged, natural_key, name_key, staged[natural_key].tolist())
    staged["role_id"] = [
        derive_role(bool(presence.at[person, "in_cast"]), bool(presence.at[person, "in_crew"]), person)
        for person in staged[natural_key]
    ]

    people = assign_surrogates(
        staged,
        natural_key,
        "person_id",
        {natural_key: "tmdb_id", name_key: "person_name", gender_key: "gender_id", "role_id": "role_id"},
        entity="people",
    )
    role_counts = people.table["role_id"].value_counts().to_dict()
    logger.info(
        "Roles: %d cast only, %d crew only, %d both",
        role_counts.get(ROLE_CAST, 0), role_counts.get(ROLE_CREW, 0), role_counts.get(ROLE_BOTH, 0),
    )
    return people
