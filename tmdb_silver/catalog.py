"""
Declarative description of what gets unpacked from the raw extracts.

Each nested-list column of the infos extract becomes one entity table and one
link table. The pipeline walks NESTED_ENTITIES with the same generic stage
functions instead of generating per-table statements.
"""

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class NestedEntity:
    """One nested-list column of the infos extract and the tables it feeds."""

    source_field: str        # raw column holding the JSON list
    entity_table: str        # deduplicated entity table
    link_table: str          # movie <-> entity link table
    key_path: str            # sub-field holding the natural id
    key_type: type           # int for TMDB ids, str for ISO codes
    prefix: str              # column prefix: genre -> genre_id, genre_name

    @property
    def id_column(self) -> str:
        return f"{self.prefix}_id"

    @property
    def name_column(self) -> str:
        return f"{self.prefix}_name"

    @property
    def surrogate(self) -> bool:
        """ISO codes are already small and stable, so they stay as keys."""
        return self.key_type is int


GENRES = NestedEntity("genres", "genres", "movie_genres", "id", int, "genre")
KEYWORDS = NestedEntity("keywords", "keywords", "movie_keywords", "id", int, "keyword")
COMPANIES = NestedEntity(
    "production_companies", "companies", "movie_companies", "id", int, "company")
COUNTRIES = NestedEntity(
    "production_countries", "countries", "movie_countries", "iso_3166_1", str, "country")
LANGUAGES = NestedEntity(
    "spoken_languages", "languages", "movie_languages", "iso_639_1", str, "language")

NESTED_ENTITIES: Tuple[NestedEntity, ...] = (GENRES, KEYWORDS, COMPANIES, COUNTRIES, LANGUAGES)


# ----------------------------------------------------------------------------
# Raw extract columns (Relation A "infos", Relation B "credits")
# ----------------------------------------------------------------------------
INFOS_COLUMNS = (
    "id", "title", "original_title", "budget", "revenue", "release_date",
    "runtime", "original_language", "status", "overview", "tagline", "homepage",
    "popularity", "vote_average", "vote_count",
) + tuple(entity.source_field for entity in NESTED_ENTITIES)

CREDITS_COLUMNS = ("movie_id", "cast", "crew")

CAST_ATTRIBUTES = ("id", "name", "gender", "character")
CREW_ATTRIBUTES = ("id", "name", "gender", "department", "job")


# ----------------------------------------------------------------------------
# Fixed lookup tables
# ----------------------------------------------------------------------------
GENDERS: Dict[int, str] = {
    0: "Not Specified",
    1: "Female",
    2: "Male",
}

ROLE_BOTH = 0
ROLE_CAST = 1
ROLE_CREW = 2

ROLES: Dict[int, str] = {
    ROLE_BOTH: "Cast and Crew Member",
    ROLE_CAST: "Cast Member",
    ROLE_CREW: "Crew Member",
}

PRODUCTION_STATUSES: Dict[int, str] = {
    0: "Rumored",
    1: "Released",
    2: "Post Production",
}

STATUS_IDS: Dict[str, int] = {name: status_id for status_id, name in PRODUCTION_STATUSES.items()}
