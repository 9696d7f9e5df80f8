"""
============================================================================
TMDB SILVER - Build Pipeline
============================================================================
Turns the two raw extracts into the 20 silver tables.

🔧 STAGES (in order):
    1. Clean scalar movie attributes and ratings
    2. Unpack the nested-list columns (genres, keywords, companies,
       countries, spoken languages, cast, crew)
    3. Stage entities by natural id
    4. Merge duplicate companies from the equivalence map
    5. Number entities (surrogates) and classify people
    6. Re-key link rows to surrogate ids
    7. Check every constraint, then write in one transaction

Entities are always complete before any link touching them is re-keyed.
============================================================================
"""

import logging
from typing import Dict, Mapping, Optional, Tuple

import pandas as pd
from sqlalchemy.engine import Engine

from .bronze import read_credits, read_infos
from .catalog import (
    CAST_ATTRIBUTES, COMPANIES, CREW_ATTRIBUTES, GENDERS, LANGUAGES,
    NESTED_ENTITIES, PRODUCTION_STATUSES, ROLES, NestedEntity,
)
from .cleaning import (
    alias_codes, clean_movies, clean_ratings, complete_languages,
    fill_character_names, load_language_reference, trim_names,
)
from .config import Config, PipelineConfig
from .integrity import check_tables, verify_database, write_tables
from .links import KeyMapping, materialize_links, rekey
from .merge import load_equivalence_map, merge_duplicates
from .resolve import (
    ResolvedEntities, assign_surrogates, keep_natural_keys, resolve_entities, stage_entities,
)
from .roles import classify_people
from .schema import create_db_engine
from .unpack import coerce_column, unpack_field


logger = logging.getLogger(__name__)


def lookup_table(values: Mapping[int, str], id_column: str, name_column: str) -> pd.DataFrame:
    return pd.DataFrame({id_column: list(values), name_column: list(values.values())})


def resolve_movies(infos: pd.DataFrame, settings: PipelineConfig) -> ResolvedEntities:
    movies = clean_movies(infos, settings.language_aliases)
    extra = [column for column in movies.columns if column not in ("tmdb_id", "title")]
    staged = stage_entities(movies, "tmdb_id", "title", extra, entity="movies")
    columns = {column: column for column in staged.columns}
    return assign_surrogates(staged, "tmdb_id", "movie_id", columns, entity="movies")


def unpack_nested(infos: pd.DataFrame, field: NestedEntity, settings: PipelineConfig) -> pd.DataFrame:
    """Flat ``movie_id, <key>, name`` records of one nested column."""
    records = unpack_field(infos, field.source_field, (field.key_path, "name"))
    coerce_column(records, "movie_id", int, "id")
    coerce_column(records, field.key_path, field.key_type, field.source_field)
    records["name"] = trim_names(records["name"])
    if field is LANGUAGES:
        records[field.key_path] = alias_codes(records[field.key_path], settings.language_aliases)
    return records


def resolve_nested(
    field: NestedEntity,
    records: pd.DataFrame,
    equivalences: Mapping[int, int],
    language_reference: pd.DataFrame,
) -> Tuple[ResolvedEntities, pd.DataFrame]:
    """
    Resolve the entity of one nested column and keep its link records.

    Returns:
        The resolved entities and the natural-id link records
    """
    key = field.key_path
    if field is LANGUAGES:
        # cn and zh fold together, so names may disagree; the reference list names them
        staged = stage_entities(records, key, None, ("name",), entity=field.entity_table)
        staged = complete_languages(staged, language_reference, key)
        columns = {key: field.id_column, "name": field.name_column, "name_en": "language_name_en"}
    else:
        staged = stage_entities(records, key, "name", entity=field.entity_table)
        columns = {key: "tmdb_id", "name": field.name_column}

    links = records[["movie_id", key]]
    if field is COMPANIES:
        merged = merge_duplicates(
            staged, {field.link_table: links}, equivalences, key, entity=field.entity_table)
        staged, links = merged.entities, merged.links[field.link_table]

    if field.surrogate:
        entities = assign_surrogates(staged, key, field.id_column, columns, entity=field.entity_table)
    else:
        entities = keep_natural_keys(staged, key, field.id_column, columns, entity=field.entity_table)
    return entities, links


def unpack_credits(credits: pd.DataFrame, settings: PipelineConfig) -> Dict[str, pd.DataFrame]:
    """Cast and crew records with cleaned names and placeholder characters."""
    cast = unpack_field(credits, "cast", CAST_ATTRIBUTES, parent_key="movie_id")
    crew = unpack_field(credits, "crew", CREW_ATTRIBUTES, parent_key="movie_id")

    for records, field in ((cast, "cast"), (crew, "crew")):
        coerce_column(records, "movie_id", int, "movie_id")
        coerce_column(records, "id", int, field)
        records["name"] = trim_names(records["name"])

    cast["character"] = fill_character_names(cast["character"], settings.missing_character_name)
    crew["department"] = trim_names(crew["department"])
    crew["job"] = trim_names(crew["job"])
    return {"cast": cast, "crew": crew}


def build_tables(
    infos: pd.DataFrame,
    credits: pd.DataFrame,
    equivalences: Mapping[int, int],
    language_reference: pd.DataFrame,
    settings: Optional[PipelineConfig] = None,
) -> Dict[str, pd.DataFrame]:
    """
    Build every silver table in memory.

    Args:
        infos: Raw infos extract (one row per movie)
        credits: Raw credits extract (one row per movie)
        equivalences: Superseded -> canonical TMDB company ids
        language_reference: ISO 639-1 reference list
        settings: Pipeline settings (defaults when omitted)

    Returns:
        Table name -> DataFrame, columns named as in the schema

    Raises:
        PipelineError: Any resolution, merge or re-keying failure
    """
    settings = settings or PipelineConfig()

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------
    movies = resolve_movies(infos, settings)

    nested = {}
    for field in NESTED_ENTITIES:
        records = unpack_nested(infos, field, settings)
        nested[field.entity_table] = resolve_nested(field, records, equivalences, language_reference)

    credit_records = unpack_credits(credits, settings)
    cast, crew = credit_records["cast"], credit_records["crew"]
    people = classify_people(cast, crew, settings.unspecified_gender)
    departments = resolve_entities(crew, "departments", "department", "department_id",
                                   name_column="department_name")
    jobs = resolve_entities(crew, "jobs", "job", "job_id", name_column="job_name")

    languages, _ = nested[LANGUAGES.entity_table]
    movies.table["original_language_id"] = rekey(
        movies.table, "original_language_id", languages, allow_missing=True)

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------
    movie_key = KeyMapping("movie_id", "movie_id", movies)
    tables: Dict[str, pd.DataFrame] = {
        "genders": lookup_table(GENDERS, "gender_id", "gender_name"),
        "roles": lookup_table(ROLES, "role_id", "role_name"),
        "production_statuses": lookup_table(PRODUCTION_STATUSES, "prod_status_id", "prod_status_name"),
        "movies": movies.table,
        "people": people.table,
        "departments": departments.table,
        "jobs": jobs.table,
    }

    for field in NESTED_ENTITIES:
        entities, links = nested[field.entity_table]
        tables[field.entity_table] = entities.table
        tables[field.link_table] = materialize_links(
            links,
            [movie_key, KeyMapping(field.key_path, field.id_column, entities)],
            link=field.link_table,
        )

    tables["movie_ratings"] = materialize_links(
        clean_ratings(infos),
        [KeyMapping("tmdb_id", "movie_id", movies)],
        {"popularity": "popularity", "vote_average": "vote_average", "vote_count": "vote_count"},
        link="movie_ratings",
    )
    tables["movie_cast"] = materialize_links(
        cast,
        [movie_key, KeyMapping("id", "person_id", people)],
        {"character": "character_name"},
        link="movie_cast",
    )
    tables["movie_crew"] = materialize_links(
        crew,
        [
            movie_key,
            KeyMapping("id", "person_id", people),
            KeyMapping("department", "department_id", departments),
            KeyMapping("job", "job_id", jobs),
        ],
        link="movie_crew",
    )
    return tables


def rebuild(
    engine: Engine,
    infos: pd.DataFrame,
    credits: pd.DataFrame,
    equivalences: Mapping[int, int],
    language_reference: pd.DataFrame,
    settings: Optional[PipelineConfig] = None,
) -> Dict[str, int]:
    """
    Full rebuild: build, check, then replace the silver schema.

    Nothing is written unless every table passes the checks.

    Returns:
        Row count per table
    """
    settings = settings or PipelineConfig()
    tables = build_tables(infos, credits, equivalences, language_reference, settings)
    check_tables(tables)
    return write_tables(engine, tables, batch_size=settings.batch_size,
                        show_progress=settings.show_progress)


def run(config: Config, verify: bool = False) -> Dict[str, int]:
    """
    Rebuild the silver database from the files named in ``config``.

    Args:
        config: Full configuration
        verify: Read the tables back and re-check them after writing

    Returns:
        Row count per table
    """
    infos = read_infos(config.paths.infos_file)
    credits = read_credits(config.paths.credits_file)
    equivalences = load_equivalence_map(config.paths.company_merge_map)
    language_reference = load_language_reference(config.paths.language_reference)

    database_path = config.database.database_path
    if database_path is not None:
        database_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(config.database.database_url, echo=config.database.echo)
    try:
        counts = rebuild(engine, infos, credits, equivalences, language_reference, config.pipeline)
        if verify:
            verify_database(engine)
            logger.info("Verification passed")
    finally:
        engine.dispose()
    return counts
