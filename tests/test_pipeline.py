"""End-to-end tests: raw frames -> 20 silver tables -> SQLite."""

import pandas as pd
import pytest
from sqlalchemy import inspect, text

from tmdb_silver.catalog import ROLE_BOTH, ROLE_CAST, ROLE_CREW
from tmdb_silver.errors import DanglingReference, UnknownSupersededId
from tmdb_silver.integrity import check_tables, verify_database
from tmdb_silver.pipeline import build_tables, rebuild
from tmdb_silver.schema import Base, create_db_engine


@pytest.fixture
def tables(infos, credits, equivalences, language_reference, settings):
    return build_tables(infos, credits, equivalences, language_reference, settings)


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'silver.db'}")
    yield engine
    engine.dispose()


def by_tmdb_id(frame):
    return frame.set_index("tmdb_id")


def test_all_tables_are_built(tables):
    assert sorted(tables) == sorted(Base.metadata.tables)
    assert len(tables) == 20


def test_row_counts(tables, language_reference):
    counts = {name: len(frame) for name, frame in tables.items()}

    assert counts["movies"] == 3
    assert counts["movie_ratings"] == 3
    assert counts["genres"] == 3
    assert counts["movie_genres"] == 4
    assert counts["keywords"] == 2
    assert counts["companies"] == 5
    assert counts["movie_companies"] == 5
    assert counts["countries"] == 2
    assert counts["languages"] == len(language_reference)
    assert counts["movie_languages"] == 4
    assert counts["people"] == 6
    assert counts["departments"] == 3
    assert counts["jobs"] == 3
    assert counts["movie_cast"] == 5
    assert counts["movie_crew"] == 4


def test_built_tables_pass_checks(tables):
    check_tables(tables)


def test_people_roles_and_genders(tables):
    people = by_tmdb_id(tables["people"])

    assert people.loc[30711, "gender_id"] == 1
    assert people.loc[30711, "role_id"] == ROLE_BOTH
    assert people.loc[2710, "role_id"] == ROLE_BOTH
    assert people.loc[2710, "person_name"] == "James Cameron"
    assert people.loc[65731, "role_id"] == ROLE_CAST
    assert people.loc[1704, "role_id"] == ROLE_CREW


def test_blank_character_gets_placeholder(tables):
    people = by_tmdb_id(tables["people"])
    jet_li = people.loc[30711, "person_id"]
    cast = tables["movie_cast"]

    assert cast.loc[cast["person_id"] == jet_li, "character_name"].tolist() == ["no character name"]


def test_duplicate_company_is_merged(tables):
    companies = tables["companies"]
    hero = by_tmdb_id(tables["movies"]).loc[1000, "movie_id"]
    links = tables["movie_companies"]

    assert 36390 not in set(companies["tmdb_id"])
    canonical = by_tmdb_id(companies).loc[787, "company_id"]
    assert links.loc[links["movie_id"] == hero, "company_id"].tolist() == [canonical]


def test_retired_language_code_is_folded(tables):
    movies = by_tmdb_id(tables["movies"])
    hero = movies.loc[1000, "movie_id"]
    spoken = tables["movie_languages"]

    assert movies.loc[1000, "original_language_id"] == "zh"
    assert spoken.loc[spoken["movie_id"] == hero, "language_id"].tolist() == ["zh"]
    assert "cn" not in set(tables["languages"]["language_id"])


def test_surrogates_follow_first_appearance(tables):
    assert tables["movies"]["tmdb_id"].tolist() == [19995, 285, 1000]
    assert tables["movies"]["movie_id"].tolist() == [1, 2, 3]
    assert tables["genres"][["genre_id", "tmdb_id", "genre_name"]].values.tolist() == [
        [1, 28, "Action"], [2, 12, "Adventure"], [3, 14, "Fantasy"]]


def test_credits_for_unknown_movie_fail(infos, credits, equivalences, language_reference, settings):
    credits.loc[0, "movie_id"] = 999

    with pytest.raises(DanglingReference) as exc_info:
        build_tables(infos, credits, equivalences, language_reference, settings)
    assert exc_info.value.natural_ids == [999]


def test_stale_equivalence_fails(infos, credits, language_reference, settings):
    with pytest.raises(UnknownSupersededId):
        build_tables(infos, credits, {36390: 4242}, language_reference, settings)


def test_rebuild_writes_and_verifies(engine, infos, credits, equivalences, language_reference, settings):
    counts = rebuild(engine, infos, credits, equivalences, language_reference, settings)

    assert counts["movies"] == 3
    assert verify_database(engine) == counts
    assert set(inspect(engine).get_table_names()) == set(Base.metadata.tables)


def test_rebuild_is_repeatable(engine, infos, credits, equivalences, language_reference, settings):
    first = rebuild(engine, infos, credits, equivalences, language_reference, settings)
    second = rebuild(engine, infos, credits, equivalences, language_reference, settings)

    assert first == second
    with engine.connect() as connection:
        movies = pd.read_sql_table("movies", connection)
    assert movies["movie_id"].tolist() == [1, 2, 3]


def test_deleting_a_movie_cascades(engine, infos, credits, equivalences, language_reference, settings):
    rebuild(engine, infos, credits, equivalences, language_reference, settings)

    with engine.begin() as connection:
        connection.execute(text("DELETE FROM movies WHERE tmdb_id = 19995"))

    with engine.connect() as connection:
        for table in ("movie_genres", "movie_cast", "movie_crew", "movie_ratings", "movie_languages"):
            orphans = connection.execute(text(
                f"SELECT COUNT(*) FROM {table} WHERE movie_id NOT IN (SELECT movie_id FROM movies)"
            )).scalar()
            assert orphans == 0
        assert connection.execute(text("SELECT COUNT(*) FROM movie_ratings")).scalar() == 2
