"""Unit tests for link materialization."""

import pandas as pd
import pytest

from tmdb_silver.errors import DanglingReference
from tmdb_silver.links import KeyMapping, materialize_links, rekey
from tmdb_silver.resolve import ResolvedEntities


@pytest.fixture
def movies():
    table = pd.DataFrame({"movie_id": [1, 2], "tmdb_id": [19995, 285]})
    return ResolvedEntities("movies", table, "movie_id", {19995: 1, 285: 2})


@pytest.fixture
def genres():
    table = pd.DataFrame({"genre_id": [1, 2], "tmdb_id": [28, 12]})
    return ResolvedEntities("genres", table, "genre_id", {28: 1, 12: 2})


def test_links_are_rekeyed(movies, genres):
    records = pd.DataFrame({"movie_id": [19995, 19995, 285], "id": [28, 12, 12]}, dtype=object)
    links = materialize_links(
        records, [KeyMapping("movie_id", "movie_id", movies), KeyMapping("id", "genre_id", genres)])

    assert links.columns.tolist() == ["movie_id", "genre_id"]
    assert links.values.tolist() == [[1, 1], [1, 2], [2, 2]]


def test_identical_rows_collapse(movies, genres):
    records = pd.DataFrame({"movie_id": [19995, 19995], "id": [28, 28]}, dtype=object)
    links = materialize_links(
        records, [KeyMapping("movie_id", "movie_id", movies), KeyMapping("id", "genre_id", genres)])

    assert len(links) == 1


def test_attributes_are_part_of_the_row(movies):
    people = ResolvedEntities("people", pd.DataFrame({"person_id": [1]}), "person_id", {2710: 1})
    records = pd.DataFrame(
        {"movie_id": [19995, 19995], "id": [2710, 2710], "character": ["Himself", "Narrator"]}, dtype=object)
    links = materialize_links(
        records,
        [KeyMapping("movie_id", "movie_id", movies), KeyMapping("id", "person_id", people)],
        {"character": "character_name"},
    )

    assert links.values.tolist() == [[1, 1, "Himself"], [1, 1, "Narrator"]]


def test_unknown_movie_is_reported(movies, genres):
    records = pd.DataFrame({"movie_id": [19995, 999, 999], "id": [28, 12, 28]}, dtype=object)

    with pytest.raises(DanglingReference) as exc_info:
        materialize_links(
            records, [KeyMapping("movie_id", "movie_id", movies), KeyMapping("id", "genre_id", genres)])
    assert exc_info.value.entity == "movies"
    assert exc_info.value.natural_ids == [999]


def test_missing_key_is_dangling(genres):
    records = pd.DataFrame({"id": [28, None]}, dtype=object)

    with pytest.raises(DanglingReference) as exc_info:
        rekey(records, "id", genres)
    assert exc_info.value.natural_ids == [None]


def test_nullable_reference_keeps_missing_values():
    languages = ResolvedEntities("languages", pd.DataFrame({"language_id": ["en"]}), "language_id", {"en": "en"})
    frame = pd.DataFrame({"original_language_id": ["en", None]}, dtype=object)

    assert rekey(frame, "original_language_id", languages, allow_missing=True).tolist() == ["en", None]
    with pytest.raises(DanglingReference):
        rekey(pd.DataFrame({"original_language_id": ["qq"]}), "original_language_id", languages,
              allow_missing=True)
