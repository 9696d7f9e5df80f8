"""Unit tests for duplicate-company merging."""

import logging

import pandas as pd
import pytest

from tmdb_silver.config import PACKAGE_DATA_DIR
from tmdb_silver.errors import RawSourceError, UnknownSupersededId
from tmdb_silver.merge import flatten_equivalences, load_equivalence_map, merge_duplicates


def companies():
    return pd.DataFrame(
        {"id": [787, 36390, 2], "name": ["Beijing New Picture Film Co.", "Beijing New Picture", "Walt Disney Pictures"]},
        dtype=object,
    )


def movie_companies():
    return pd.DataFrame({"movie_id": [1000, 1000, 285, 285], "id": [787, 36390, 36390, 2]}, dtype=object)


def test_superseded_company_is_merged():
    result = merge_duplicates(companies(), {"movie_companies": movie_companies()}, {36390: 787}, "id",
                              entity="companies")
    links = result.links["movie_companies"]

    assert result.entities["id"].tolist() == [787, 2]
    assert sorted(links.values.tolist()) == [[285, 2], [285, 787], [1000, 787]]
    assert result.merged == {36390: 787}


def test_merging_twice_changes_nothing():
    first = merge_duplicates(companies(), {"movie_companies": movie_companies()}, {36390: 787}, "id")
    second = merge_duplicates(first.entities, first.links, {36390: 787}, "id")

    pd.testing.assert_frame_equal(second.entities, first.entities)
    pd.testing.assert_frame_equal(second.links["movie_companies"], first.links["movie_companies"])
    assert second.merged == {}


def test_unknown_canonical_id_raises():
    with pytest.raises(UnknownSupersededId) as exc_info:
        merge_duplicates(companies(), {"movie_companies": movie_companies()}, {36390: 4242}, "id")
    assert exc_info.value.natural_ids == [4242]


def test_stale_superseded_id_still_linked_raises():
    entities = companies().iloc[[0, 2]].reset_index(drop=True)   # 36390 already gone

    with pytest.raises(UnknownSupersededId):
        merge_duplicates(entities, {"movie_companies": movie_companies()}, {36390: 787}, "id")


def test_chains_are_flattened():
    assert flatten_equivalences([(1, 2), (2, 3), (4, 3)]) == {1: 3, 2: 3, 4: 3}


@pytest.mark.parametrize("pairs", [[(1, 2), (2, 1)], [(1, 2), (1, 3)]])
def test_inconsistent_maps_are_rejected(pairs):
    with pytest.raises(ValueError):
        flatten_equivalences(pairs)


def test_packaged_map_loads():
    equivalences = load_equivalence_map(PACKAGE_DATA_DIR / "company_merge_map.csv")

    assert equivalences[36390] == 787
    assert equivalences[15671] == 83
    assert equivalences[45970] == 83


def test_missing_or_malformed_map(tmp_path):
    with pytest.raises(RawSourceError):
        load_equivalence_map(tmp_path / "nope.csv")

    bad = tmp_path / "bad.csv"
    bad.write_text("old,new\n1,2\n", encoding="utf-8")
    with pytest.raises(RawSourceError):
        load_equivalence_map(bad)


def test_map_with_conflicting_targets_is_a_source_error(tmp_path):
    path = tmp_path / "company_merge_map.csv"
    path.write_text("superseded_id,canonical_id\n36390,787\n36390,289\n", encoding="utf-8")

    with pytest.raises(RawSourceError) as exc_info:
        load_equivalence_map(path)
    assert "36390" in str(exc_info.value)


def test_absent_superseded_ids_are_logged(caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("tmdb_silver"), "propagate", True)

    with caplog.at_level(logging.WARNING, logger="tmdb_silver.merge"):
        result = merge_duplicates(companies(), {"movie_companies": movie_companies()},
                                  {36390: 787, 99999: 787}, "id", entity="companies")

    assert result.merged == {36390: 787}
    assert "99999" in caplog.text
