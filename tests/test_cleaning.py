"""Unit tests for value cleaning and the raw extract readers."""

from datetime import date

import pandas as pd
import pytest

from tmdb_silver.bronze import read_credits, read_infos
from tmdb_silver.catalog import STATUS_IDS
from tmdb_silver.cleaning import (
    alias_codes, clean_movies, clean_ratings, complete_languages, fill_character_names,
    load_language_reference,
)
from tmdb_silver.errors import RawSourceError


def test_clean_movies(infos):
    movies = clean_movies(infos, {"cn": "zh"}).set_index("tmdb_id")
    avatar, hero = movies.loc[19995], movies.loc[1000]

    assert avatar["release_date"] == date(2009, 12, 10)
    assert avatar["overview"].startswith("In the 22nd century")
    assert avatar["overview"].endswith("Pandora.")
    assert avatar["budget"] == 237000000
    assert avatar["prod_status_id"] == STATUS_IDS["Released"]

    assert hero["release_date"] is None
    assert pd.isna(hero["budget"]) and pd.isna(hero["revenue"]) and pd.isna(hero["runtime"])
    assert hero["overview"] is None
    assert hero["tagline"] is None
    assert hero["homepage"] is None
    assert hero["original_language_id"] == "zh"
    assert hero["prod_status_id"] == STATUS_IDS["Rumored"]


def test_impossible_dates_and_unknown_status_become_null(infos):
    infos.loc[0, "release_date"] = "0000-00-00"
    infos.loc[0, "status"] = "Canceled"
    movies = clean_movies(infos, {})

    assert movies.loc[0, "release_date"] is None
    assert pd.isna(movies.loc[0, "prod_status_id"])


def test_rating_without_votes_is_null(infos):
    ratings = clean_ratings(infos).set_index("tmdb_id")

    assert ratings.loc[19995, "vote_average"] == 7.2
    assert pd.isna(ratings.loc[1000, "vote_average"])
    assert ratings.loc[1000, "vote_count"] == 0


def test_alias_codes():
    assert alias_codes(["cn", "zh", " en ", None], {"cn": "zh"}) == ["zh", "zh", "en", None]


def test_blank_characters_get_placeholder():
    assert fill_character_names(["", None, " Neytiri "], "no character name") == [
        "no character name", "no character name", "Neytiri"]


def test_languages_are_completed_by_reference(language_reference):
    spoken = pd.DataFrame({"iso_639_1": ["en", "qq"], "name": ["English", "Qqish"]}, dtype=object)
    languages = complete_languages(spoken, language_reference).set_index("iso_639_1")

    assert len(languages) == len(language_reference) + 1
    assert languages.loc["en", "name_en"] == "English"
    assert languages.loc["xx", "name"] == "no language"
    assert languages.loc["qq", "name"] == "Qqish"
    assert languages.loc["qq", "name_en"] is None


def test_language_reference_keeps_codes_as_text(language_reference):
    assert "nb" in set(language_reference["language_id"])
    assert language_reference["language_id"].is_unique


def test_read_extracts(write_extracts):
    infos_file, credits_file = write_extracts()

    infos = read_infos(infos_file)
    credits = read_credits(credits_file)

    assert infos["id"].tolist() == [19995, 285, 1000]
    assert credits["movie_id"].tolist() == [19995, 285, 1000]
    assert pd.isna(infos.loc[2, "homepage"])


def test_read_extract_errors(tmp_path, infos):
    with pytest.raises(RawSourceError):
        read_infos(tmp_path / "missing.csv")

    partial = tmp_path / "partial.csv"
    infos.drop(columns=["keywords"]).to_csv(partial, index=False)
    with pytest.raises(RawSourceError, match="keywords"):
        read_infos(partial)

    with pytest.raises(RawSourceError):
        load_language_reference(tmp_path / "languages.csv")
