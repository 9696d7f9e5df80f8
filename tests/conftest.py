"""
Shared fixtures: a three-movie slice of the TMDB 5000 extracts.

Movie 1000 carries the awkward cases: zero budget and runtime, no release
date, a retired ``cn`` language code, a duplicated company (36390 -> 787)
and a person seen once with the placeholder gender and once with a real one.
"""

import json
from pathlib import Path

import pandas as pd
import pytest

from tmdb_silver.cleaning import load_language_reference
from tmdb_silver.config import PACKAGE_DATA_DIR, PipelineConfig


def nested(*items):
    return json.dumps(list(items), ensure_ascii=False)


@pytest.fixture
def infos() -> pd.DataFrame:
    rows = [
        {
            "id": 19995, "title": "Avatar", "original_title": "Avatar",
            "budget": 237000000, "revenue": 2787965087, "release_date": "2009-12-10",
            "runtime": 162.0, "original_language": "en", "status": "Released",
            "overview": "  In the 22nd century, a paraplegic Marine is dispatched to the moon Pandora.  ",
            "tagline": "Enter the World of Pandora.", "homepage": "http://www.avatarmovie.com/",
            "popularity": 150.437577, "vote_average": 7.2, "vote_count": 11800,
            "genres": nested({"id": 28, "name": "Action"}, {"id": 12, "name": "Adventure"}),
            "keywords": nested({"id": 1463, "name": "culture clash"}),
            "production_companies": nested(
                {"name": "Ingenious Film Partners", "id": 289},
                {"name": "Twentieth Century Fox Film Corporation", "id": 306}),
            "production_countries": nested({"iso_3166_1": "US", "name": "United States of America"}),
            "spoken_languages": nested(
                {"iso_639_1": "en", "name": "English"}, {"iso_639_1": "es", "name": "Español"}),
        },
        {
            "id": 285, "title": "Pirates of the Caribbean: At World's End",
            "original_title": "Pirates of the Caribbean: At World's End",
            "budget": 300000000, "revenue": 961000000, "release_date": "2007-05-19",
            "runtime": 169.0, "original_language": "en", "status": "Released",
            "overview": "Captain Barbossa, long believed to be dead, has come back to life.",
            "tagline": "At the end of the world, the adventure begins.",
            "homepage": "http://disney.go.com/disneypictures/pirates/",
            "popularity": 139.082615, "vote_average": 6.9, "vote_count": 4500,
            "genres": nested({"id": 12, "name": "Adventure"}, {"id": 14, "name": "Fantasy"}),
            "keywords": nested({"id": 270, "name": "ocean"}),
            "production_companies": nested(
                {"name": "Walt Disney Pictures", "id": 2},
                {"name": "Jerry Bruckheimer Films", "id": 130}),
            "production_countries": nested({"iso_3166_1": "US", "name": "United States of America"}),
            "spoken_languages": nested({"iso_639_1": "en", "name": "English"}),
        },
        {
            "id": 1000, "title": "Hero", "original_title": "英雄",
            "budget": 0, "revenue": 0, "release_date": None,
            "runtime": 0.0, "original_language": "cn", "status": "Rumored",
            "overview": None, "tagline": "", "homepage": None,
            "popularity": 0.5, "vote_average": 0.0, "vote_count": 0,
            "genres": "[]",
            "keywords": None,
            "production_companies": nested(
                {"name": "Beijing New Picture Film Co.", "id": 787},
                {"name": "Beijing New Picture", "id": 36390}),
            "production_countries": nested({"iso_3166_1": "CN", "name": "China"}),
            "spoken_languages": nested(
                {"iso_639_1": "cn", "name": "广州话 / 廣州話"}, {"iso_639_1": "zh", "name": "普通话"}),
        },
    ]
    return pd.DataFrame(rows)


@pytest.fixture
def credits() -> pd.DataFrame:
    rows = [
        {
            "movie_id": 19995,
            "cast": nested(
                {"cast_id": 242, "character": "Jake Sully", "gender": 2, "id": 65731,
                 "name": "Sam Worthington", "order": 0},
                {"cast_id": 3, "character": "Neytiri", "gender": 1, "id": 8691,
                 "name": "Zoe Saldana", "order": 1}),
            "crew": nested(
                {"department": "Directing", "gender": 2, "id": 2710, "job": "Director",
                 "name": "James Cameron"},
                {"department": "Writing", "gender": 2, "id": 2710, "job": "Writer",
                 "name": "James Cameron"}),
        },
        {
            "movie_id": 285,
            "cast": nested(
                {"cast_id": 4, "character": "Captain Jack Sparrow", "gender": 2, "id": 85,
                 "name": "Johnny Depp", "order": 0}),
            "crew": nested(
                {"department": "Directing", "gender": 2, "id": 1704, "job": "Director",
                 "name": "Gore Verbinski"}),
        },
        {
            "movie_id": 1000,
            "cast": nested(
                {"cast_id": 1, "character": "", "gender": 0, "id": 30711,
                 "name": "Jet Li", "order": 0},
                {"cast_id": 2, "character": "Himself", "gender": 2, "id": 2710,
                 "name": "James Cameron ", "order": 1}),
            "crew": nested(
                {"department": "Production", "gender": 1, "id": 30711, "job": "Producer",
                 "name": "Jet Li"}),
        },
    ]
    return pd.DataFrame(rows)


@pytest.fixture
def equivalences():
    return {36390: 787}


@pytest.fixture
def language_reference() -> pd.DataFrame:
    return load_language_reference(PACKAGE_DATA_DIR / "languages.csv")


@pytest.fixture
def settings() -> PipelineConfig:
    return PipelineConfig(show_progress=False, batch_size=2)


@pytest.fixture
def write_extracts(tmp_path: Path, infos, credits):
    """Write the fixture frames as CSV extracts and return their paths."""
    def write():
        infos_file = tmp_path / "tmdb_5000_movies.csv"
        credits_file = tmp_path / "tmdb_5000_credits.csv"
        infos.to_csv(infos_file, index=False)
        credits.to_csv(credits_file, index=False)
        return infos_file, credits_file
    return write
