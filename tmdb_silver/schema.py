"""
============================================================================
TMDB SILVER - Relational Schema
============================================================================
SQLAlchemy models for the 20 silver tables built from the TMDB 5000
extracts, plus the engine factory used by the loader.

📊 DATABASE TABLES:
    Lookups      genders, roles, production_statuses
    Entities     movies, people, genres, keywords, companies,
                 countries, languages, departments, jobs
    Attributes   movie_ratings (1:1 with movies)
    Links        movie_genres, movie_keywords, movie_companies,
                 movie_countries, movie_languages, movie_cast, movie_crew

🔧 KEYS:
    - Surrogate ids (movie_id, person_id, ...) are dense 1..N integers;
      the TMDB id is kept in ``tmdb_id`` (unique)
    - countries and languages keep their two-letter ISO code as key
    - departments and jobs are keyed by a surrogate, their name is unique
    - Link tables use all their columns as composite primary key
    - Every foreign key cascades on delete and update

🔧 SURROGATE COLUMNS:
    Columns created with ``info={'surrogate': True}`` must hold exactly
    1..N; the integrity checks read this flag from the metadata.
============================================================================
"""

import logging

from sqlalchemy import (
    BigInteger, Column, Date, Float, ForeignKey, Index, Integer, String, Text,
    create_engine, event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base


logger = logging.getLogger(__name__)


# ============================================================================
# DATABASE SETUP
# ============================================================================

Base = declarative_base()

SURROGATE = {'surrogate': True}


def reference(target: str) -> ForeignKey:
    """Foreign key that follows its parent row on delete and update."""
    return ForeignKey(target, ondelete='CASCADE', onupdate='CASCADE')


def set_sqlite_pragma(dbapi_conn, connection_record):
    """
    Set SQLite pragmas on every new connection.

    🔧 PERFORMANCE TUNING:
    - foreign_keys=ON: SQLite ignores REFERENCES clauses without it
    - journal_mode=WAL: Write-Ahead Logging for concurrent readers
    - synchronous=NORMAL: Balance between safety and speed
    - temp_store=MEMORY: Keep temporary tables in memory
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA temp_store=MEMORY")
    cursor.close()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create the engine for the silver database.

    🔧 CUSTOMIZE: Any SQLAlchemy URL works; SQLite gets the pragmas above
    """
    is_sqlite = database_url.startswith('sqlite')
    engine = create_engine(
        database_url,
        echo=echo,
        connect_args={'timeout': 30} if is_sqlite else {},
    )
    if is_sqlite:
        event.listen(engine, "connect", set_sqlite_pragma)
    logger.debug("Engine created for %s", engine.url.render_as_string(hide_password=True))
    return engine


# ============================================================================
# LOOKUP TABLES
# ============================================================================

class Gender(Base):
    """TMDB gender codes: 0 not specified, 1 female, 2 male."""
    __tablename__ = 'genders'

    gender_id = Column(Integer, primary_key=True, autoincrement=False, comment='TMDB gender code')
    gender_name = Column(String(50), nullable=False, unique=True)

    def __repr__(self):
        return f"<Gender(gender_id={self.gender_id}, name='{self.gender_name}')>"


class Role(Base):
    """Where a person was credited: 0 cast and crew, 1 cast only, 2 crew only."""
    __tablename__ = 'roles'

    role_id = Column(Integer, primary_key=True, autoincrement=False)
    role_name = Column(String(50), nullable=False, unique=True)

    def __repr__(self):
        return f"<Role(role_id={self.role_id}, name='{self.role_name}')>"


class ProductionStatus(Base):
    __tablename__ = 'production_statuses'

    prod_status_id = Column(Integer, primary_key=True, autoincrement=False)
    prod_status_name = Column(String(50), nullable=False, unique=True)

    def __repr__(self):
        return f"<ProductionStatus(prod_status_id={self.prod_status_id}, name='{self.prod_status_name}')>"


# ============================================================================
# ENTITY TABLES
# ============================================================================

# ----------------------------------------------------------------------------
# 1. MOVIES - Core Movie Information
# ----------------------------------------------------------------------------
class Movie(Base):
    """
    One row per movie of the infos extract.

    🔗 JOINS:
        - movie_ratings.movie_id → movie_id
        - movie_cast / movie_crew.movie_id → movie_id
        - every movie_* link table → movie_id
    """
    __tablename__ = 'movies'

    movie_id = Column(Integer, primary_key=True, autoincrement=False, info=SURROGATE)
    tmdb_id = Column(Integer, nullable=False, unique=True, comment='TMDB movie id')
    title = Column(String(255), nullable=False)
    original_title = Column(String(255), nullable=True, comment='Title in the original language')
    release_date = Column(Date, nullable=True, comment='NULL when unknown')
    runtime = Column(Integer, nullable=True, comment='Minutes; NULL instead of 0')
    overview = Column(Text, nullable=True)
    tagline = Column(Text, nullable=True)
    budget = Column(BigInteger, nullable=True, comment='USD; NULL instead of 0')
    revenue = Column(BigInteger, nullable=True, comment='USD; NULL instead of 0')
    homepage = Column(Text, nullable=True)
    original_language_id = Column(String(2), reference('languages.language_id'), nullable=True)
    prod_status_id = Column(Integer, reference('production_statuses.prod_status_id'), nullable=True)

    __table_args__ = (
        Index('idx_movies_title', 'title'),
        Index('idx_movies_release_date', 'release_date'),
        Index('idx_movies_language', 'original_language_id'),
    )

    def __repr__(self):
        return f"<Movie(movie_id={self.movie_id}, title='{self.title}', tmdb_id={self.tmdb_id})>"


class MovieRating(Base):
    """Popularity and votes, split from movies (1:1)."""
    __tablename__ = 'movie_ratings'

    movie_id = Column(Integer, reference('movies.movie_id'), primary_key=True, autoincrement=False)
    popularity = Column(Float, nullable=True)
    vote_average = Column(Float, nullable=True, comment='NULL when vote_count is 0')
    vote_count = Column(Integer, nullable=True)

    __table_args__ = (
        Index('idx_ratings_votes', 'vote_count', 'vote_average'),
    )

    def __repr__(self):
        return f"<MovieRating(movie_id={self.movie_id}, average={self.vote_average}, votes={self.vote_count})>"


# ----------------------------------------------------------------------------
# 2. PEOPLE - Cast and Crew Members
# ----------------------------------------------------------------------------
class Person(Base):
    """
    Everyone credited in the credits extract, cast and crew alike.

    role_id is derived from where the person appears (see roles.py).
    """
    __tablename__ = 'people'

    person_id = Column(Integer, primary_key=True, autoincrement=False, info=SURROGATE)
    tmdb_id = Column(Integer, nullable=False, unique=True, comment='TMDB person id')
    person_name = Column(String(255), nullable=False)
    gender_id = Column(Integer, reference('genders.gender_id'), nullable=False)
    role_id = Column(Integer, reference('roles.role_id'), nullable=False)

    __table_args__ = (
        Index('idx_people_name', 'person_name'),
    )

    def __repr__(self):
        return f"<Person(person_id={self.person_id}, name='{self.person_name}', role_id={self.role_id})>"


# ----------------------------------------------------------------------------
# 3. NESTED-LIST ENTITIES
# ----------------------------------------------------------------------------
class Genre(Base):
    __tablename__ = 'genres'

    genre_id = Column(Integer, primary_key=True, autoincrement=False, info=SURROGATE)
    tmdb_id = Column(Integer, nullable=False, unique=True)
    genre_name = Column(String(100), nullable=False)

    def __repr__(self):
        return f"<Genre(genre_id={self.genre_id}, name='{self.genre_name}')>"


class Keyword(Base):
    __tablename__ = 'keywords'

    keyword_id = Column(Integer, primary_key=True, autoincrement=False, info=SURROGATE)
    tmdb_id = Column(Integer, nullable=False, unique=True)
    keyword_name = Column(String(255), nullable=False)

    __table_args__ = (
        Index('idx_keywords_name', 'keyword_name'),
    )

    def __repr__(self):
        return f"<Keyword(keyword_id={self.keyword_id}, name='{self.keyword_name}')>"


class Company(Base):
    """Production companies after duplicate merging."""
    __tablename__ = 'companies'

    company_id = Column(Integer, primary_key=True, autoincrement=False, info=SURROGATE)
    tmdb_id = Column(Integer, nullable=False, unique=True, comment='Canonical TMDB company id')
    company_name = Column(String(255), nullable=False)

    __table_args__ = (
        Index('idx_companies_name', 'company_name'),
    )

    def __repr__(self):
        return f"<Company(company_id={self.company_id}, name='{self.company_name}')>"


class Country(Base):
    __tablename__ = 'countries'

    country_id = Column(String(2), primary_key=True, comment='ISO 3166-1 alpha-2 code')
    country_name = Column(String(100), nullable=False)

    def __repr__(self):
        return f"<Country(country_id='{self.country_id}', name='{self.country_name}')>"


class Language(Base):
    """ISO 639-1 languages; spoken languages and original languages both point here."""
    __tablename__ = 'languages'

    language_id = Column(String(2), primary_key=True, comment='ISO 639-1 code (cn folded into zh)')
    language_name = Column(String(100), nullable=True, comment='Name in the language itself')
    language_name_en = Column(String(100), nullable=True, comment='English name')

    def __repr__(self):
        return f"<Language(language_id='{self.language_id}', name='{self.language_name_en}')>"


class Department(Base):
    __tablename__ = 'departments'

    department_id = Column(Integer, primary_key=True, autoincrement=False, info=SURROGATE)
    department_name = Column(String(100), nullable=False, unique=True)

    def __repr__(self):
        return f"<Department(department_id={self.department_id}, name='{self.department_name}')>"


class Job(Base):
    __tablename__ = 'jobs'

    job_id = Column(Integer, primary_key=True, autoincrement=False, info=SURROGATE)
    job_name = Column(String(100), nullable=False, unique=True)

    def __repr__(self):
        return f"<Job(job_id={self.job_id}, name='{self.job_name}')>"


# ============================================================================
# LINK TABLES - composite primary key over all columns
# ============================================================================

class MovieGenre(Base):
    __tablename__ = 'movie_genres'

    movie_id = Column(Integer, reference('movies.movie_id'), primary_key=True)
    genre_id = Column(Integer, reference('genres.genre_id'), primary_key=True)

    __table_args__ = (
        Index('idx_movie_genres_genre', 'genre_id'),
    )


class MovieKeyword(Base):
    __tablename__ = 'movie_keywords'

    movie_id = Column(Integer, reference('movies.movie_id'), primary_key=True)
    keyword_id = Column(Integer, reference('keywords.keyword_id'), primary_key=True)

    __table_args__ = (
        Index('idx_movie_keywords_keyword', 'keyword_id'),
    )


class MovieCompany(Base):
    __tablename__ = 'movie_companies'

    movie_id = Column(Integer, reference('movies.movie_id'), primary_key=True)
    company_id = Column(Integer, reference('companies.company_id'), primary_key=True)

    __table_args__ = (
        Index('idx_movie_companies_company', 'company_id'),
    )


class MovieCountry(Base):
    __tablename__ = 'movie_countries'

    movie_id = Column(Integer, reference('movies.movie_id'), primary_key=True)
    country_id = Column(String(2), reference('countries.country_id'), primary_key=True)

    __table_args__ = (
        Index('idx_movie_countries_country', 'country_id'),
    )


class MovieLanguage(Base):
    """Spoken languages of a movie."""
    __tablename__ = 'movie_languages'

    movie_id = Column(Integer, reference('movies.movie_id'), primary_key=True)
    language_id = Column(String(2), reference('languages.language_id'), primary_key=True)

    __table_args__ = (
        Index('idx_movie_languages_language', 'language_id'),
    )


class MovieCast(Base):
    """
    Cast credits. The character is part of the key: one actor can play
    several characters in the same movie.
    """
    __tablename__ = 'movie_cast'

    movie_id = Column(Integer, reference('movies.movie_id'), primary_key=True)
    person_id = Column(Integer, reference('people.person_id'), primary_key=True)
    character_name = Column(String(512), primary_key=True, comment="'no character name' when blank")

    __table_args__ = (
        Index('idx_movie_cast_person', 'person_id'),
    )

    def __repr__(self):
        return f"<MovieCast(movie_id={self.movie_id}, person_id={self.person_id}, character='{self.character_name}')>"


class MovieCrew(Base):
    """Crew credits; a person can hold several jobs on one movie."""
    __tablename__ = 'movie_crew'

    movie_id = Column(Integer, reference('movies.movie_id'), primary_key=True)
    person_id = Column(Integer, reference('people.person_id'), primary_key=True)
    department_id = Column(Integer, reference('departments.department_id'), primary_key=True)
    job_id = Column(Integer, reference('jobs.job_id'), primary_key=True)

    __table_args__ = (
        Index('idx_movie_crew_person', 'person_id'),
        Index('idx_movie_crew_job', 'job_id'),
    )

    def __repr__(self):
        return f"<MovieCrew(movie_id={self.movie_id}, person_id={self.person_id}, job_id={self.job_id})>"

