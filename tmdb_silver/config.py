"""
============================================================================
TMDB SILVER - Configuration Manager
============================================================================
This module loads and validates all configuration from .env file.
Provides type-safe access to settings throughout the pipeline.

🔧 USAGE:
    from tmdb_silver.config import config

    database_url = config.database.database_url
    infos_file = config.paths.infos_file
    placeholder = config.pipeline.missing_character_name

🔧 CUSTOMIZE:
    - Add new settings in the appropriate Config class section
    - Update validation logic in validators as needed
    - Modify default values to match your environment

📝 FEATURES:
    - Automatic .env loading
    - Type validation with Pydantic
    - Organized by functional area
============================================================================
"""

import os
import sys
import logging
from pathlib import Path
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv


logger = logging.getLogger(__name__)

# Reference data shipped with the package
PACKAGE_DATA_DIR = Path(__file__).parent / "data"


# ============================================================================
# FIND AND LOAD .env FILE
# ============================================================================

def find_dotenv() -> Optional[Path]:
    """
    Find .env file by searching up the directory tree.

    Returns:
        Path to .env file if found, None otherwise
    """
    current = Path.cwd()

    # Search up to 5 levels up
    for _ in range(5):
        env_file = current / ".env"
        if env_file.exists():
            return env_file

        if current.parent == current:
            break

        current = current.parent

    return None


env_path = find_dotenv()
if env_path:
    load_dotenv(env_path)
    logger.debug("Loaded environment from %s", env_path)


# ============================================================================
# DATABASE CONFIGURATION
# ============================================================================

class DatabaseConfig(BaseModel):
    """
    Target database for the silver schema.

    🔧 CUSTOMIZE: Point DATABASE_URL at PostgreSQL or MySQL for production
    """

    database_url: str = Field(
        default="sqlite:///data/silver/tmdb_movies.db",
        description="Database connection URL"
    )

    echo: bool = Field(
        default=False,
        description="Echo SQL statements (useful for debugging)"
    )

    @property
    def is_sqlite(self) -> bool:
        """Check if using SQLite."""
        return self.database_url.startswith('sqlite')

    @property
    def database_path(self) -> Optional[Path]:
        """Get database file path for SQLite."""
        if self.is_sqlite:
            path_str = self.database_url.replace('sqlite:///', '')
            if path_str and path_str != 'sqlite://':
                return Path(path_str)
        return None

    class Config:
        """Pydantic configuration."""
        extra = 'ignore'


# ============================================================================
# PATHS CONFIGURATION
# ============================================================================

class PathsConfig(BaseModel):
    """
    Input extracts, reference data and output directories.

    🔧 CUSTOMIZE: Adjust paths to match your data layout
    """

    data_dir: Path = Field(
        default=Path("./data"),
        description="Main data directory"
    )
    raw_data_dir: Path = Field(
        default=Path("./data/raw"),
        description="Raw TMDB extracts"
    )
    logs_dir: Path = Field(
        default=Path("./data/logs"),
        description="Application logs"
    )

    # Raw extracts (Relation A and Relation B)
    infos_file: Path = Field(
        default=Path("./data/raw/tmdb_5000_movies.csv"),
        description="Movie infos extract with nested genres, keywords, companies..."
    )
    credits_file: Path = Field(
        default=Path("./data/raw/tmdb_5000_credits.csv"),
        description="Credits extract with nested cast and crew"
    )

    # Versioned reference data
    company_merge_map: Path = Field(
        default=PACKAGE_DATA_DIR / "company_merge_map.csv",
        description="Superseded -> canonical production company ids"
    )
    language_reference: Path = Field(
        default=PACKAGE_DATA_DIR / "languages.csv",
        description="ISO 639-1 codes with endonyms and English names"
    )

    def ensure_directories(self) -> None:
        """Create output directories if they don't exist."""
        for directory in (self.data_dir, self.raw_data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    class Config:
        """Pydantic configuration."""
        extra = 'ignore'


# ============================================================================
# PIPELINE CONFIGURATION
# ============================================================================

class PipelineConfig(BaseModel):
    """
    Normalization rules applied while building the silver schema.

    🔧 CUSTOMIZE: Adjust placeholders and aliases for other TMDB dumps
    """

    unspecified_gender: int = Field(
        default=0,
        ge=0,
        description="Gender code used by TMDB for 'not specified'"
    )
    missing_character_name: str = Field(
        default="no character name",
        description="Placeholder stored when a cast entry has no character"
    )
    language_aliases: Dict[str, str] = Field(
        default_factory=lambda: {"cn": "zh"},
        description="Deprecated language codes and their replacement"
    )
    batch_size: int = Field(
        default=5000,
        ge=1,
        le=100000,
        description="Rows per INSERT batch when writing tables"
    )
    show_progress: bool = Field(
        default=True,
        description="Show tqdm progress bars while writing"
    )

    @field_validator('missing_character_name')
    @classmethod
    def validate_placeholder(cls, v: str) -> str:
        """The placeholder is part of a primary key and can't be blank."""
        if not v.strip():
            raise ValueError("missing_character_name must not be blank")
        return v

    class Config:
        """Pydantic configuration."""
        extra = 'ignore'


# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

class LoggingConfig(BaseModel):
    """
    Logging configuration.

    🔧 CUSTOMIZE: Adjust log levels and formats
    """

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Path = Field(
        default=Path("./data/logs/tmdb_silver.log"),
        description="Log file path"
    )
    console_output: bool = Field(
        default=True,
        description="Print logs to console"
    )
    log_format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        description="Log message format"
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        allowed = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got '{v}'")
        return v_upper

    class Config:
        """Pydantic configuration."""
        extra = 'ignore'


# ============================================================================
# MAIN CONFIGURATION
# ============================================================================

class Config(BaseModel):
    """
    Main configuration class combining all settings.

    🔧 USAGE:
        from tmdb_silver.config import config

        config.database.database_url
        config.paths.infos_file
        config.pipeline.language_aliases
    """

    database: DatabaseConfig
    paths: PathsConfig
    pipeline: PipelineConfig
    logging: LoggingConfig

    environment: str = Field(
        default="development",
        description="Environment: development, production, testing"
    )
    project_name: str = Field(
        default="TMDB Silver",
        description="Project name"
    )
    version: str = Field(
        default="0.1.0",
        description="Project version"
    )

    def print_summary(self):
        """Print configuration summary."""
        print("\n" + "="*70)
        print(f"🎬 {self.project_name} v{self.version} - Configuration Summary")
        print("="*70)

        print(f"\n📍 Environment: {self.environment.upper()}")
        print(f"📂 Data Directory: {self.paths.data_dir.absolute()}")
        print(f"📄 Infos extract: {self.paths.infos_file}")
        print(f"📄 Credits extract: {self.paths.credits_file}")
        print(f"🔗 Company merge map: {self.paths.company_merge_map}")

        print("\n💾 Database:")
        print(f"  • Type: {'SQLite' if self.database.is_sqlite else 'Server'}")
        print(f"  • URL: {self.database.database_url}")

        print("\n⚙️  Pipeline:")
        print(f"  • Unspecified gender code: {self.pipeline.unspecified_gender}")
        print(f"  • Missing character placeholder: '{self.pipeline.missing_character_name}'")
        print(f"  • Language aliases: {self.pipeline.language_aliases}")
        print(f"  • Batch Size: {self.pipeline.batch_size}")

        print("\n📝 Logging:")
        print(f"  • Level: {self.logging.log_level}")
        print(f"  • File: {self.logging.log_file.absolute()}")

        print("\n" + "="*70 + "\n")

    class Config:
        """Pydantic configuration."""
        extra = 'ignore'


# ============================================================================
# LOAD CONFIGURATION
# ============================================================================

def load_config() -> Config:
    """
    Load configuration from environment variables.

    Returns:
        Configured Config object

    Exits with status 1 if the configuration is invalid.
    """

    def get_env(key: str, default: Any = None) -> Any:
        """Get environment variable with fallback."""
        return os.getenv(key, default)

    try:
        pipeline_kwargs: Dict[str, Any] = dict(
            unspecified_gender=int(get_env('UNSPECIFIED_GENDER', 0)),
            missing_character_name=get_env('MISSING_CHARACTER_NAME', 'no character name'),
            batch_size=int(get_env('BATCH_SIZE', 5000)),
            show_progress=get_env('SHOW_PROGRESS', 'True').lower() == 'true',
        )
        aliases = get_env('LANGUAGE_ALIASES')
        if aliases:
            # Format: "cn=zh,iw=he"
            pipeline_kwargs['language_aliases'] = dict(
                pair.split('=', 1) for pair in aliases.split(',') if '=' in pair
            )

        return Config(
            database=DatabaseConfig(
                database_url=get_env('DATABASE_URL', 'sqlite:///data/silver/tmdb_movies.db'),
                echo=get_env('DATABASE_ECHO', 'False').lower() == 'true',
            ),
            paths=PathsConfig(
                data_dir=Path(get_env('DATA_DIR', './data')),
                raw_data_dir=Path(get_env('RAW_DATA_DIR', './data/raw')),
                logs_dir=Path(get_env('LOGS_DIR', './data/logs')),
                infos_file=Path(get_env('INFOS_FILE', './data/raw/tmdb_5000_movies.csv')),
                credits_file=Path(get_env('CREDITS_FILE', './data/raw/tmdb_5000_credits.csv')),
                company_merge_map=Path(get_env(
                    'COMPANY_MERGE_MAP', PACKAGE_DATA_DIR / 'company_merge_map.csv')),
                language_reference=Path(get_env(
                    'LANGUAGE_REFERENCE', PACKAGE_DATA_DIR / 'languages.csv')),
            ),
            pipeline=PipelineConfig(**pipeline_kwargs),
            logging=LoggingConfig(
                log_level=get_env('LOG_LEVEL', 'INFO'),
                log_file=Path(get_env('LOG_FILE', './data/logs/tmdb_silver.log')),
                console_output=get_env('LOG_CONSOLE', 'True').lower() == 'true',
            ),
            environment=get_env('ENVIRONMENT', 'development'),
        )

    except Exception as e:
        print(f"❌ Error loading configuration: {e}")
        print("Please check your .env file and ensure all values are valid.")
        sys.exit(1)


# ============================================================================
# GLOBAL CONFIG INSTANCE
# ============================================================================

config = load_config()

if __name__ == "__main__":
    config.print_summary()
