"""
Integrity enforcement for the silver tables.

The constraints live once, in the SQLAlchemy metadata (schema.py). They are
checked twice:

    check_tables(tables)        before writing, on the in-memory DataFrames
    verify_database(engine)     after writing, on what the database holds

The write itself runs in a single transaction with foreign keys enforced; a
failure leaves no partial schema behind.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from sqlalchemy import MetaData, Table, UniqueConstraint
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from tqdm import tqdm

from .errors import IntegrityViolation, preview
from .schema import Base


logger = logging.getLogger(__name__)


# ============================================================================
# CONSTRAINT CHECKS
# ============================================================================

def unique_column_sets(table: Table) -> List[List[str]]:
    """Primary key first, then every unique constraint or unique column."""
    sets = [[column.name for column in table.primary_key.columns]]
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint):
            sets.append([column.name for column in constraint.columns])
    for column in table.columns:
        if column.unique:
            sets.append([column.name])

    distinct = []
    for columns in sets:
        if columns and columns not in distinct:
            distinct.append(columns)
    return distinct


def check_columns(table: Table, frame: pd.DataFrame) -> None:
    missing = [column.name for column in table.columns if column.name not in frame.columns]
    if missing:
        raise IntegrityViolation(table.name, "columns", f"missing columns {missing}")

    for column in table.columns:
        if not column.nullable and frame[column.name].isna().any():
            raise IntegrityViolation(table.name, f"not null {column.name}",
                                     f"{int(frame[column.name].isna().sum())} empty values")


def check_unique(table: Table, frame: pd.DataFrame) -> None:
    for position, columns in enumerate(unique_column_sets(table)):
        # NULLs never collide in a unique index
        subset = frame.loc[frame[columns].notna().all(axis=1), columns]
        duplicated = subset.duplicated(keep=False)
        if duplicated.any():
            sample = subset.loc[duplicated].drop_duplicates().head(10).values.tolist()
            label = "primary key" if position == 0 else "unique"
            raise IntegrityViolation(table.name, f"{label} ({', '.join(columns)})",
                                     f"duplicated values {sample}")


def check_surrogates(table: Table, frame: pd.DataFrame) -> None:
    """Surrogate columns must hold exactly 1..N."""
    for column in table.columns:
        if not column.info.get('surrogate'):
            continue
        values = sorted(int(v) for v in frame[column.name])
        if values != list(range(1, len(frame) + 1)):
            gaps = sorted(set(range(1, len(frame) + 1)) - set(values))
            raise IntegrityViolation(table.name, f"dense {column.name}",
                                     f"expected 1..{len(frame)}, missing {preview(gaps)}")


def check_references(table: Table, frame: pd.DataFrame, tables: Mapping[str, pd.DataFrame]) -> None:
    """Every non-null foreign key value exists in its parent table."""
    for fk in table.foreign_keys:
        parent = fk.column.table.name
        if parent not in tables:
            raise IntegrityViolation(table.name, f"foreign key {fk.parent.name}",
                                     f"parent table {parent} was not built")
        known = set(tables[parent][fk.column.name].dropna().tolist())
        values = frame[fk.parent.name].dropna().tolist()
        dangling = [v for v in dict.fromkeys(values) if v not in known]
        if dangling:
            raise IntegrityViolation(table.name, f"foreign key {fk.parent.name} -> {parent}.{fk.column.name}",
                                     f"unknown values {preview(dangling)}")


def check_tables(tables: Mapping[str, pd.DataFrame], metadata: MetaData = Base.metadata) -> None:
    """
    Check all declared constraints on the in-memory tables.

    Raises:
        IntegrityViolation: On the first table and constraint that fails
    """
    for table in metadata.sorted_tables:
        if table.name not in tables:
            raise IntegrityViolation(table.name, "presence", "table was not built")
        frame = tables[table.name]
        check_columns(table, frame)
        check_unique(table, frame)
        check_surrogates(table, frame)
        check_references(table, frame, tables)
    logger.info("Integrity checks passed for %d tables", len(metadata.sorted_tables))


# ============================================================================
# WRITING
# ============================================================================

def to_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Rows as plain Python values with None for every missing value."""
    plain = frame.astype(object)
    return plain.where(plain.notna(), None).to_dict("records")


def write_tables(
    engine: Engine,
    tables: Mapping[str, pd.DataFrame],
    metadata: MetaData = Base.metadata,
    batch_size: int = 5000,
    show_progress: bool = True,
) -> Dict[str, int]:
    """
    Recreate the schema and insert all tables in one transaction.

    Parents are inserted before children. On any database error the schema
    is dropped again so no partial silver layer remains.

    Returns:
        Row count per table

    Raises:
        IntegrityViolation: If the database rejects a row
    """
    logger.info("Recreating schema (%d tables)", len(metadata.sorted_tables))
    metadata.drop_all(engine)
    metadata.create_all(engine)

    counts: Dict[str, int] = {}
    current: Optional[str] = None
    try:
        with engine.begin() as connection:
            for table in metadata.sorted_tables:
                current = table.name
                frame = tables[table.name][[column.name for column in table.columns]]
                records = to_records(frame)

                with tqdm(total=len(records), desc=f"Loading {table.name}", unit="rows",
                          disable=not show_progress) as pbar:
                    for start in range(0, len(records), batch_size):
                        batch = records[start:start + batch_size]
                        connection.execute(table.insert(), batch)
                        pbar.update(len(batch))

                counts[table.name] = len(records)
                logger.info("Loaded   %-22s %7d rows", table.name, len(records))
    except IntegrityError as e:
        metadata.drop_all(engine)
        raise IntegrityViolation(current or "?", "database", str(e.orig)) from e
    except SQLAlchemyError:
        metadata.drop_all(engine)
        raise

    return counts


# ============================================================================
# VERIFICATION
# ============================================================================

def verify_database(engine: Engine, metadata: MetaData = Base.metadata) -> Dict[str, int]:
    """
    Read the silver tables back and re-run every check on them.

    Returns:
        Row count per table
    """
    with engine.connect() as connection:
        tables = {
            table.name: pd.read_sql_table(table.name, connection)
            for table in metadata.sorted_tables
        }
    check_tables(tables, metadata)
    return {name: len(frame) for name, frame in tables.items()}
