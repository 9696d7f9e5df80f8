"""
Error taxonomy of the silver build.

Every error is fatal to the current rebuild: the build either produces a
fully constrained schema or stops at the first violation.
"""

from typing import Any, Iterable, Optional


def preview(values: Iterable[Any], limit: int = 10) -> str:
    values = list(values)
    shown = ", ".join(repr(v) for v in values[:limit])
    if len(values) > limit:
        shown += f", ... ({len(values)} total)"
    return shown


class PipelineError(Exception):
    """Base class for all build failures."""


class RawSourceError(PipelineError):
    """A raw extract is missing or lacks a required column."""


class MalformedNestedField(PipelineError):
    """A nested list field could not be parsed."""

    def __init__(self, field: str, parent_id: Any, reason: str):
        self.field = field
        self.parent_id = parent_id
        self.reason = reason
        super().__init__(f"Malformed nested field '{field}' in row {parent_id!r}: {reason}")


class DuplicateNaturalId(PipelineError):
    """One natural id carries conflicting attribute values."""

    def __init__(self, entity: str, natural_ids: Iterable[Any], attribute: str = "name"):
        self.entity = entity
        self.natural_ids = list(natural_ids)
        self.attribute = attribute
        super().__init__(
            f"{entity}: natural ids with conflicting {attribute}: {preview(self.natural_ids)}"
        )


class RoleClassificationError(PipelineError):
    """A person was seen in neither the cast nor the crew context."""

    def __init__(self, natural_ids: Iterable[Any]):
        self.natural_ids = list(natural_ids)
        super().__init__(f"People without cast or crew presence: {preview(self.natural_ids)}")


class DanglingReference(PipelineError):
    """A link row references a natural id that was never resolved."""

    def __init__(self, entity: str, column: str, natural_ids: Iterable[Any]):
        self.entity = entity
        self.column = column
        self.natural_ids = list(natural_ids)
        super().__init__(
            f"Column '{column}' references unknown {entity} ids: {preview(self.natural_ids)}"
        )


class UnknownSupersededId(PipelineError):
    """The equivalence map names an id the entity table does not hold."""

    def __init__(self, entity: str, natural_ids: Iterable[Any]):
        self.entity = entity
        self.natural_ids = list(natural_ids)
        super().__init__(
            f"{entity}: equivalence map references unknown ids: {preview(self.natural_ids)}"
        )


class IntegrityViolation(PipelineError):
    """A uniqueness or referential constraint does not hold."""

    def __init__(self, table: str, constraint: str, detail: Optional[str] = None):
        self.table = table
        self.constraint = constraint
        self.detail = detail
        message = f"Integrity violation in '{table}' ({constraint})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
