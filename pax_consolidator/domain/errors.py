"""Typed failures raised by the consolidation pipeline."""
from __future__ import annotations

from pathlib import Path


class PaxConsolidatorError(Exception):
    """Base class for all pipeline failures."""


class ExtractionError(PaxConsolidatorError):
    """A single source could not be read. The run continues without it."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class MissingWorksheet(ExtractionError):
    pass


class InvalidWorkbook(ExtractionError):
    pass


class SourceReadTimeout(ExtractionError):
    pass


class NoDataAvailable(PaxConsolidatorError):
    """No source produced an extract, so there is nothing to consolidate."""


class TemplateError(PaxConsolidatorError):
    pass


class WriteFailure(PaxConsolidatorError):
    def __init__(self, path: Path, cause: BaseException) -> None:
        super().__init__(f"Failed to write {path}: {cause}")
        self.path = path
        self.cause = cause
