"""Repository interfaces anchoring the domain layer."""
from __future__ import annotations

from typing import Protocol, Sequence

from .models import SourceExtract


class SourceExtractRepository(Protocol):
    """Provides the current extract of each configured source."""

    def source_ids(self) -> Sequence[str]:
        ...

    def get_extract(self, source_id: str) -> SourceExtract | None:
        """Return the source's extract, or None when it has no document."""
        ...
