"""Excel-backed repositories for source extracts."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Mapping, Sequence

from pax_consolidator.domain.models import LayoutKind, SourceExtract
from pax_consolidator.domain.repositories import SourceExtractRepository
from pax_consolidator.infrastructure.artifacts.locator import ArtifactLocator
from pax_consolidator.infrastructure.parsing.extractor import extract_workbook
from pax_consolidator.infrastructure.parsing.utils import ensure_bytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceDocument:
    source_id: str
    content: bytes
    layout: LayoutKind = LayoutKind.RAW_SOURCE


def _is_raw_document(path: Path) -> bool:
    name = path.name.lower()
    return path.is_file() and "dispatch" in name and name.endswith(".xlsx") and "template" not in name


class FileSystemSourceRepository(SourceExtractRepository):
    """Discovers each source's current document on disk.

    A processed export under `outputs_root/<id>/` wins over a raw document
    under `uploads_root/<id>/` unless `prefer_exports` is off.
    """

    def __init__(
        self,
        source_ids: Sequence[str],
        uploads_root: Path,
        outputs_root: Path,
        export_prefix: str = "export",
        timeout: float | None = None,
        prefer_exports: bool = True,
    ) -> None:
        self._source_ids = tuple(source_ids)
        self._uploads_root = Path(uploads_root)
        self._outputs_root = Path(outputs_root)
        self._export_prefix = export_prefix
        self._timeout = timeout
        self._prefer_exports = prefer_exports

    def source_ids(self) -> Sequence[str]:
        return self._source_ids

    def find_document(self, source_id: str) -> tuple[Path, LayoutKind] | None:
        if self._prefer_exports:
            export = ArtifactLocator(self._outputs_root / source_id, prefix=self._export_prefix).locate()
            if export is not None:
                return export, LayoutKind.PROCESSED_EXPORT

        upload_dir = self._uploads_root / source_id
        if not upload_dir.is_dir():
            return None
        candidates = [path for path in upload_dir.iterdir() if _is_raw_document(path)]
        if not candidates:
            return None
        latest = max(candidates, key=lambda path: path.stat().st_mtime)
        return latest, LayoutKind.RAW_SOURCE

    def get_extract(self, source_id: str) -> SourceExtract | None:
        found = self.find_document(source_id)
        if found is None:
            logger.info("No document found for source %s", source_id)
            return None
        path, layout = found
        logger.info("Reading %s for source %s (%s)", path.name, source_id, layout.value)
        return extract_workbook(path, layout, source_id=source_id, timeout=self._timeout)


class InMemorySourceRepository(SourceExtractRepository):
    """Source documents handed over as byte streams, keyed by source id."""

    def __init__(self, documents: Sequence[SourceDocument] | Mapping[str, bytes | BytesIO], timeout: float | None = None) -> None:
        if isinstance(documents, Mapping):
            documents = [SourceDocument(source_id, ensure_bytes(content)) for source_id, content in documents.items()]
        self._documents = {document.source_id: document for document in documents}
        self._timeout = timeout

    def source_ids(self) -> Sequence[str]:
        return tuple(self._documents.keys())

    def get_extract(self, source_id: str) -> SourceExtract | None:
        document = self._documents.get(source_id)
        if document is None:
            logger.info("No document supplied for source %s", source_id)
            return None
        return extract_workbook(document.content, document.layout, source_id=source_id, timeout=self._timeout)
