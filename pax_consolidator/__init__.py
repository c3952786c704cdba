"""Cross-source PAX report consolidation toolkit."""
from pax_consolidator.application.use_cases import (
    ConsolidatePaxUseCase,
    ConsolidationContext,
    GenerateSourcePaxUseCase,
    SourcePaxContext,
)
from pax_consolidator.domain.services import CrossSourceMerger, RecordValidator
from pax_consolidator.infrastructure.artifacts.locator import ArtifactLocator
from pax_consolidator.infrastructure.repositories.excel_repositories import (
    FileSystemSourceRepository,
    InMemorySourceRepository,
)
from pax_consolidator.presentation.renderer import TemplateRenderer

__all__ = [
    "ConsolidatePaxUseCase",
    "ConsolidationContext",
    "GenerateSourcePaxUseCase",
    "SourcePaxContext",
    "CrossSourceMerger",
    "RecordValidator",
    "ArtifactLocator",
    "FileSystemSourceRepository",
    "InMemorySourceRepository",
    "TemplateRenderer",
]
