"""Library lookup and metadata enrichment pipelines."""

from __future__ import annotations

from .library_service import LibraryService
from .library_workflow import CurrentIdentity, LibraryWorkflow, WorkflowState
from .metadata_pipeline import MetadataCache, MetadataFetcher

__all__ = [
    "CurrentIdentity",
    "LibraryService",
    "LibraryWorkflow",
    "MetadataCache",
    "MetadataFetcher",
    "WorkflowState",
]
