"""Editorial pipeline stages and their orchestration."""

from __future__ import annotations

from .alerts import AlertWriter, compose_alert, truncate_words
from .context import PipelineContext, UnitOfWorkFactory
from .differ import compute_diff_fields, diff_against, diff_candidate
from .extractor import Extractor, conform_to_skeleton
from .orchestrator import (
    BatchReport,
    EditorialPipeline,
    OutcomeStatus,
    PipelineOutcome,
)
from .publisher import Publisher, PublishResult, public_path
from .router import CriticalFieldSet, EditorialRouter
from .validator import validate_candidate

__all__ = [
    "AlertWriter",
    "BatchReport",
    "CriticalFieldSet",
    "EditorialPipeline",
    "EditorialRouter",
    "Extractor",
    "OutcomeStatus",
    "PipelineContext",
    "PipelineOutcome",
    "PublishResult",
    "Publisher",
    "UnitOfWorkFactory",
    "compose_alert",
    "compute_diff_fields",
    "conform_to_skeleton",
    "diff_against",
    "diff_candidate",
    "public_path",
    "truncate_words",
    "validate_candidate",
]
