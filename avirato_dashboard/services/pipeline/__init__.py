"""Pipeline infrastructure for reservation retrieval and enrichment."""

from .base_step import PipelineStep
from .context import PipelineContext
from .pipeline import Pipeline

__all__ = [
    "PipelineStep",
    "PipelineContext",
    "Pipeline",
]
