"""Use case de ingestão de mensagens multi-canal."""

from .options import PipelineOptions
from .pipeline import IngestionPipeline

__all__ = [
    "IngestionPipeline",
    "PipelineOptions",
]
