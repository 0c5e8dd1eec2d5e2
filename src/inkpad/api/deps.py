"""FastAPI dependencies."""
from __future__ import annotations

from inkpad.media.pipeline import MediaIngestionPipeline, build_pipeline


def get_pipeline() -> MediaIngestionPipeline:
    """One pipeline per request, built from the current settings."""
    return build_pipeline()
