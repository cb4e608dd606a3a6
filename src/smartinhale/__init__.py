"""
SmartInhale: inhaler adherence and technique tracking

Ingests inhalation events from a SmartInhale device, keeps a rolling
event store, and derives adherence and technique metrics.
"""

from typing import Any

__all__ = ["IngestionPipeline"]


def __getattr__(name: str) -> Any:
    """Lazy load the pipeline to keep `import smartinhale` cheap."""
    if name == "IngestionPipeline":
        from smartinhale.pipeline import IngestionPipeline

        return IngestionPipeline
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
