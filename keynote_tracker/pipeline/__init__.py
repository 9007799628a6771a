"""Pipeline orchestration - refreshing all sources into the cache."""

from .refresh import RefreshPipeline, SourceResult, BatchResult, run_refresh

__all__ = ["RefreshPipeline", "SourceResult", "BatchResult", "run_refresh"]
