"""Concurrent run orchestration and aggregation."""

from highscores.pipeline.aggregator import Highscores
from highscores.pipeline.coordinator import (
    PageOutcome,
    PageStatus,
    PipelineCoordinator,
    RunReport,
    RunState,
)

__all__ = [
    "Highscores",
    "PipelineCoordinator",
    "PageOutcome",
    "PageStatus",
    "RunReport",
    "RunState",
]
