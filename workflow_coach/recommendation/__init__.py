"""Node recommendations built from historical usage triples."""

from .engine import RecommendationEngine, StatisticsSource
from .errors import RecommendationError, SourceLoadFailure, UnsupportedQuery
from .types import (
    Direction,
    Loaded,
    NodeType,
    NotLoaded,
    PortConnection,
    RecommendationEntry,
    UsageTriple,
)

__all__ = [
    "Direction",
    "Loaded",
    "NodeType",
    "NotLoaded",
    "PortConnection",
    "RecommendationEngine",
    "RecommendationEntry",
    "RecommendationError",
    "SourceLoadFailure",
    "StatisticsSource",
    "UnsupportedQuery",
    "UsageTriple",
]
