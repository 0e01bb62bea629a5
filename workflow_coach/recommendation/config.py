"""Configuration for recommendation building and joining."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RecommendationConfig:
    """Constants controlling ranking and cross-source joining."""

    # Break equal frequencies by target id instead of insertion order.
    tie_break_by_id: bool = False

    # The rank join searches all subsets of sources.
    max_join_sources: int = 8


DEFAULT_RECOMMENDATION_CONFIG = RecommendationConfig()
