"""Error taxonomy for the recommendation engine."""


class RecommendationError(Exception):
    """Base class for recommendation engine failures."""


class UnsupportedQuery(RecommendationError):
    """Raised for queries the engine cannot answer, e.g. more than one node."""


class SourceLoadFailure(RecommendationError):
    """A statistics source could not be read during a reload."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
