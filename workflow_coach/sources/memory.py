"""Statistics source backed by an in-memory list of triples."""

from typing import Iterable, Iterator

from ..recommendation.types import UsageTriple


class InMemoryTripleSource:
    """Serves a fixed list of usage triples, e.g. bundled or test statistics."""

    def __init__(
        self,
        name: str,
        triples: Iterable[UsageTriple],
        enabled: bool = True,
        needs_update: bool = False,
    ):
        self.name = name
        self._triples = list(triples)
        self.enabled = enabled
        self.update_required = needs_update

    def is_enabled(self) -> bool:
        return self.enabled

    def needs_update(self) -> bool:
        return self.update_required

    def triples(self) -> Iterator[UsageTriple]:
        return iter(self._triples)
