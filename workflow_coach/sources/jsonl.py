"""JSONL statistics source.

Each line holds one usage triple::

    {"predecessor": "a", "node": "b", "successor": "c", "count": 12}

Endpoints may be null or missing. Blank lines and lines starting with ``#``
are ignored.
"""

from datetime import datetime, timedelta, timezone
import json
import logging
from pathlib import Path
from typing import Iterator

from ..recommendation.errors import SourceLoadFailure
from ..recommendation.types import UsageTriple

log = logging.getLogger(__name__)

_ENDPOINT_KEYS = ("predecessor", "node", "successor")


def _endpoint(value, key: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string or null, got {type(value).__name__}")
    value = value.strip()
    return value or None


def _count(value) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'count' must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"'count' must not be negative, got {value}")
    return value


def parse_triple(data: dict) -> UsageTriple:
    """Build a triple from one decoded JSONL record."""
    if not isinstance(data, dict):
        raise ValueError("record must be a JSON object")
    endpoints = {key: _endpoint(data.get(key), key) for key in _ENDPOINT_KEYS}
    return UsageTriple(count=_count(data.get("count")), **endpoints)


class JsonLinesTripleSource:
    """Reads usage triples lazily from a JSONL file.

    The file is re-read on every call to :meth:`triples`. A missing file, or
    one older than ``max_age_days``, makes the source report that it needs an
    update.
    """

    def __init__(
        self,
        path: str | Path,
        name: str | None = None,
        enabled: bool = True,
        max_age_days: float | None = None,
    ):
        self.path = Path(path)
        self.name = name or self.path.stem
        self.enabled = enabled
        self.max_age_days = max_age_days

    def is_enabled(self) -> bool:
        return self.enabled

    def last_modified(self) -> datetime | None:
        if not self.path.exists():
            return None
        return datetime.fromtimestamp(self.path.stat().st_mtime, tz=timezone.utc)

    def needs_update(self) -> bool:
        modified = self.last_modified()
        if modified is None:
            return True
        if self.max_age_days is None:
            return False
        age = datetime.now(timezone.utc) - modified
        return age > timedelta(days=self.max_age_days)

    def triples(self) -> Iterator[UsageTriple]:
        """Yield triples line by line.

        Raises:
            SourceLoadFailure: A line is not a valid triple record.
            OSError: The file cannot be read.
        """
        with open(self.path, "r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                try:
                    yield parse_triple(json.loads(line))
                except (json.JSONDecodeError, ValueError) as e:
                    raise SourceLoadFailure(
                        self.name, f"{self.path}:{line_no}: {e}"
                    ) from e


def write_triples(path: str | Path, triples: list[UsageTriple]) -> None:
    """Write triples as JSONL, one record per line."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        for triple in triples:
            record = {
                "predecessor": triple.predecessor,
                "node": triple.node,
                "successor": triple.successor,
                "count": triple.count,
            }
            f.write(json.dumps(record, ensure_ascii=False) + "\n")
    log.debug(f"Wrote {len(triples)} triples to {target}")
