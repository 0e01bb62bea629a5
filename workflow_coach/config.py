"""Application configuration loaded from ``coach.yaml``.

Example::

    catalog: catalog.yaml
    tie_break_by_id: false
    max_join_sources: 8
    sources:
      - name: community
        path: stats/community.jsonl
        enabled: true
        max_age_days: 30

Relative paths resolve against the directory of the config file.
"""

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from .recommendation.config import RecommendationConfig
from .sources.catalog import NodeCatalog
from .sources.jsonl import JsonLinesTripleSource

log = logging.getLogger(__name__)

CONFIG_ENV_VAR = "WORKFLOW_COACH_CONFIG"
DEFAULT_CONFIG_FILE = "coach.yaml"


class ConfigError(ValueError):
    """The configuration file is missing, unreadable or invalid."""


@dataclass(frozen=True)
class SourceConfig:
    name: str
    path: Path
    enabled: bool = True
    max_age_days: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: Path) -> "SourceConfig":
        if not isinstance(data, dict) or not data.get("path"):
            raise ConfigError(f"Source entry needs a 'path': {data!r}")
        path = Path(data["path"])
        if not path.is_absolute():
            path = base_dir / path
        max_age = data.get("max_age_days")
        return cls(
            name=str(data.get("name") or path.stem),
            path=path,
            enabled=bool(data.get("enabled", True)),
            max_age_days=None if max_age is None else float(max_age),
        )


@dataclass(frozen=True)
class CoachConfig:
    """Everything needed to set up a recommendation engine."""

    catalog: Path | None = None
    sources: tuple[SourceConfig, ...] = ()
    recommendation: RecommendationConfig = field(default_factory=RecommendationConfig)

    def build_sources(self) -> list[JsonLinesTripleSource]:
        return [
            JsonLinesTripleSource(
                source.path,
                name=source.name,
                enabled=source.enabled,
                max_age_days=source.max_age_days,
            )
            for source in self.sources
        ]

    def load_catalog(self) -> NodeCatalog:
        if self.catalog is None:
            raise ConfigError("No node catalog configured")
        try:
            return NodeCatalog.load(self.catalog)
        except (OSError, yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"Failed to load node catalog {self.catalog}: {e}") from e

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: Path) -> "CoachConfig":
        raw_sources = data.get("sources") or []
        if not isinstance(raw_sources, list):
            raise ConfigError("'sources' must be a list")

        catalog = data.get("catalog")
        catalog_path = None
        if catalog:
            catalog_path = Path(catalog)
            if not catalog_path.is_absolute():
                catalog_path = base_dir / catalog_path

        defaults = RecommendationConfig()
        recommendation = RecommendationConfig(
            tie_break_by_id=bool(data.get("tie_break_by_id", defaults.tie_break_by_id)),
            max_join_sources=int(
                data.get("max_join_sources", defaults.max_join_sources)
            ),
        )
        return cls(
            catalog=catalog_path,
            sources=tuple(SourceConfig.from_dict(s, base_dir) for s in raw_sources),
            recommendation=recommendation,
        )


def find_config(explicit: str | Path | None = None) -> Path | None:
    """Locate the config file.

    Search order:
    1. explicit path
    2. $WORKFLOW_COACH_CONFIG
    3. ./coach.yaml
    """
    if explicit:
        return Path(explicit)
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)
    candidate = Path.cwd() / DEFAULT_CONFIG_FILE
    if candidate.exists():
        return candidate
    return None


def load_config(path: str | Path | None = None) -> CoachConfig:
    """Load configuration; an absent config yields the defaults."""
    config_path = find_config(path)
    if config_path is None:
        log.debug("No config file found, using defaults")
        return CoachConfig()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must be a mapping")

    log.debug(f"Loaded config from {config_path}")
    return CoachConfig.from_dict(data, config_path.parent)
