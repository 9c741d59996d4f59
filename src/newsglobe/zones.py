"""Country safe-zone reference table loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from .geometry import Rect
from .models import DEFAULT_INSET_PCT, CountryDefinition

DEFAULT_ZONES_PATH = Path(__file__).resolve().parent / "data" / "country_zones.yaml"


@dataclass(frozen=True, slots=True)
class ZoneTable:
    """Immutable mapping of exact country name to its curated zones."""

    countries: Mapping[str, CountryDefinition] = field(default_factory=dict)
    version: int | None = None
    source_path: Path | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.countries, MappingProxyType):
            object.__setattr__(self, "countries", MappingProxyType(dict(self.countries)))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path | None = None) -> ZoneTable:
        where = f" in {source_path}" if source_path is not None else ""
        version_raw = raw.get("version")
        if version_raw is not None and (isinstance(version_raw, bool) or not isinstance(version_raw, int)):
            raise ValueError(f"Expected integer 'version'{where}")
        countries_raw = raw.get("countries")
        if not isinstance(countries_raw, Mapping):
            raise ValueError(f"Expected 'countries' mapping{where}")

        countries: dict[str, CountryDefinition] = {}
        for name, value in countries_raw.items():
            if not isinstance(name, str):
                raise ValueError(f"Country key must be a string{where}: {name!r}")
            if not isinstance(value, Mapping):
                raise ValueError(f"Zone entry for {name} must be a mapping{where}")
            definition = CountryDefinition.from_mapping(name, value)
            if definition.name in countries:
                raise ValueError(f"Duplicate country '{definition.name}'{where}")
            countries[definition.name] = definition
        return cls(countries=countries, version=version_raw, source_path=source_path)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self.countries

    def __len__(self) -> int:
        return len(self.countries)

    def get(self, name: Any) -> CountryDefinition | None:
        if not isinstance(name, str):
            return None
        return self.countries.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(self.countries)

    def safe_zones(self, name: Any, default_inset_pct: float = DEFAULT_INSET_PCT) -> tuple[Rect, ...]:
        """Derived safe zones for `name`; empty for unknown countries. Not cached."""
        definition = self.get(name)
        if definition is None:
            return ()
        return definition.safe_zones(default_inset_pct)


def load_zone_table(path: Path) -> ZoneTable:
    """Load and validate a safe-zone YAML table."""
    if not path.exists():
        raise FileNotFoundError(f"Zone table file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {path}")
    return ZoneTable.from_mapping(raw, source_path=path)


@lru_cache(maxsize=1)
def default_zone_table() -> ZoneTable:
    """The packaged zone table, parsed once per process."""
    return load_zone_table(DEFAULT_ZONES_PATH)


def resolve_zone_table(path: Path | None) -> ZoneTable:
    if path is None:
        return default_zone_table()
    return load_zone_table(path)
