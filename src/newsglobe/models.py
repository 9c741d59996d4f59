"""Domain models shared across placement modules."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from .geometry import Rect

DEFAULT_INSET_PCT = 0.04


def _require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _optional_pct(value: Any, field_name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected numeric value for '{field_name}'")
    pct = float(value)
    if not math.isfinite(pct) or pct < 0.0:
        raise ValueError(f"'{field_name}' must be a non-negative number")
    return pct


@dataclass(frozen=True, slots=True)
class ZonePatch:
    """Known-safe sub-region of a country, with an optional inset override."""

    rect: Rect
    inset_pct: float | None = None
    label: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], field_name: str) -> ZonePatch:
        rect = Rect.from_mapping(data, field_name)
        label_raw = data.get("label")
        label = _require_str(label_raw, f"{field_name}.label") if label_raw is not None else None
        return cls(
            rect=rect,
            inset_pct=_optional_pct(data.get("inset_pct"), f"{field_name}.inset_pct"),
            label=label,
        )


@dataclass(frozen=True, slots=True)
class CountryDefinition:
    """Curated placement zones for one country, keyed by its exact name."""

    name: str
    bounds: Rect
    inset_pct: float | None = None
    patches: tuple[ZonePatch, ...] = ()

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> CountryDefinition:
        name = _require_str(name, "country name")
        bounds = Rect.from_mapping(data.get("bounds"), f"{name}.bounds")
        patches_raw = data.get("patches", [])
        patches: list[ZonePatch] = []
        if patches_raw is not None:
            if not isinstance(patches_raw, list):
                raise ValueError(f"Expected list for '{name}.patches'")
            for idx, item in enumerate(patches_raw):
                patches.append(ZonePatch.from_mapping(item, f"{name}.patches[{idx}]"))
        return cls(
            name=name,
            bounds=bounds,
            inset_pct=_optional_pct(data.get("inset_pct"), f"{name}.inset_pct"),
            patches=tuple(patches),
        )

    def effective_inset(self, patch: ZonePatch | None, default: float = DEFAULT_INSET_PCT) -> float:
        if patch is not None and patch.inset_pct is not None:
            return patch.inset_pct
        if self.inset_pct is not None:
            return self.inset_pct
        return default

    def safe_zones(self, default_inset_pct: float = DEFAULT_INSET_PCT) -> tuple[Rect, ...]:
        """Inset patches, or the inset bounds when the country has no patches."""
        if self.patches:
            return tuple(
                patch.rect.inset(self.effective_inset(patch, default_inset_pct))
                for patch in self.patches
            )
        return (self.bounds.inset(self.effective_inset(None, default_inset_pct)),)


class PlacementCase(str, Enum):
    SYNTHETIC = "synthetic"
    CLAMP_NEAREST = "clamp_nearest"
    SPIRAL_WITHIN_ZONE = "spiral_within_zone"
    CLAMP_IDENTITY = "clamp_identity"
    PASS_THROUGH = "pass_through"


@dataclass(frozen=True, slots=True)
class PlacementDecision:
    """How one record was placed and where it ended up."""

    index: int
    case: PlacementCase
    country: str | None
    seed: str
    bucket_size: int
    bucket_index: int
    lat: Any
    lon: Any

    @property
    def corrected(self) -> bool:
        return self.case is not PlacementCase.PASS_THROUGH

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "case": self.case.value,
            "country": self.country,
            "seed": self.seed,
            "bucket_size": self.bucket_size,
            "bucket_index": self.bucket_index,
            "lat": self.lat,
            "lon": self.lon,
        }
