"""Axis-aligned lat/lon rectangles and planar helpers used by placement."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))
METRES_PER_DEGREE = 111111.0
COS_EPSILON = 1e-6


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _range_pair(value: Any, field_name: str) -> tuple[float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"Expected [min, max] pair for '{field_name}'")
    out: list[float] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise ValueError(f"Expected numeric bounds for '{field_name}'")
        if not math.isfinite(item):
            raise ValueError(f"Expected finite bounds for '{field_name}'")
        out.append(float(item))
    return (out[0], out[1])


@dataclass(frozen=True, slots=True)
class Rect:
    """Closed latitude/longitude rectangle in degrees."""

    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    def __post_init__(self) -> None:
        if self.lat_min > self.lat_max:
            raise ValueError(f"Inverted latitude range [{self.lat_min}, {self.lat_max}]")
        if self.lon_min > self.lon_max:
            raise ValueError(f"Inverted longitude range [{self.lon_min}, {self.lon_max}]")

    @classmethod
    def from_mapping(cls, data: Any, field_name: str = "rect") -> Rect:
        """Build from a `{lat: [min, max], lon: [min, max]}` mapping."""
        if not isinstance(data, Mapping):
            raise ValueError(f"Expected mapping for '{field_name}'")
        lat_min, lat_max = _range_pair(data.get("lat"), f"{field_name}.lat")
        lon_min, lon_max = _range_pair(data.get("lon"), f"{field_name}.lon")
        if lat_min < -90.0 or lat_max > 90.0:
            raise ValueError(f"{field_name}.lat must be between -90 and 90")
        if lon_min < -180.0 or lon_max > 180.0:
            raise ValueError(f"{field_name}.lon must be between -180 and 180")
        try:
            return cls(lat_min=lat_min, lat_max=lat_max, lon_min=lon_min, lon_max=lon_max)
        except ValueError as exc:
            raise ValueError(f"{field_name}: {exc}") from exc

    @property
    def lat_span(self) -> float:
        return self.lat_max - self.lat_min

    @property
    def lon_span(self) -> float:
        return self.lon_max - self.lon_min

    @property
    def is_degenerate(self) -> bool:
        return self.lat_span <= 0.0 or self.lon_span <= 0.0

    def contains(self, lat: float, lon: float) -> bool:
        return self.lat_min <= lat <= self.lat_max and self.lon_min <= lon <= self.lon_max

    def clamp(self, lat: float, lon: float) -> tuple[float, float]:
        return (
            clamp(lat, self.lat_min, self.lat_max),
            clamp(lon, self.lon_min, self.lon_max),
        )

    def distance_sq(self, lat: float, lon: float) -> float:
        """Squared degree distance to the rectangle; 0 inside. Only good for ranking."""
        dy = 0.0
        dx = 0.0
        if lat < self.lat_min:
            dy = self.lat_min - lat
        elif lat > self.lat_max:
            dy = lat - self.lat_max
        if lon < self.lon_min:
            dx = self.lon_min - lon
        elif lon > self.lon_max:
            dx = lon - self.lon_max
        return dx * dx + dy * dy

    def can_inset(self, pct: float) -> bool:
        pad_lat = self.lat_span * pct
        pad_lon = self.lon_span * pct
        return (
            self.lat_min + pad_lat <= self.lat_max - pad_lat
            and self.lon_min + pad_lon <= self.lon_max - pad_lon
        )

    def inset(self, pct: float) -> Rect:
        """Shrink every side by `pct` of the span; unchanged if that would invert it."""
        if not self.can_inset(pct):
            return self
        pad_lat = self.lat_span * pct
        pad_lon = self.lon_span * pct
        return Rect(
            lat_min=self.lat_min + pad_lat,
            lat_max=self.lat_max - pad_lat,
            lon_min=self.lon_min + pad_lon,
            lon_max=self.lon_max - pad_lon,
        )

    def to_dict(self) -> dict[str, list[float]]:
        return {"lat": [self.lat_min, self.lat_max], "lon": [self.lon_min, self.lon_max]}


def inside_any(lat: float, lon: float, zones: Sequence[Rect]) -> bool:
    return any(zone.contains(lat, lon) for zone in zones)


def nearest_zone(lat: float, lon: float, zones: Sequence[Rect]) -> Rect:
    """Zone with the smallest rectangle distance; first one wins ties."""
    if not zones:
        raise ValueError("zones must not be empty")
    best = zones[0]
    best_d = math.inf
    for zone in zones:
        d = zone.distance_sq(lat, lon)
        if d < best_d:
            best_d = d
            best = zone
    return best


def clamp_to_nearest(lat: float, lon: float, zones: Sequence[Rect]) -> tuple[float, float]:
    return nearest_zone(lat, lon, zones).clamp(lat, lon)


def metres_to_degrees(
    lat: float,
    dx_m: float,
    dy_m: float,
    *,
    metres_per_degree: float = METRES_PER_DEGREE,
    cos_epsilon: float = COS_EPSILON,
) -> tuple[float, float]:
    """Local flat-earth conversion of an east/north offset to (d_lat, d_lon)."""
    d_lat = dy_m / metres_per_degree
    denom = metres_per_degree * math.cos(lat * math.pi / 180.0)
    if abs(denom) < cos_epsilon:
        denom = cos_epsilon
    return (d_lat, dx_m / denom)


def spiral_within(
    center_lat: float,
    center_lon: float,
    zone: Rect,
    index: int,
    *,
    base_m: float = 380.0,
    step_m: float = 240.0,
    max_retries: int = 12,
    shrink: float = 0.62,
    turn_factor: float = 1.15,
    metres_per_degree: float = METRES_PER_DEGREE,
    cos_epsilon: float = COS_EPSILON,
) -> tuple[float, float]:
    """Golden-angle spiral offset of `index` around the center, kept inside `zone`.

    Each miss shrinks the radius and turns further along the spiral. When every
    attempt lands outside the zone the center itself is clamped into it.
    """
    radius = base_m + index * step_m
    theta = index * GOLDEN_ANGLE
    for _ in range(max_retries):
        dx = math.cos(theta) * radius
        dy = math.sin(theta) * radius
        d_lat, d_lon = metres_to_degrees(
            center_lat,
            dx,
            dy,
            metres_per_degree=metres_per_degree,
            cos_epsilon=cos_epsilon,
        )
        lat = center_lat + d_lat
        lon = center_lon + d_lon
        if zone.contains(lat, lon):
            return (lat, lon)
        radius *= shrink
        theta += GOLDEN_ANGLE * turn_factor
    return zone.clamp(center_lat, center_lon)
