"""Country-safe display coordinates for article records.

Raw article coordinates are noisy: missing, stacked on one city centroid, or
outside the country the article is attributed to. `place_articles` maps a batch
of records to display coordinates that sit inside the country's curated safe
zones, spread duplicates apart, and stay identical across re-renders.

Each record is classified once into a `PlacementCase`:

* SYNTHETIC: missing or (0, 0) coordinates, a point outside every safe zone,
  or a heavily duplicated coordinate. A seeded point is drawn inside one of
  the country's zones.
* CLAMP_NEAREST: with `clamp_patch_gaps`, a point inside the country bounds
  that falls between patches is moved onto the nearest patch.
* SPIRAL_WITHIN_ZONE: a handful of records share a safe coordinate and are
  fanned out along a golden-angle spiral.
* CLAMP_IDENTITY: a single safe point, clamped against boundary rounding.

Records with an unknown or missing country pass through untouched.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Any, Iterable, Mapping, Sequence

from .config import PlacementSettings
from .geometry import Rect, clamp_to_nearest, inside_any, nearest_zone, spiral_within
from .models import CountryDefinition, PlacementCase, PlacementDecision
from .seeding import seeded_random
from .zones import ZoneTable, default_zone_table

_LOGGER = logging.getLogger("newsglobe.placement")

_DEFAULT_SETTINGS = PlacementSettings()
_IDENTITY_FIELDS = ("id", "url", "title")
_ABSENT = object()

BucketKey = tuple[str, str, str]


def is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range read as infinite
        return False


def _is_batch(records: Any) -> bool:
    return isinstance(records, Sequence) and not isinstance(records, (str, bytes, bytearray))


def _known_country(record: Mapping[str, Any]) -> str | None:
    country = record.get("country")
    if isinstance(country, str) and country:
        return country
    return None


def _coordinate_key(value: Any, precision: int) -> str:
    if value is None:
        # null coerces to zero, so it shares a bucket with real (0, 0) rows
        return f"{0.0:.{precision}f}"
    if not is_finite_number(value):
        return "nan"
    # +0.0 folds negative zero into zero
    return f"{float(value) + 0.0:.{precision}f}"


def bucket_key(record: Mapping[str, Any], precision: int = 3) -> BucketKey | None:
    """Duplicate-bucket key `(country, lat, lon)` with rounded coordinates."""
    country = _known_country(record)
    if country is None:
        return None
    return (
        country,
        _coordinate_key(record.get("lat", _ABSENT), precision),
        _coordinate_key(record.get("lon", _ABSENT), precision),
    )


def duplicate_buckets(records: Sequence[Any], precision: int = 3) -> dict[BucketKey, list[int]]:
    """Group batch positions by bucket key; records without a country are skipped."""
    buckets: dict[BucketKey, list[int]] = {}
    for idx, record in enumerate(records):
        if not isinstance(record, Mapping):
            continue
        key = bucket_key(record, precision)
        if key is None:
            continue
        buckets.setdefault(key, []).append(idx)
    return buckets


def _bucket_positions(records: Sequence[Any], precision: int) -> dict[int, tuple[int, int]]:
    positions: dict[int, tuple[int, int]] = {}
    for members in duplicate_buckets(records, precision).values():
        size = len(members)
        for local_index, idx in enumerate(members):
            positions[idx] = (size, local_index)
    return positions


def identity_seed(record: Mapping[str, Any], index: int) -> str:
    """First truthy of id, url, title; else the batch position."""
    for field_name in _IDENTITY_FIELDS:
        value = record.get(field_name)
        if value:
            return str(value)
    return str(index)


def stable_zone_point(zones: Sequence[Rect], seed: str) -> tuple[float, float]:
    """Seeded point inside one of `zones`; the same seed always yields the same point."""
    if not zones:
        raise ValueError("zones must not be empty")
    rnd = seeded_random(seed)
    if len(zones) > 1:
        zone = zones[math.floor(rnd.random() * len(zones))]
    else:
        zone = zones[0]
    lat = zone.lat_min + rnd.random() * (zone.lat_max - zone.lat_min)
    lon = zone.lon_min + rnd.random() * (zone.lon_max - zone.lon_min)
    return zone.clamp(lat, lon)


def stable_country_point(
    country: str,
    seed: str,
    table: ZoneTable | None = None,
    settings: PlacementSettings | None = None,
) -> tuple[float, float] | None:
    table = table if table is not None else default_zone_table()
    settings = settings or _DEFAULT_SETTINGS
    zones = table.safe_zones(country, settings.default_inset_pct)
    if not zones:
        return None
    return stable_zone_point(zones, seed or country)


def classify(
    lat: Any,
    lon: Any,
    definition: CountryDefinition,
    zones: Sequence[Rect],
    bucket_size: int,
    settings: PlacementSettings = _DEFAULT_SETTINGS,
) -> PlacementCase:
    if not (is_finite_number(lat) and is_finite_number(lon)):
        return PlacementCase.SYNTHETIC
    if lat == 0 and lon == 0:
        return PlacementCase.SYNTHETIC
    if bucket_size >= settings.duplicate_threshold:
        return PlacementCase.SYNTHETIC
    if not inside_any(lat, lon, zones):
        if (
            settings.clamp_patch_gaps
            and definition.patches
            and definition.bounds.contains(lat, lon)
        ):
            return PlacementCase.CLAMP_NEAREST
        return PlacementCase.SYNTHETIC
    if bucket_size > 1:
        return PlacementCase.SPIRAL_WITHIN_ZONE
    return PlacementCase.CLAMP_IDENTITY


def _resolve(
    case: PlacementCase,
    lat: float,
    lon: float,
    zones: Sequence[Rect],
    seed: str,
    bucket_index: int,
    settings: PlacementSettings,
) -> tuple[float, float]:
    if case is PlacementCase.SYNTHETIC:
        return stable_zone_point(zones, f"{seed}#{bucket_index}")
    if case is PlacementCase.SPIRAL_WITHIN_ZONE:
        zone = nearest_zone(lat, lon, zones)
        center_lat, center_lon = zone.clamp(lat, lon)
        return spiral_within(
            center_lat,
            center_lon,
            zone,
            bucket_index,
            base_m=settings.spiral_base_m,
            step_m=settings.spiral_step_m,
            max_retries=settings.spiral_max_retries,
            shrink=settings.spiral_shrink,
            turn_factor=settings.spiral_turn_factor,
            metres_per_degree=settings.metres_per_degree,
            cos_epsilon=settings.cos_epsilon,
        )
    return clamp_to_nearest(lat, lon, zones)


def plan_placements(
    records: Any,
    table: ZoneTable | None = None,
    settings: PlacementSettings | None = None,
) -> list[PlacementDecision]:
    """Classify and resolve every mapping record in the batch."""
    if records is None or not _is_batch(records):
        return []
    table = table if table is not None else default_zone_table()
    settings = settings or _DEFAULT_SETTINGS
    positions = _bucket_positions(records, settings.coordinate_precision)

    decisions: list[PlacementDecision] = []
    for idx, record in enumerate(records):
        if not isinstance(record, Mapping):
            continue
        country = _known_country(record)
        definition = table.get(country)
        seed = identity_seed(record, idx)
        bucket_size, bucket_index = positions.get(idx, (0, 0))
        lat = record.get("lat")
        lon = record.get("lon")
        if definition is None:
            decisions.append(
                PlacementDecision(
                    index=idx,
                    case=PlacementCase.PASS_THROUGH,
                    country=country,
                    seed=seed,
                    bucket_size=bucket_size,
                    bucket_index=bucket_index,
                    lat=lat,
                    lon=lon,
                )
            )
            continue

        zones = definition.safe_zones(settings.default_inset_pct)
        case = classify(lat, lon, definition, zones, bucket_size, settings)
        if case is not PlacementCase.SYNTHETIC:
            lat = float(lat)
            lon = float(lon)
        out_lat, out_lon = _resolve(case, lat, lon, zones, seed, bucket_index, settings)
        decisions.append(
            PlacementDecision(
                index=idx,
                case=case,
                country=country,
                seed=seed,
                bucket_size=bucket_size,
                bucket_index=bucket_index,
                lat=out_lat,
                lon=out_lon,
            )
        )
    return decisions


def summarize_decisions(decisions: Iterable[PlacementDecision]) -> dict[str, int]:
    counts = Counter(decision.case.value for decision in decisions)
    return {case.value: counts.get(case.value, 0) for case in PlacementCase}


def place_articles(
    records: Any,
    table: ZoneTable | None = None,
    settings: PlacementSettings | None = None,
) -> Any:
    """Return a new batch with country-safe `lat`/`lon`; order and length preserved.

    Every mapping is shallow-copied and only its coordinates may change. Entries
    that are not mappings are passed through as-is. `None` gives an empty list
    and any other non-sequence input is returned unchanged.
    """
    if records is None:
        return []
    if not _is_batch(records):
        return records

    decisions = plan_placements(records, table, settings)
    placed = apply_decisions(records, decisions)
    if decisions:
        _LOGGER.debug("Placed %d records: %s", len(decisions), summarize_decisions(decisions))
    return placed


def apply_decisions(records: Sequence[Any], decisions: Iterable[PlacementDecision]) -> list[Any]:
    """Copy `records`, writing each decision's coordinates into its record."""
    by_index = {decision.index: decision for decision in decisions}
    placed: list[Any] = []
    for idx, record in enumerate(records):
        decision = by_index.get(idx)
        if decision is None:
            placed.append(record)
            continue
        out = dict(record)
        if decision.corrected:
            out["lat"] = decision.lat
            out["lon"] = decision.lon
        placed.append(out)
    return placed
