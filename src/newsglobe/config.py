"""Typed configuration loader for `config.yaml`.

Every section and key is optional. Missing keys fall back to the defaults the
globe has always used, so placement works with no config file at all.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .models import DEFAULT_INSET_PCT

DEFAULT_CONFIG_PATH = Path("config.yaml")


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str, *, minimum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    if minimum is not None and value < minimum:
        raise ValueError(f"'{field_name}' must be >= {minimum}")
    return value


def _float(value: Any, field_name: str, *, minimum: float | None = None) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected float for '{field_name}'")
    out = float(value)
    if minimum is not None and out < minimum:
        raise ValueError(f"'{field_name}' must be >= {minimum}")
    return out


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _optional_path(value: Any, field_name: str, root_dir: Path) -> Path | None:
    if value is None:
        return None
    p = Path(_str(value, field_name))
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class PlacementSettings:
    """Tunable visual constants for point placement."""

    duplicate_threshold: int = 3
    coordinate_precision: int = 3
    default_inset_pct: float = DEFAULT_INSET_PCT
    clamp_patch_gaps: bool = False
    spiral_base_m: float = 380.0
    spiral_step_m: float = 240.0
    spiral_max_retries: int = 12
    spiral_shrink: float = 0.62
    spiral_turn_factor: float = 1.15
    metres_per_degree: float = 111111.0
    cos_epsilon: float = 1e-6

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PlacementSettings:
        d = cls()
        spiral = _mapping(raw.get("spiral"), "placement.spiral")
        return cls(
            duplicate_threshold=_int(
                raw.get("duplicate_threshold", d.duplicate_threshold),
                "placement.duplicate_threshold",
                minimum=2,
            ),
            coordinate_precision=_int(
                raw.get("coordinate_precision", d.coordinate_precision),
                "placement.coordinate_precision",
                minimum=0,
            ),
            default_inset_pct=_float(
                raw.get("default_inset_pct", d.default_inset_pct),
                "placement.default_inset_pct",
                minimum=0.0,
            ),
            clamp_patch_gaps=_bool(
                raw.get("clamp_patch_gaps", d.clamp_patch_gaps), "placement.clamp_patch_gaps"
            ),
            spiral_base_m=_float(
                spiral.get("base_m", d.spiral_base_m), "placement.spiral.base_m", minimum=0.0
            ),
            spiral_step_m=_float(
                spiral.get("step_m", d.spiral_step_m), "placement.spiral.step_m", minimum=0.0
            ),
            spiral_max_retries=_int(
                spiral.get("max_retries", d.spiral_max_retries),
                "placement.spiral.max_retries",
                minimum=0,
            ),
            spiral_shrink=_float(
                spiral.get("shrink", d.spiral_shrink), "placement.spiral.shrink", minimum=0.0
            ),
            spiral_turn_factor=_float(
                spiral.get("turn_factor", d.spiral_turn_factor), "placement.spiral.turn_factor"
            ),
        )


@dataclass(frozen=True, slots=True)
class FeedConfig:
    base_url: str = "https://manojseq-newsglobe-backend.hf.space"
    user_agent: str = "NewsGlobe/Proxy"
    request_timeout_s: float = 20.0
    max_retries: int = 3
    retry_backoff_s: float = 1.0
    page_size: int = 200
    speed: str = "balanced"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> FeedConfig:
        d = cls()
        return cls(
            base_url=_str(raw.get("base_url", d.base_url), "feed.base_url").rstrip("/"),
            user_agent=_str(raw.get("user_agent", d.user_agent), "feed.user_agent"),
            request_timeout_s=_float(
                raw.get("request_timeout_s", d.request_timeout_s),
                "feed.request_timeout_s",
                minimum=0.0,
            ),
            max_retries=_int(raw.get("max_retries", d.max_retries), "feed.max_retries", minimum=0),
            retry_backoff_s=_float(
                raw.get("retry_backoff_s", d.retry_backoff_s), "feed.retry_backoff_s", minimum=0.0
            ),
            page_size=_int(raw.get("page_size", d.page_size), "feed.page_size", minimum=1),
            speed=_str(raw.get("speed", d.speed), "feed.speed"),
        )


@dataclass(frozen=True, slots=True)
class PathsConfig:
    zones: Path | None = None
    log_file: Path | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        return cls(
            zones=_optional_path(raw.get("zones"), "paths.zones", root_dir),
            log_file=_optional_path(raw.get("log_file"), "paths.log_file", root_dir),
        )


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path | None = None
    paths: PathsConfig = field(default_factory=PathsConfig)
    placement: PlacementSettings = field(default_factory=PlacementSettings)
    feed: FeedConfig = field(default_factory=FeedConfig)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            placement=PlacementSettings.from_mapping(_mapping(raw.get("placement"), "placement")),
            feed=FeedConfig.from_mapping(_mapping(raw.get("feed"), "feed")),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)


def resolve_config(path: str | Path | None) -> AppConfig:
    """Explicit path must exist; otherwise use `config.yaml` when present, else defaults."""
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return AppConfig()
