"""Validation layer for the curated safe-zone table."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .models import DEFAULT_INSET_PCT, CountryDefinition
from .util import sha256_file
from .zones import ZoneTable


@dataclass(slots=True)
class ValidationReport:
    """Findings for one zone table plus what was checked."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    countries_checked: int = 0
    patches_checked: int = 0
    source_sha256: str | None = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)

    def summary(self) -> str:
        return (
            f"Checked {self.countries_checked} countries with {self.patches_checked} patches: "
            f"{len(self.errors)} errors, {len(self.warnings)} warnings"
        )


class ZoneTableValidator:
    """Checks a loaded zone table for entries that degrade placement quality.

    Structural problems (inverted or out-of-range rectangles) are rejected at
    load time; this pass reports softer issues that still place points but
    probably were not intended by whoever edited the table.
    """

    def __init__(self, table: ZoneTable, default_inset_pct: float = DEFAULT_INSET_PCT) -> None:
        self.table = table
        self.default_inset_pct = default_inset_pct

    def run(self) -> ValidationReport:
        report = ValidationReport()
        source = self.table.source_path
        if source is not None and source.exists():
            report.source_sha256 = sha256_file(source)
            report.add_info(f"Zone table {source} (sha256 {report.source_sha256})")
        if len(self.table) == 0:
            report.add_error("Zone table has no countries; every record would pass through.")
            return report

        for name in self.table.names():
            definition = self.table.countries[name]
            report.countries_checked += 1
            report.patches_checked += len(definition.patches)
            self._check_country(report, definition)
        return report

    def _check_country(self, report: ValidationReport, definition: CountryDefinition) -> None:
        name = definition.name
        if definition.bounds.is_degenerate:
            report.add_warning(f"{name}: bounds rectangle has zero area")

        if not definition.patches:
            pct = definition.effective_inset(None, self.default_inset_pct)
            if not definition.bounds.can_inset(pct):
                report.add_warning(f"{name}: inset {pct} would invert bounds; inset skipped")
            return

        for idx, patch in enumerate(definition.patches):
            where = f"{name}.patches[{idx}]"
            if patch.label:
                where = f"{where} ({patch.label})"
            rect = patch.rect
            if not (
                definition.bounds.contains(rect.lat_min, rect.lon_min)
                and definition.bounds.contains(rect.lat_max, rect.lon_max)
            ):
                report.add_warning(f"{where}: patch extends outside country bounds")
            if rect.is_degenerate:
                report.add_warning(f"{where}: patch has zero area")
            pct = definition.effective_inset(patch, self.default_inset_pct)
            if not rect.can_inset(pct):
                report.add_warning(f"{where}: inset {pct} would invert patch; inset skipped")


def format_report_lines(report: ValidationReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.countries_checked:
        lines.append(f"[INFO] {report.summary()}")
    if report.ok:
        lines.append("[OK] Zone table validation completed with no errors.")
    return lines
