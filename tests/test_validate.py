from __future__ import annotations

from newsglobe.validate import ValidationReport, ZoneTableValidator, format_report_lines
from newsglobe.zones import ZoneTable, default_zone_table


def _table(countries: dict) -> ZoneTable:
    return ZoneTable.from_mapping({"countries": countries})


def test_packaged_table_validates() -> None:
    report = ZoneTableValidator(default_zone_table()).run()
    assert report.ok
    assert any("sha256" in msg for msg in report.infos)
    assert report.countries_checked == 59
    assert report.patches_checked > report.countries_checked
    assert report.source_sha256 is not None and len(report.source_sha256) == 64
    lines = format_report_lines(report)
    assert lines[-2].startswith("[INFO] Checked 59 countries with ")
    assert lines[-2].endswith(": 0 errors, 0 warnings")


def test_empty_table_is_an_error() -> None:
    report = ZoneTableValidator(ZoneTable()).run()
    assert not report.ok
    assert report.countries_checked == 0
    assert format_report_lines(report)[-1].startswith("[ERROR]")


def test_patch_outside_bounds_warns() -> None:
    table = _table(
        {
            "Spillover": {
                "bounds": {"lat": [0, 10], "lon": [0, 10]},
                "patches": [{"lat": [5, 12], "lon": [1, 2], "label": "north"}],
            }
        }
    )
    report = ZoneTableValidator(table).run()
    assert report.ok
    assert any("Spillover.patches[0] (north)" in w and "outside" in w for w in report.warnings)


def test_skipped_inset_and_degenerate_rects_warn() -> None:
    table = _table(
        {
            "Thin": {"bounds": {"lat": [1, 1], "lon": [0, 10]}},
            "Greedy": {
                "bounds": {"lat": [0, 10], "lon": [0, 10]},
                "patches": [{"lat": [1, 2], "lon": [1, 2], "inset_pct": 0.8}],
            },
        }
    )
    report = ZoneTableValidator(table).run()
    assert any("Thin: bounds rectangle has zero area" in w for w in report.warnings)
    assert any("Greedy.patches[0]" in w and "inset skipped" in w for w in report.warnings)
    assert report.summary() == "Checked 2 countries with 1 patches: 0 errors, 2 warnings"


def test_format_report_lines_ok_marker() -> None:
    report = ValidationReport()
    report.add_info("hello")
    report.add_warning("careful")
    assert format_report_lines(report) == [
        "[INFO] hello",
        "[WARN] careful",
        "[OK] Zone table validation completed with no errors.",
    ]
