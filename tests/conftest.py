from __future__ import annotations

import pytest

from newsglobe.zones import ZoneTable


@pytest.fixture
def small_table() -> ZoneTable:
    return ZoneTable.from_mapping(
        {
            "version": 1,
            "countries": {
                "Testland": {
                    "bounds": {"lat": [0, 10], "lon": [0, 10]},
                    "inset_pct": 0.1,
                },
                "Patchland": {
                    "bounds": {"lat": [0, 20], "lon": [0, 20]},
                    "inset_pct": 0.0,
                    "patches": [
                        {"lat": [0, 5], "lon": [0, 5], "label": "south-west"},
                        {"lat": [10, 15], "lon": [10, 15], "label": "north-east"},
                    ],
                },
            },
        }
    )
