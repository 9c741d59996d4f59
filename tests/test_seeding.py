from __future__ import annotations

import pytest

from newsglobe.seeding import Mulberry32, hash32, seeded_random


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", 0x811C9DC5),
        ("a", 0xE40C292C),
        ("foobar", 0xBF9CF968),
        ("a1#0", 0x4406E1B4),
    ],
)
def test_hash32_matches_fnv1a(text: str, expected: int) -> None:
    assert hash32(text) == expected


def test_hash32_uses_utf16_code_units() -> None:
    # A non-BMP character is two UTF-16 units, hashed one after the other.
    assert hash32("\U0001F30D") != hash32("\uD83C")
    assert 0 <= hash32("\U0001F30D") <= 0xFFFFFFFF


def test_mulberry32_reference_sequence() -> None:
    rnd = Mulberry32(0)
    assert rnd.random() == pytest.approx(0.26642920868471265, abs=1e-15)
    assert rnd.random() == pytest.approx(0.0003297457005828619, abs=1e-15)
    assert rnd.random() == pytest.approx(0.22327202744781971, abs=1e-15)


def test_seeded_random_is_reproducible() -> None:
    first = seeded_random("a1#0")
    second = seeded_random("a1#0")
    values = [first.random() for _ in range(50)]
    assert values == [second.random() for _ in range(50)]
    assert values[:3] == pytest.approx(
        [0.85609044088050723, 0.89947073860093951, 0.69365163659676909], abs=1e-15
    )
    assert all(0.0 <= v < 1.0 for v in values)


def test_different_seeds_diverge() -> None:
    assert seeded_random("a1#0").random() != seeded_random("a1#1").random()
