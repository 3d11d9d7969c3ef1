from __future__ import annotations

from decimal import Decimal

import pytest

from kube_scorecard.normalization import QuantityError, parse_quantity, quantities_equal


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("500m", Decimal("0.5")),
        ("1", Decimal(1)),
        (2, Decimal(2)),
        ("1Ki", Decimal(1024)),
        ("1.5Gi", Decimal("1.5") * 2**30),
        ("2k", Decimal(2000)),
        ("1e3", Decimal(1000)),
        ("100M", Decimal(100_000_000)),
    ],
)
def test_parse_quantity(raw: object, expected: Decimal) -> None:
    assert parse_quantity(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "1Xi", True])
def test_invalid_quantities(raw: object) -> None:
    with pytest.raises(QuantityError):
        parse_quantity(raw)


def test_equality_is_numeric() -> None:
    assert quantities_equal("1Gi", "1024Mi")
    assert quantities_equal("0.5", "500m")
    assert not quantities_equal("1G", "1Gi")
    assert quantities_equal("weird", "weird")
