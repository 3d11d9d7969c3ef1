"""Parsing of Kubernetes resource quantities such as ``500m`` or ``1Gi``."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any

_BINARY_SUFFIXES = {
    "Ki": Decimal(2) ** 10,
    "Mi": Decimal(2) ** 20,
    "Gi": Decimal(2) ** 30,
    "Ti": Decimal(2) ** 40,
    "Pi": Decimal(2) ** 50,
    "Ei": Decimal(2) ** 60,
}

_DECIMAL_SUFFIXES = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "": Decimal(1),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
}

_QUANTITY_PATTERN = re.compile(
    r"^(?P<number>[+-]?(\d+(\.\d*)?|\.\d+))(?P<suffix>Ki|Mi|Gi|Ti|Pi|Ei|[eE][+-]?\d+|[numkMGTPE])?$"
)


class QuantityError(ValueError):
    """Raised when a value is not a valid resource quantity."""


def parse_quantity(value: Any) -> Decimal:
    """Return the numeric value of a quantity in base units."""

    if isinstance(value, bool):
        raise QuantityError(f"invalid quantity {value!r}")
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    match = _QUANTITY_PATTERN.match(str(value).strip())
    if not match:
        raise QuantityError(f"invalid quantity {value!r}")

    try:
        number = Decimal(match.group("number"))
    except InvalidOperation as exc:
        raise QuantityError(f"invalid quantity {value!r}") from exc

    suffix = match.group("suffix") or ""
    if suffix in _BINARY_SUFFIXES:
        return number * _BINARY_SUFFIXES[suffix]
    if suffix[:1] in ("e", "E") and len(suffix) > 1:
        return number.scaleb(int(suffix[1:]))
    return number * _DECIMAL_SUFFIXES[suffix]


def quantities_equal(first: Any, second: Any) -> bool:
    """Compare two quantities numerically; unparsable values compare as text."""

    try:
        return parse_quantity(first) == parse_quantity(second)
    except QuantityError:
        return str(first).strip() == str(second).strip()


__all__ = ["QuantityError", "parse_quantity", "quantities_equal"]
