"""Normalization of decoded manifests into typed resource views."""

from .manifest_normalizer import SKIP_ANNOTATION, ManifestNormalizer
from .quantity import QuantityError, parse_quantity, quantities_equal

__all__ = [
    "ManifestNormalizer",
    "QuantityError",
    "SKIP_ANNOTATION",
    "parse_quantity",
    "quantities_equal",
]
