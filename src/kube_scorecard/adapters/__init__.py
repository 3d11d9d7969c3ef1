"""Adapters that read manifests and filter documents before normalization."""

from .manifest_loader import STDIN_NAME, ManifestDocument, ManifestLoader, ManifestLoadError
from .skip_expression import SkipExpression, SkipExpressionError, parse_skip_expressions

__all__ = [
    "ManifestDocument",
    "ManifestLoadError",
    "ManifestLoader",
    "STDIN_NAME",
    "SkipExpression",
    "SkipExpressionError",
    "parse_skip_expressions",
]
