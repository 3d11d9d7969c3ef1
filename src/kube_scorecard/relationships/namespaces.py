"""Namespace defaulting.

An empty namespace on a resource means "the run's default namespace". The
substitution happens wherever namespaces are compared and never mutates the
resource itself.
"""

from __future__ import annotations

from typing import Optional


def resolve_namespace(namespace: Optional[str], default: str) -> str:
    return namespace or default


def same_namespace(first: Optional[str], second: Optional[str], default: str) -> bool:
    return resolve_namespace(first, default) == resolve_namespace(second, default)
