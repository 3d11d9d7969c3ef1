"""Kubernetes label selector semantics.

A selector is evaluated against a plain label mapping only. Namespace
equality is a separate predicate (see :mod:`.namespaces`) that every
relationship query ANDs in on its own.

Semantics follow ``metav1.LabelSelectorAsSelector``:

* ``None`` selects nothing.
* An empty selector (no ``matchLabels`` and no ``matchExpressions``) selects
  everything.
* ``matchLabels`` entries are equality requirements.
* ``matchExpressions`` support ``In``, ``NotIn``, ``Exists`` and
  ``DoesNotExist``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Tuple


class SelectorError(ValueError):
    """Raised when a label selector cannot be parsed."""


class Operator(str, Enum):
    EQUALS = "="
    IN = "In"
    NOT_IN = "NotIn"
    EXISTS = "Exists"
    DOES_NOT_EXIST = "DoesNotExist"


_NAME_PATTERN = re.compile(r"^([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9]$")
_VALUE_PATTERN = re.compile(r"^(([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?$")
_DNS_SUBDOMAIN_PATTERN = re.compile(
    r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"
)
_MAX_NAME_LENGTH = 63
_MAX_PREFIX_LENGTH = 253


def is_valid_label_value(value: str) -> bool:
    return len(value) <= _MAX_NAME_LENGTH and bool(_VALUE_PATTERN.match(value))


def is_qualified_name(key: str) -> bool:
    """Validate a label key: optional DNS subdomain prefix and a name part."""

    prefix, _, name = key.rpartition("/")
    if "/" in key:
        if not prefix or len(prefix) > _MAX_PREFIX_LENGTH:
            return False
        if not _DNS_SUBDOMAIN_PATTERN.match(prefix):
            return False
    return 0 < len(name) <= _MAX_NAME_LENGTH and bool(_NAME_PATTERN.match(name))


@dataclass(slots=True, frozen=True)
class Requirement:
    """A single ``key <operator> values`` requirement."""

    key: str
    operator: Operator
    values: FrozenSet[str] = frozenset()

    def matches(self, labels: Mapping[str, str]) -> bool:
        if self.operator in (Operator.EQUALS, Operator.IN):
            return self.key in labels and labels[self.key] in self.values
        if self.operator is Operator.NOT_IN:
            return self.key not in labels or labels[self.key] not in self.values
        if self.operator is Operator.EXISTS:
            return self.key in labels
        return self.key not in labels

    def __str__(self) -> str:
        if self.operator is Operator.EQUALS:
            return f"{self.key}={next(iter(self.values))}"
        if self.operator is Operator.EXISTS:
            return self.key
        if self.operator is Operator.DOES_NOT_EXIST:
            return f"!{self.key}"
        keyword = "in" if self.operator is Operator.IN else "notin"
        return f"{self.key} {keyword} ({','.join(sorted(self.values))})"


@dataclass(slots=True, frozen=True)
class LabelSelector:
    """A parsed selector: the conjunction of its requirements."""

    requirements: Tuple[Requirement, ...] = ()
    selects_nothing: bool = False

    @classmethod
    def everything(cls) -> "LabelSelector":
        return cls()

    @classmethod
    def nothing(cls) -> "LabelSelector":
        return cls(selects_nothing=True)

    @property
    def is_empty(self) -> bool:
        return not self.selects_nothing and not self.requirements

    def matches(self, labels: Mapping[str, str]) -> bool:
        if self.selects_nothing:
            return False
        return all(requirement.matches(labels) for requirement in self.requirements)

    def __str__(self) -> str:
        if self.selects_nothing:
            return "<none>"
        return ",".join(str(requirement) for requirement in self.requirements)


def _requirement(key: Any, operator: Operator, values: Iterable[Any]) -> Requirement:
    key = str(key)
    if not is_qualified_name(key):
        raise SelectorError(f"invalid label key {key!r}")

    value_list = ["" if value is None else str(value) for value in values]
    if operator in (Operator.IN, Operator.NOT_IN) and not value_list:
        raise SelectorError(
            f"values must be non-empty for operator {operator.value!r} on key {key!r}"
        )
    if operator in (Operator.EXISTS, Operator.DOES_NOT_EXIST) and value_list:
        raise SelectorError(
            f"values must be empty for operator {operator.value!r} on key {key!r}"
        )
    for value in value_list:
        if not is_valid_label_value(value):
            raise SelectorError(f"invalid label value {value!r} for key {key!r}")

    return Requirement(key=key, operator=operator, values=frozenset(value_list))


def parse_label_selector(selector: Optional[Mapping[str, Any]]) -> LabelSelector:
    """Parse a ``metav1.LabelSelector`` mapping.

    Raises :class:`SelectorError` when the selector is malformed.
    """

    if selector is None:
        return LabelSelector.nothing()
    if not isinstance(selector, Mapping):
        raise SelectorError("label selector must be a mapping")

    match_labels = selector.get("matchLabels") or {}
    match_expressions = selector.get("matchExpressions") or []
    if not isinstance(match_labels, Mapping):
        raise SelectorError("matchLabels must be a mapping")
    if not isinstance(match_expressions, list):
        raise SelectorError("matchExpressions must be a list")

    requirements: List[Requirement] = [
        _requirement(key, Operator.EQUALS, [value]) for key, value in match_labels.items()
    ]

    for expression in match_expressions:
        if not isinstance(expression, Mapping):
            raise SelectorError("matchExpressions entries must be mappings")
        raw_operator = str(expression.get("operator") or "")
        try:
            operator = Operator(raw_operator)
        except ValueError as exc:
            raise SelectorError(f"{raw_operator!r} is not a valid pod selector operator") from exc
        if operator is Operator.EQUALS:
            raise SelectorError(f"{raw_operator!r} is not a valid pod selector operator")

        values = expression.get("values") or []
        if not isinstance(values, list):
            raise SelectorError("matchExpressions values must be a list")
        requirements.append(_requirement(expression.get("key", ""), operator, values))

    requirements.sort(key=lambda requirement: requirement.key)
    return LabelSelector(requirements=tuple(requirements))


def selector_from_labels(labels: Optional[Mapping[str, Any]]) -> LabelSelector:
    """Build the equality selector used by ``Service.spec.selector``."""

    return parse_label_selector({"matchLabels": dict(labels or {})})


def selector_matches(selector: Optional[Mapping[str, Any]], labels: Mapping[str, str]) -> bool:
    """Fail-closed convenience: a malformed selector matches nothing."""

    try:
        return parse_label_selector(selector).matches(labels)
    except SelectorError:
        return False


__all__ = [
    "LabelSelector",
    "Operator",
    "Requirement",
    "SelectorError",
    "is_qualified_name",
    "is_valid_label_value",
    "parse_label_selector",
    "selector_from_labels",
    "selector_matches",
]
