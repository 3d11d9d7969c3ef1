"""Selector semantics and namespace-indexed relationship lookups."""

from .index import (
    DisruptionBudgetIndex,
    HpaTargetIndex,
    MetaIndex,
    NetworkPolicyIndex,
    PodLabelIndex,
    RelationshipIndex,
    ServiceIndex,
    policy_directions,
)
from .namespaces import resolve_namespace, same_namespace
from .selectors import (
    LabelSelector,
    SelectorError,
    parse_label_selector,
    selector_from_labels,
    selector_matches,
)

__all__ = [
    "DisruptionBudgetIndex",
    "HpaTargetIndex",
    "LabelSelector",
    "MetaIndex",
    "NetworkPolicyIndex",
    "PodLabelIndex",
    "RelationshipIndex",
    "SelectorError",
    "ServiceIndex",
    "parse_label_selector",
    "policy_directions",
    "resolve_namespace",
    "same_namespace",
    "selector_from_labels",
    "selector_matches",
]
