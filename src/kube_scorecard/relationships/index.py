"""Namespace-indexed lookup structures for cross-resource rules.

:class:`RelationshipIndex` is built once per run in a single pass over the
manifest set. Each sub-index only answers queries against the candidates of
one namespace, so a query costs O(candidates in namespace) rather than a scan
of every object. Rules receive the sub-indices they need as constructor
arguments and never see the manifest set itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

from ..models import (
    HorizontalPodAutoscaler,
    KubeObject,
    ManifestSet,
    NetworkPolicy,
    ObjectReference,
    PodDisruptionBudget,
    ResourceIdentity,
    Service,
)
from .namespaces import resolve_namespace
from .selectors import LabelSelector, SelectorError, parse_label_selector, selector_from_labels

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NamespacedIndex(Generic[T]):
    """Candidates grouped by their resolved namespace."""

    def __init__(self, default_namespace: str = "") -> None:
        self.default_namespace = default_namespace
        self._by_namespace: Dict[str, List[T]] = {}

    def resolve(self, namespace: Optional[str]) -> str:
        return resolve_namespace(namespace, self.default_namespace)

    def add(self, namespace: Optional[str], item: T) -> None:
        self._by_namespace.setdefault(self.resolve(namespace), []).append(item)

    def in_namespace(self, namespace: Optional[str]) -> List[T]:
        return self._by_namespace.get(self.resolve(namespace), [])

    def items(self) -> Iterator[Tuple[str, List[T]]]:
        return iter(self._by_namespace.items())

    def __len__(self) -> int:
        return sum(len(items) for items in self._by_namespace.values())


def _parse_candidate_selector(owner: ResourceIdentity, raw, *, equality: bool = False) -> LabelSelector:
    """Parse a candidate's selector, degrading to "selects nothing" on error."""

    try:
        if equality:
            return selector_from_labels(raw)
        return parse_label_selector(raw)
    except SelectorError as exc:
        logger.warning(
            "Ignoring malformed selector on %s (%s): %s",
            owner.display_name,
            owner.location.name or "<unknown>",
            exc,
        )
        return LabelSelector.nothing()


@dataclass(slots=True, frozen=True)
class PodLabels:
    owner: ResourceIdentity
    labels: Dict[str, str]


class PodLabelIndex(NamespacedIndex[PodLabels]):
    """Label sets of bare pods and of every pod template."""

    def any_selected(self, selector: LabelSelector, namespace: Optional[str]) -> bool:
        return any(selector.matches(pod.labels) for pod in self.in_namespace(namespace))


@dataclass(slots=True, frozen=True)
class IndexedService:
    service: Service
    selector: LabelSelector


class ServiceIndex(NamespacedIndex[IndexedService]):
    def selecting(self, labels: Dict[str, str], namespace: Optional[str]) -> List[Service]:
        """Services in ``namespace`` whose selector matches ``labels``."""

        return [
            entry.service
            for entry in self.in_namespace(namespace)
            if entry.selector.matches(labels)
        ]

    def selects(self, labels: Dict[str, str], namespace: Optional[str]) -> bool:
        return any(entry.selector.matches(labels) for entry in self.in_namespace(namespace))

    def named(self, name: str, namespace: Optional[str]) -> List[IndexedService]:
        return [entry for entry in self.in_namespace(namespace) if entry.service.name == name]


@dataclass(slots=True, frozen=True)
class IndexedNetworkPolicy:
    policy: NetworkPolicy
    selector: LabelSelector
    covers_ingress: bool
    covers_egress: bool


def policy_directions(policy: NetworkPolicy) -> Tuple[bool, bool]:
    """Return ``(ingress, egress)`` coverage of a NetworkPolicy.

    Without ``policyTypes`` every policy affects Ingress, and affects Egress
    only when it has a non-empty egress section.
    """

    policy_types = policy.policy_types
    if not policy_types:
        return True, bool(policy.egress_rules)
    return "Ingress" in policy_types, "Egress" in policy_types


class NetworkPolicyIndex(NamespacedIndex[IndexedNetworkPolicy]):
    def coverage(self, labels: Dict[str, str], namespace: Optional[str]) -> Tuple[bool, bool]:
        """Return whether matching policies cover ``(ingress, egress)``."""

        ingress = egress = False
        for entry in self.in_namespace(namespace):
            if not entry.selector.matches(labels):
                continue
            ingress = ingress or entry.covers_ingress
            egress = egress or entry.covers_egress
        return ingress, egress


@dataclass(slots=True, frozen=True)
class IndexedDisruptionBudget:
    budget: PodDisruptionBudget
    selector: LabelSelector


class DisruptionBudgetIndex(NamespacedIndex[IndexedDisruptionBudget]):
    def covers(self, labels: Dict[str, str], namespace: Optional[str]) -> bool:
        return any(entry.selector.matches(labels) for entry in self.in_namespace(namespace))

    def mismatched_namespaces(self, labels: Dict[str, str], namespace: Optional[str]) -> List[str]:
        """Namespaces other than ``namespace`` holding a budget matching ``labels``."""

        own = self.resolve(namespace)
        found: List[str] = []
        for budget_namespace, entries in self.items():
            if budget_namespace == own:
                continue
            if any(entry.selector.matches(labels) for entry in entries):
                found.append(budget_namespace)
        return found


@dataclass(slots=True, frozen=True)
class HpaTarget:
    autoscaler: HorizontalPodAutoscaler
    target: ObjectReference


class HpaTargetIndex(NamespacedIndex[HpaTarget]):
    def targeting(
        self,
        kind: str,
        name: str,
        namespace: Optional[str],
        api_version: Optional[str] = None,
    ) -> List[HorizontalPodAutoscaler]:
        """Autoscalers whose scale target is the given object.

        Kinds are compared case-insensitively; ``api_version`` is only
        compared when given.
        """

        matches = []
        for entry in self.in_namespace(namespace):
            target = entry.target
            if target.kind.casefold() != kind.casefold() or target.name != name:
                continue
            if api_version is not None and target.api_version != api_version:
                continue
            matches.append(entry.autoscaler)
        return matches


class MetaIndex(NamespacedIndex[KubeObject]):
    def find(self, reference: ObjectReference, namespace: Optional[str]) -> Optional[KubeObject]:
        for candidate in self.in_namespace(namespace):
            if (
                candidate.api_version == reference.api_version
                and candidate.kind.casefold() == reference.kind.casefold()
                and candidate.name == reference.name
            ):
                return candidate
        return None


@dataclass(slots=True)
class RelationshipIndex:
    """All namespace-indexed sub-indices of one run."""

    default_namespace: str = ""
    pods: PodLabelIndex = field(default_factory=PodLabelIndex)
    services: ServiceIndex = field(default_factory=ServiceIndex)
    network_policies: NetworkPolicyIndex = field(default_factory=NetworkPolicyIndex)
    disruption_budgets: DisruptionBudgetIndex = field(default_factory=DisruptionBudgetIndex)
    hpa_targets: HpaTargetIndex = field(default_factory=HpaTargetIndex)
    metas: MetaIndex = field(default_factory=MetaIndex)

    @classmethod
    def build(cls, manifests: ManifestSet, default_namespace: str = "") -> "RelationshipIndex":
        """Index ``manifests`` in one pass."""

        index = cls(
            default_namespace=default_namespace,
            pods=PodLabelIndex(default_namespace),
            services=ServiceIndex(default_namespace),
            network_policies=NetworkPolicyIndex(default_namespace),
            disruption_budgets=DisruptionBudgetIndex(default_namespace),
            hpa_targets=HpaTargetIndex(default_namespace),
            metas=MetaIndex(default_namespace),
        )

        for obj in manifests.metas:
            index.metas.add(obj.namespace, obj)

        for pod in manifests.pods:
            index.pods.add(pod.namespace, PodLabels(owner=pod.identity, labels=pod.labels))
        for owner in manifests.pod_specers:
            # Templates inherit the namespace of the object that owns them.
            index.pods.add(
                owner.namespace,
                PodLabels(owner=owner.identity, labels=owner.pod_template.labels),
            )

        for service in manifests.services:
            selector = _parse_candidate_selector(service.identity, service.selector, equality=True)
            index.services.add(service.namespace, IndexedService(service=service, selector=selector))

        for policy in manifests.network_policies:
            selector = _parse_candidate_selector(policy.identity, policy.pod_selector)
            ingress, egress = policy_directions(policy)
            index.network_policies.add(
                policy.namespace,
                IndexedNetworkPolicy(
                    policy=policy,
                    selector=selector,
                    covers_ingress=ingress,
                    covers_egress=egress,
                ),
            )

        for budget in manifests.pdbs:
            selector = _parse_candidate_selector(budget.identity, budget.selector)
            index.disruption_budgets.add(
                budget.namespace, IndexedDisruptionBudget(budget=budget, selector=selector)
            )

        for autoscaler in manifests.hpas:
            index.hpa_targets.add(
                autoscaler.namespace, HpaTarget(autoscaler=autoscaler, target=autoscaler.target)
            )

        logger.debug(
            "Indexed %d pod label sets, %d services, %d network policies, "
            "%d disruption budgets and %d autoscalers",
            len(index.pods),
            len(index.services),
            len(index.network_policies),
            len(index.disruption_budgets),
            len(index.hpa_targets),
        )
        return index


__all__ = [
    "DisruptionBudgetIndex",
    "HpaTargetIndex",
    "MetaIndex",
    "NamespacedIndex",
    "NetworkPolicyIndex",
    "PodLabelIndex",
    "PodLabels",
    "RelationshipIndex",
    "ServiceIndex",
    "policy_directions",
]
