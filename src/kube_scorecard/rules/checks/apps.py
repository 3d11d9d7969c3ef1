"""Anti-affinity, autoscaling, serviceName and selector rules for workloads."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from ...models import Deployment, Grade, PodSpecer, StatefulSet, TargetKind, TestScore
from ...models.resource import as_list, as_mapping
from ...relationships import HpaTargetIndex, SelectorError, ServiceIndex, parse_label_selector
from ..registry import RuleRegistry

ANTI_AFFINITY_DOCS_URL = "https://kubernetes.io/docs/concepts/configuration/assign-pod-node/"

APPROVED_TOPOLOGY_KEYS = frozenset(
    {
        "kubernetes.io/hostname",
        "topology.kubernetes.io/region",
        "topology.kubernetes.io/zone",
        # deprecated since Kubernetes v1.17
        "failure-domain.beta.kubernetes.io/region",
        "failure-domain.beta.kubernetes.io/zone",
    }
)


def _term_selects_self(term: Mapping[str, Any], labels: Dict[str, str]) -> bool:
    if term.get("topologyKey") not in APPROVED_TOPOLOGY_KEYS:
        return False
    try:
        return parse_label_selector(term.get("labelSelector")).matches(labels)
    except SelectorError:
        return False


def has_pod_anti_affinity(owner: PodSpecer) -> bool:
    """Whether an anti-affinity term on an approved topology key selects the pod itself."""

    template = owner.pod_template
    anti_affinity = as_mapping(template.spec.get("affinity")).get("podAntiAffinity")
    if not isinstance(anti_affinity, Mapping):
        return False

    labels = template.labels
    for item in as_list(anti_affinity.get("preferredDuringSchedulingIgnoredDuringExecution")):
        if _term_selects_self(as_mapping(as_mapping(item).get("podAffinityTerm")), labels):
            return True
    for item in as_list(anti_affinity.get("requiredDuringSchedulingIgnoredDuringExecution")):
        if _term_selects_self(as_mapping(item), labels):
            return True
    return False


def anti_affinity_score(owner: PodSpecer, noun: str) -> TestScore:
    score = TestScore()
    # Without explicit replicas an autoscaler may be in charge, so still warn.
    if owner.replicas is not None and owner.replicas < 2:
        return score.skip(f"Skipped because the {noun.lower()} has less than 2 replicas")

    if not has_pod_anti_affinity(owner):
        score.grade = Grade.WARNING
        score.add_comment(
            "",
            f"{noun} does not have a host podAntiAffinity set",
            "It's recommended to set a podAntiAffinity that stops multiple pods from a "
            f"{noun.lower()} from being scheduled on the same node. This increases availability in "
            "case the node becomes unavailable.",
        )
    return score


def selector_matches_template(owner: PodSpecer, noun: str, docs_url: str) -> TestScore:
    score = TestScore()
    try:
        selector = parse_label_selector(owner.selector)
    except SelectorError as exc:
        score.grade = Grade.CRITICAL
        score.add_comment(
            "",
            f"{noun} selector labels are not matching template metadata labels",
            f"Invalid selector: {exc}",
        )
        return score

    if not selector.matches(owner.pod_template.labels):
        score.grade = Grade.CRITICAL
        score.add_comment(
            "",
            f"{noun} selector labels not matching template metadata labels",
            f"{noun} require `.spec.selector` to match `.spec.template.metadata.labels`. {docs_url}",
        )
    return score


class AppsRules:
    def __init__(self, services: ServiceIndex, hpa_targets: HpaTargetIndex) -> None:
        self.services = services
        self.hpa_targets = hpa_targets

    def deployment_anti_affinity(self, deployment: Deployment) -> TestScore:
        return anti_affinity_score(deployment, "Deployment")

    def statefulset_anti_affinity(self, statefulset: StatefulSet) -> TestScore:
        return anti_affinity_score(statefulset, "StatefulSet")

    def hpa_deployment_no_replicas(self, deployment: Deployment) -> TestScore:
        score = TestScore()
        if not self.hpa_targets.targeting(deployment.kind, deployment.name, deployment.namespace):
            return score.skip(
                "Skipped because the deployment is not targeted by a HorizontalPodAutoscaler"
            )

        if deployment.replicas is not None:
            score.grade = Grade.CRITICAL
            score.add_comment(
                "",
                "The deployment is targeted by a HPA, but a static replica count is configured in "
                "the DeploymentSpec",
                "When replicas are both statically set and managed by the HPA, the replicas will be "
                "changed to the statically configured count when the spec is applied, even if the "
                "HPA wants the replica count to be higher.",
            )
        return score

    def statefulset_service_name(self, statefulset: StatefulSet) -> TestScore:
        score = TestScore()
        labels = statefulset.pod_template.labels
        for entry in self.services.named(statefulset.service_name, statefulset.namespace):
            if entry.service.cluster_ip == "None" and entry.selector.matches(labels):
                return score

        score.grade = Grade.CRITICAL
        score.add_comment(
            "",
            "StatefulSet does not have a valid serviceName",
            "StatefulSets currently require a Headless Service to be responsible for the network "
            "identity of the Pods. You are responsible for creating this Service. "
            "https://kubernetes.io/docs/concepts/workloads/controllers/statefulset/#limitations",
        )
        return score

    def deployment_selector_labels(self, deployment: Deployment) -> TestScore:
        return selector_matches_template(
            deployment,
            "Deployment",
            "https://kubernetes.io/docs/concepts/workloads/controllers/deployment/",
        )

    def statefulset_selector_labels(self, statefulset: StatefulSet) -> TestScore:
        return selector_matches_template(
            statefulset,
            "StatefulSet",
            "https://kubernetes.io/docs/concepts/workloads/controllers/statefulset/#pod-selector",
        )


def register(registry: RuleRegistry, services: ServiceIndex, hpa_targets: HpaTargetIndex) -> AppsRules:
    rules = AppsRules(services, hpa_targets)
    anti_affinity_help = (
        "Makes sure that a podAntiAffinity has been set that prevents multiple pods from being "
        f"scheduled on the same node. {ANTI_AFFINITY_DOCS_URL}"
    )
    registry.register(
        "Deployment has host PodAntiAffinity",
        TargetKind.DEPLOYMENT,
        rules.deployment_anti_affinity,
        help_text=anti_affinity_help,
    )
    registry.register(
        "StatefulSet has host PodAntiAffinity",
        TargetKind.STATEFULSET,
        rules.statefulset_anti_affinity,
        help_text=anti_affinity_help,
    )
    registry.register(
        "Deployment targeted by HPA does not have replicas configured",
        TargetKind.DEPLOYMENT,
        rules.hpa_deployment_no_replicas,
        help_text=(
            "Makes sure that Deployments using a HorizontalPodAutoscaler doesn't have a statically "
            "configured replica count set"
        ),
    )
    registry.register(
        "StatefulSet has ServiceName",
        TargetKind.STATEFULSET,
        rules.statefulset_service_name,
        help_text="Makes sure that StatefulSets have an existing headless serviceName.",
    )
    registry.register(
        "Deployment Pod Selector labels match template metadata labels",
        TargetKind.DEPLOYMENT,
        rules.deployment_selector_labels,
        help_text="Ensure the Deployment selector labels match the template metadata labels.",
    )
    registry.register(
        "StatefulSet Pod Selector labels match template metadata labels",
        TargetKind.STATEFULSET,
        rules.statefulset_selector_labels,
        help_text="Ensure the StatefulSet selector labels match the template metadata labels.",
    )
    return rules
