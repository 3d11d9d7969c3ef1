"""Warn about deprecated apiVersions once their stable replacement is available."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from ...config import KubernetesVersion
from ...models import Grade, KubeObject, TargetKind, TestScore
from ..registry import RuleRegistry


@dataclass(slots=True, frozen=True)
class StableReplacement:
    api_version: str
    since: KubernetesVersion


def _replacement(api_version: str, major: int, minor: int) -> StableReplacement:
    return StableReplacement(api_version=api_version, since=KubernetesVersion(major, minor))


# (deprecated apiVersion, kind) -> stable replacement
DEPRECATED_VERSIONS: Dict[Tuple[str, str], StableReplacement] = {
    ("extensions/v1beta1", "Deployment"): _replacement("apps/v1", 1, 9),
    ("apps/v1beta1", "Deployment"): _replacement("apps/v1", 1, 9),
    ("apps/v1beta2", "Deployment"): _replacement("apps/v1", 1, 9),
    ("apps/v1beta1", "StatefulSet"): _replacement("apps/v1", 1, 9),
    ("apps/v1beta2", "StatefulSet"): _replacement("apps/v1", 1, 9),
    ("extensions/v1beta1", "DaemonSet"): _replacement("apps/v1", 1, 9),
    ("apps/v1beta2", "DaemonSet"): _replacement("apps/v1", 1, 9),
    ("extensions/v1beta1", "NetworkPolicy"): _replacement("networking.k8s.io/v1", 1, 8),
    ("extensions/v1beta1", "Ingress"): _replacement("networking.k8s.io/v1", 1, 19),
    ("networking.k8s.io/v1beta1", "Ingress"): _replacement("networking.k8s.io/v1", 1, 19),
    ("batch/v1beta1", "CronJob"): _replacement("batch/v1", 1, 21),
    ("policy/v1beta1", "PodDisruptionBudget"): _replacement("policy/v1", 1, 21),
    ("autoscaling/v2beta1", "HorizontalPodAutoscaler"): _replacement("autoscaling/v2", 1, 23),
    ("autoscaling/v2beta2", "HorizontalPodAutoscaler"): _replacement("autoscaling/v2", 1, 23),
}


class StableVersionRules:
    def __init__(self, kubernetes_version: KubernetesVersion) -> None:
        self.kubernetes_version = kubernetes_version

    def stable_version(self, obj: KubeObject) -> TestScore:
        score = TestScore()
        replacement = DEPRECATED_VERSIONS.get((obj.api_version, obj.kind))
        if replacement is None or self.kubernetes_version < replacement.since:
            return score

        score.grade = Grade.WARNING
        score.add_comment(
            "",
            f"The apiVersion and kind {obj.api_version}/{obj.kind} is deprecated",
            f"It's recommended to use {replacement.api_version} instead which has been available "
            f"since Kubernetes {replacement.since}",
        )
        return score


def register(registry: RuleRegistry, kubernetes_version: KubernetesVersion) -> StableVersionRules:
    rules = StableVersionRules(kubernetes_version)
    registry.register(
        "Stable version",
        TargetKind.ALL,
        rules.stable_version,
        help_text="Checks if the object is using a deprecated apiVersion",
    )
    return rules
