"""Deployment rollout and replica rules."""

from __future__ import annotations

from ...models import Deployment, Grade, TargetKind, TestScore
from ...relationships import HpaTargetIndex, ServiceIndex
from ..registry import RuleRegistry

STRATEGY_DOCS_URL = "https://kubernetes.io/docs/concepts/workloads/controllers/deployment/#strategy"


class DeploymentRules:
    def __init__(self, services: ServiceIndex, hpa_targets: HpaTargetIndex) -> None:
        self.services = services
        self.hpa_targets = hpa_targets

    def targeted_by_service(self, deployment: Deployment) -> bool:
        return self.services.selects(deployment.pod_template.labels, deployment.namespace)

    def strategy(self, deployment: Deployment) -> TestScore:
        score = TestScore()
        if not self.targeted_by_service(deployment):
            return score.skip("Skipped as the Deployment is not targeted by a service")

        if deployment.strategy_type not in ("", "RollingUpdate"):
            score.grade = Grade.WARNING
            score.add_comment(
                "",
                "Deployment update strategy",
                "The deployment is used by a service but not using the RollingUpdate strategy which "
                "can cause interruptions. Set .spec.strategy.type to RollingUpdate. "
                f"{STRATEGY_DOCS_URL}",
            )
        return score

    def replicas(self, deployment: Deployment) -> TestScore:
        score = TestScore()
        if not self.targeted_by_service(deployment):
            return score.skip("Skipped as the Deployment is not targeted by service")

        autoscalers = self.hpa_targets.targeting(
            deployment.kind,
            deployment.name,
            deployment.namespace,
            api_version=deployment.api_version,
        )
        if autoscalers:
            return score.skip("Skipped as the Deployment is controlled by a HorizontalPodAutoscaler")

        replicas = deployment.replicas
        if (1 if replicas is None else replicas) < 2:
            score.grade = Grade.WARNING
            score.add_comment(
                "",
                "Deployment few replicas",
                "Deployments targeted by Services are recommended to have at least 2 replicas to "
                "prevent unwanted downtime.",
            )
        return score


def register(registry: RuleRegistry, services: ServiceIndex, hpa_targets: HpaTargetIndex) -> DeploymentRules:
    rules = DeploymentRules(services, hpa_targets)
    registry.register(
        "Deployment Strategy",
        TargetKind.DEPLOYMENT,
        rules.strategy,
        help_text="Makes sure that all Deployments targeted by service use RollingUpdate strategy",
    )
    registry.register(
        "Deployment Replicas",
        TargetKind.DEPLOYMENT,
        rules.replicas,
        help_text="Makes sure that Deployment has multiple replicas",
    )
    return rules
