"""Readiness and liveness probe rules."""

from __future__ import annotations

from ...models import Grade, PodSpecer, TargetKind, TestScore
from ...relationships import ServiceIndex
from ..registry import RuleRegistry
from .container import container_name

PROBES_HELP_URL = "https://github.com/zegl/kube-score/blob/master/README_PROBES.md"


class ProbeRules:
    def __init__(self, services: ServiceIndex) -> None:
        self.services = services

    def probes(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        template = owner.pod_template
        if not self.services.selects(template.labels, owner.namespace):
            return score.skip("The pod is not targeted by a service, skipping probe checks.")

        has_readiness = False
        identical_in = ""
        # Init containers do not support probes.
        for container in template.containers:
            readiness = container.get("readinessProbe")
            liveness = container.get("livenessProbe")
            if readiness is not None:
                has_readiness = True
            if readiness is not None and liveness is not None and readiness == liveness:
                identical_in = identical_in or container_name(container)

        if not has_readiness:
            score.grade = Grade.CRITICAL
            score.add_comment(
                "",
                "Container is missing a readinessProbe",
                "A readinessProbe should be used to indicate when the service is ready to receive "
                "traffic. Without it, the Pod is risking to receive traffic before it has booted. "
                "It's also used during rollouts, and can prevent downtime if a new version of the "
                f"application is failing. More information: {PROBES_HELP_URL}",
            )
            return score

        if identical_in:
            score.grade = Grade.CRITICAL
            score.add_comment(
                identical_in,
                "Container has the same readiness and liveness probe",
                "Using the same probe for liveness and readiness is very likely dangerous. Generally "
                "it's better to avoid the livenessProbe than re-using the readinessProbe. "
                f"More information: {PROBES_HELP_URL}",
            )
        return score


def register(registry: RuleRegistry, services: ServiceIndex) -> ProbeRules:
    rules = ProbeRules(services)
    registry.register(
        "Pod Probes",
        TargetKind.POD,
        rules.probes,
        help_text="Makes sure that all Pods have safe probe configurations",
    )
    return rules
