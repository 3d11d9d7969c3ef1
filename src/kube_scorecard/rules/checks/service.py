"""Service rules."""

from __future__ import annotations

from ...models import Grade, Service, TargetKind, TestScore
from ...relationships import PodLabelIndex, SelectorError, selector_from_labels
from ..registry import RuleRegistry


class ServiceRules:
    def __init__(self, pods: PodLabelIndex) -> None:
        self.pods = pods

    def targets_pod(self, service: Service) -> TestScore:
        score = TestScore()
        # ExternalName services have no selector.
        if service.service_type == "ExternalName":
            return score

        try:
            selector = selector_from_labels(service.selector)
        except SelectorError as exc:
            score.grade = Grade.CRITICAL
            score.add_comment("spec.selector", "The services selector is invalid", str(exc))
            return score

        if not self.pods.any_selected(selector, service.namespace):
            score.grade = Grade.CRITICAL
            score.add_comment("", "The services selector does not match any pods")
        return score

    def service_type(self, service: Service) -> TestScore:
        score = TestScore()
        if service.service_type == "NodePort":
            score.grade = Grade.WARNING
            score.add_comment(
                "",
                "The service is of type NodePort",
                "NodePort services should be avoided as they are insecure, and can not be used "
                "together with NetworkPolicies. LoadBalancers or use of an Ingress is recommended "
                "over NodePorts.",
            )
        return score


def register(registry: RuleRegistry, pods: PodLabelIndex) -> ServiceRules:
    rules = ServiceRules(pods)
    registry.register(
        "Service Targets Pod",
        TargetKind.SERVICE,
        rules.targets_pod,
        help_text="Makes sure that all Services targets a Pod",
    )
    registry.register(
        "Service Type",
        TargetKind.SERVICE,
        rules.service_type,
        help_text="Makes sure that the Service type is not NodePort",
    )
    return rules
