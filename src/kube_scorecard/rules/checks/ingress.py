"""Ingress rules."""

from __future__ import annotations

from ...models import Grade, Ingress, IngressPath, TargetKind, TestScore
from ...relationships import ServiceIndex
from ..registry import RuleRegistry


class IngressRules:
    def __init__(self, services: ServiceIndex) -> None:
        self.services = services

    def path_has_service(self, ingress: Ingress, path: IngressPath) -> bool:
        if path.service_name is None:
            return False
        for entry in self.services.named(path.service_name, ingress.namespace):
            for port in entry.service.ports:
                if path.port_number > 0:
                    if port.port == path.port_number:
                        return True
                elif path.port_name and port.name == path.port_name:
                    return True
        return False

    def targets_service(self, ingress: Ingress) -> TestScore:
        score = TestScore()
        for path in ingress.paths:
            if self.path_has_service(ingress, path):
                continue

            score.grade = Grade.CRITICAL
            if path.service_name is None:
                details = ""
            elif path.port_number > 0:
                details = (
                    f"No service with name {path.service_name} and port number "
                    f"{path.port_number} was found"
                )
            else:
                details = (
                    f"No service with name {path.service_name} and port named "
                    f"{path.port_name} was found"
                )
            score.add_comment(path.path, "No service match was found", details)
        return score


def register(registry: RuleRegistry, services: ServiceIndex) -> IngressRules:
    rules = IngressRules(services)
    registry.register(
        "Ingress targets Service",
        TargetKind.INGRESS,
        rules.targets_service,
        help_text="Makes sure that the Ingress targets a Service",
    )
    return rules
