"""Container resource, image and environment rules."""

from __future__ import annotations

from typing import Any, Dict, List

from ...models import Grade, PodSpecer, TargetKind, TestScore
from ...models.resource import as_list, as_mapping
from ...normalization.quantity import QuantityError, parse_quantity, quantities_equal
from ..registry import RuleRegistry

MAX_PORT_NAME_LENGTH = 15


def container_name(container: Dict[str, Any]) -> str:
    return str(container.get("name") or "")


def tag_of(image: str) -> str:
    """The part after the last ``:``, or ``""`` when the image has no tag."""

    parts = image.split(":")
    if len(parts) > 1:
        return parts[-1]
    return ""


def resource_value(container: Dict[str, Any], section: str, name: str) -> Any:
    resources = as_mapping(container.get("resources"))
    return as_mapping(resources.get(section)).get(name)


def is_unset(value: Any) -> bool:
    """Missing, empty and zero quantities all count as unset."""

    if value is None or value == "":
        return True
    try:
        return parse_quantity(value) == 0
    except QuantityError:
        return False


def same_quantity(first: Any, second: Any) -> bool:
    if is_unset(first) or is_unset(second):
        return is_unset(first) and is_unset(second)
    return quantities_equal(first, second)


class ContainerRules:
    """Rules graded over every container of a pod template."""

    def __init__(
        self,
        *,
        skip_init_containers: bool = False,
        ignore_cpu_limit: bool = False,
        ignore_memory_limit: bool = False,
    ) -> None:
        self.skip_init_containers = skip_init_containers
        self.ignore_cpu_limit = ignore_cpu_limit
        self.ignore_memory_limit = ignore_memory_limit

    def containers(self, owner: PodSpecer) -> List[Dict[str, Any]]:
        return owner.pod_template.all_containers(self.skip_init_containers)

    # ------------------------------------------------------------------
    def resources(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        containers = self.containers(owner)
        missing_limit = missing_request = False

        for container in containers:
            name = container_name(container)
            if is_unset(resource_value(container, "limits", "cpu")) and not self.ignore_cpu_limit:
                score.add_comment(
                    name,
                    "CPU limit is not set",
                    "Resource limits are recommended to avoid resource DDOS. Set resources.limits.cpu",
                )
                missing_limit = True
            if is_unset(resource_value(container, "limits", "memory")) and not self.ignore_memory_limit:
                score.add_comment(
                    name,
                    "Memory limit is not set",
                    "Resource limits are recommended to avoid resource DDOS. Set resources.limits.memory",
                )
                missing_limit = True
            if is_unset(resource_value(container, "requests", "cpu")):
                score.add_comment(
                    name,
                    "CPU request is not set",
                    "Resource requests are recommended to make sure that the application can start "
                    "and run without crashing. Set resources.requests.cpu",
                )
                missing_request = True
            if is_unset(resource_value(container, "requests", "memory")):
                score.add_comment(
                    name,
                    "Memory request is not set",
                    "Resource requests are recommended to make sure that the application can start "
                    "and run without crashing. Set resources.requests.memory",
                )
                missing_request = True

        if not containers:
            score.grade = Grade.CRITICAL
            score.add_comment("", "No containers defined")
        elif missing_limit:
            score.grade = Grade.CRITICAL
        elif missing_request:
            score.grade = Grade.WARNING
        return score

    def _requests_equal_limits(self, owner: PodSpecer, resource: str, label: str) -> TestScore:
        score = TestScore()
        for container in self.containers(owner):
            requested = resource_value(container, "requests", resource)
            limited = resource_value(container, "limits", resource)
            if not same_quantity(requested, limited):
                score.add_comment(
                    container_name(container),
                    f"{label} requests does not match limits",
                    "Having equal requests and limits is recommended to avoid resource DDOS of the "
                    f"node during spikes. Set resources.requests.{resource} == resources.limits.{resource}",
                )
                score.grade = Grade.CRITICAL
        return score

    def cpu_requests_equal_limits(self, owner: PodSpecer) -> TestScore:
        return self._requests_equal_limits(owner, "cpu", "CPU")

    def memory_requests_equal_limits(self, owner: PodSpecer) -> TestScore:
        return self._requests_equal_limits(owner, "memory", "Memory")

    def requests_equal_limits(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        for partial in (self.cpu_requests_equal_limits(owner), self.memory_requests_equal_limits(owner)):
            if partial.grade is Grade.CRITICAL:
                score.grade = Grade.CRITICAL
                score.comments.extend(partial.comments)
        return score

    def image_tag(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        for container in self.containers(owner):
            if tag_of(str(container.get("image") or "")) in ("", "latest"):
                score.add_comment(
                    container_name(container),
                    "Image with latest tag",
                    "Using a fixed tag is recommended to avoid accidental upgrades",
                )
                score.grade = Grade.CRITICAL
        return score

    def image_pull_policy(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        for container in self.containers(owner):
            policy = str(container.get("imagePullPolicy") or "")
            tag = tag_of(str(container.get("image") or ""))

            # Kubernetes defaults to Always for untagged and latest images.
            if not policy and tag in ("", "latest"):
                continue
            if policy != "Always":
                score.add_comment(
                    container_name(container),
                    "ImagePullPolicy is not set to Always",
                    "It's recommended to always set the ImagePullPolicy to Always, to make sure that "
                    "the imagePullSecrets are always correct, and to always get the image you want.",
                )
                score.grade = Grade.CRITICAL
        return score

    def ephemeral_storage_request_and_limit(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        containers = self.containers(owner)
        missing_limit = missing_request = False

        for container in containers:
            name = container_name(container)
            if is_unset(resource_value(container, "limits", "ephemeral-storage")):
                score.add_comment(
                    name,
                    "Ephemeral Storage limit is not set",
                    "Resource limits are recommended to avoid resource DDOS. "
                    "Set resources.limits.ephemeral-storage",
                )
                missing_limit = True
            if is_unset(resource_value(container, "requests", "ephemeral-storage")):
                score.add_comment(
                    name,
                    "Ephemeral Storage request is not set",
                    "Resource requests are recommended to make sure the application can start and "
                    "run without crashing. Set resource.requests.ephemeral-storage",
                )
                missing_request = True

        if not containers:
            score.grade = Grade.CRITICAL
            score.add_comment("", "No containers defined")
        elif missing_limit:
            score.grade = Grade.CRITICAL
        elif missing_request:
            score.grade = Grade.WARNING
        return score

    def ephemeral_storage_request_equals_limit(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        for container in self.containers(owner):
            requested = resource_value(container, "requests", "ephemeral-storage")
            limited = resource_value(container, "limits", "ephemeral-storage")
            if is_unset(requested) or is_unset(limited):
                continue
            if not same_quantity(requested, limited):
                score.add_comment(
                    container_name(container),
                    "Ephemeral Storage request does not match limit",
                    "Having equal requests and limits is recommended to avoid node resource DDOS "
                    "during spikes",
                )
                score.grade = Grade.CRITICAL
        return score

    def ports(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        for container in self.containers(owner):
            name = container_name(container)
            seen: set[str] = set()
            for item in as_list(container.get("ports")):
                port = as_mapping(item)
                port_name = str(port.get("name") or "")
                if port_name:
                    if port_name in seen:
                        score.add_comment(
                            name,
                            "Container Port Check",
                            "Container ports.containerPort named ports must be unique",
                        )
                        score.grade = Grade.CRITICAL
                    seen.add(port_name)
                if len(port_name) > MAX_PORT_NAME_LENGTH:
                    score.add_comment(
                        name,
                        "Container Port Check",
                        "Container port.Name length exceeds maximum permitted characters",
                    )
                    score.grade = Grade.CRITICAL
                if not port.get("containerPort"):
                    score.add_comment(
                        name,
                        "Container Port Check",
                        "Container ports.containerPort cannot be empty",
                    )
                    score.grade = Grade.CRITICAL
        return score

    def environment_variable_key_duplication(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        for container in self.containers(owner):
            seen: set[str] = set()
            for item in as_list(container.get("env")):
                key = str(as_mapping(item).get("name") or "")
                if key in seen:
                    score.add_comment(
                        container_name(container),
                        "Environment Variable Key Duplication",
                        f"Container environment variable key '{key}' is duplicated",
                    )
                    score.grade = Grade.CRITICAL
                    continue
                seen.add(key)
        return score


def register(
    registry: RuleRegistry,
    *,
    skip_init_containers: bool = False,
    ignore_cpu_limit: bool = False,
    ignore_memory_limit: bool = False,
) -> ContainerRules:
    rules = ContainerRules(
        skip_init_containers=skip_init_containers,
        ignore_cpu_limit=ignore_cpu_limit,
        ignore_memory_limit=ignore_memory_limit,
    )
    registry.register(
        "Container Resources",
        TargetKind.POD,
        rules.resources,
        help_text=(
            "Makes sure that all pods have resource limits and requests set. The "
            "--ignore-container-cpu-limit flag can be used to disable the requirement of having a CPU limit"
        ),
    )
    registry.register(
        "Container Resource Requests Equal Limits",
        TargetKind.POD,
        rules.requests_equal_limits,
        help_text="Makes sure that all pods have the same requests as limits on resources set.",
        optional=True,
    )
    registry.register(
        "Container CPU Requests Equal Limits",
        TargetKind.POD,
        rules.cpu_requests_equal_limits,
        help_text="Makes sure that all pods have the same CPU requests as limits set.",
        optional=True,
    )
    registry.register(
        "Container Memory Requests Equal Limits",
        TargetKind.POD,
        rules.memory_requests_equal_limits,
        help_text="Makes sure that all pods have the same memory requests as limits set.",
        optional=True,
    )
    registry.register(
        "Container Image Tag",
        TargetKind.POD,
        rules.image_tag,
        help_text="Makes sure that a explicit non-latest tag is used",
    )
    registry.register(
        "Container Image Pull Policy",
        TargetKind.POD,
        rules.image_pull_policy,
        help_text=(
            "Makes sure that the pullPolicy is set to Always. This makes sure that "
            "imagePullSecrets are always validated."
        ),
    )
    registry.register(
        "Container Ephemeral Storage Request and Limit",
        TargetKind.POD,
        rules.ephemeral_storage_request_and_limit,
        help_text="Makes sure all pods have ephemeral-storage requests and limits set",
    )
    registry.register(
        "Container Ephemeral Storage Request Equals Limit",
        TargetKind.POD,
        rules.ephemeral_storage_request_equals_limit,
        help_text="Make sure all pods have matching ephemeral-storage requests and limits",
        optional=True,
    )
    registry.register(
        "Container Ports Check",
        TargetKind.POD,
        rules.ports,
        help_text="Makes sure that named container ports are unique and valid",
        optional=True,
    )
    registry.register(
        "Environment Variable Key Duplication",
        TargetKind.POD,
        rules.environment_variable_key_duplication,
        help_text="Makes sure that duplicated environment variable keys are not duplicated",
    )
    return rules
