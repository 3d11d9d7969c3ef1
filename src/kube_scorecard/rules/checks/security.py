"""Security context rules."""

from __future__ import annotations

from typing import Any, Dict, List

from ...models import Grade, PodSpecer, TargetKind, TestScore
from ...models.resource import as_mapping, optional_int
from ..registry import RuleRegistry
from .container import container_name

MIN_RECOMMENDED_ID = 10000
SECCOMP_ANNOTATION = "seccomp.security.alpha.kubernetes.io/defaultProfileName"


def _no_context_comment(score: TestScore, container: Dict[str, Any]) -> None:
    score.add_comment(
        container_name(container),
        "Container has no configured security context",
        "Set securityContext to run the container in a more secure context.",
    )


class SecurityRules:
    def __init__(self, *, skip_init_containers: bool = False) -> None:
        self.skip_init_containers = skip_init_containers

    def containers(self, owner: PodSpecer) -> List[Dict[str, Any]]:
        return owner.pod_template.all_containers(self.skip_init_containers)

    def user_group_id(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        pod_context = owner.pod_template.security_context

        for container in self.containers(owner):
            raw_context = container.get("securityContext")
            if raw_context is None and pod_context is None:
                _no_context_comment(score, container)
                score.grade = Grade.CRITICAL
                continue

            context = as_mapping(raw_context)
            # Unset container values fall back to the pod security context.
            user = optional_int(context.get("runAsUser"))
            group = optional_int(context.get("runAsGroup"))
            if pod_context is not None:
                if user is None:
                    user = optional_int(pod_context.get("runAsUser"))
                if group is None:
                    group = optional_int(pod_context.get("runAsGroup"))

            if user is None or user < MIN_RECOMMENDED_ID:
                score.add_comment(
                    container_name(container),
                    "The container is running with a low user ID",
                    "A userid above 10 000 is recommended to avoid conflicts with the host. "
                    "Set securityContext.runAsUser to a value > 10000",
                )
                score.grade = Grade.CRITICAL
            if group is None or group < MIN_RECOMMENDED_ID:
                score.add_comment(
                    container_name(container),
                    "The container running with a low group ID",
                    "A groupid above 10 000 is recommended to avoid conflicts with the host. "
                    "Set securityContext.runAsGroup to a value > 10000",
                )
                score.grade = Grade.CRITICAL
        return score

    def privileged(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        for container in self.containers(owner):
            if as_mapping(container.get("securityContext")).get("privileged") is True:
                score.add_comment(
                    container_name(container),
                    "The container is privileged",
                    "Set securityContext.privileged to false. Privileged containers can access all "
                    "devices on the host, and grants almost the same access as non-containerized "
                    "processes on the host.",
                )
                score.grade = Grade.CRITICAL
        return score

    def read_only_root_filesystem(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        for container in self.containers(owner):
            raw_context = container.get("securityContext")
            if raw_context is None:
                _no_context_comment(score, container)
                score.grade = Grade.CRITICAL
                continue
            if as_mapping(raw_context).get("readOnlyRootFilesystem") is not True:
                score.add_comment(
                    container_name(container),
                    "The pod has a container with a writable root filesystem",
                    "Set securityContext.readOnlyRootFilesystem to true",
                )
                score.grade = Grade.CRITICAL
        return score

    def seccomp_profile(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        template = owner.pod_template
        if SECCOMP_ANNOTATION not in template.annotations:
            score.grade = Grade.WARNING
            score.add_comment(
                template.name,
                "The pod has not configured Seccomp for its containers",
                "Running containers with Seccomp is recommended to reduce the kernel attack surface",
            )
        return score


def register(registry: RuleRegistry, *, skip_init_containers: bool = False) -> SecurityRules:
    rules = SecurityRules(skip_init_containers=skip_init_containers)
    registry.register(
        "Container Security Context User Group ID",
        TargetKind.POD,
        rules.user_group_id,
        help_text="Makes sure that all pods have a security context with valid UID and GID set",
    )
    registry.register(
        "Container Security Context Privileged",
        TargetKind.POD,
        rules.privileged,
        help_text="Makes sure that all pods have a unprivileged security context set",
    )
    registry.register(
        "Container Security Context ReadOnlyRootFilesystem",
        TargetKind.POD,
        rules.read_only_root_filesystem,
        help_text="Makes sure that all pods have a security context with read only filesystem set",
    )
    registry.register(
        "Container Seccomp Profile",
        TargetKind.POD,
        rules.seccomp_profile,
        help_text="Makes sure that all pods have at a seccomp policy configured.",
        optional=True,
    )
    return rules
