"""Built-in rule families."""

from __future__ import annotations

from ...config import RunConfiguration
from ...relationships import RelationshipIndex
from ..registry import RuleRegistry
from . import (
    apps,
    container,
    cronjob,
    deployment,
    disruption_budget,
    hpa,
    ingress,
    meta,
    network_policy,
    probes,
    security,
    service,
    stable,
    topology,
)


def register_all_rules(
    registry: RuleRegistry,
    index: RelationshipIndex,
    config: RunConfiguration,
) -> RuleRegistry:
    """Register every built-in rule, handing each family only the sub-indices it reads."""

    deployment.register(registry, index.services, index.hpa_targets)
    ingress.register(registry, index.services)
    cronjob.register(registry)
    container.register(
        registry,
        skip_init_containers=config.skip_init_containers,
        ignore_cpu_limit=config.ignore_container_cpu_limit,
        ignore_memory_limit=config.ignore_container_memory_limit,
    )
    disruption_budget.register(registry, index.disruption_budgets)
    network_policy.register(registry, index.network_policies, index.pods)
    probes.register(registry, index.services)
    security.register(registry, skip_init_containers=config.skip_init_containers)
    service.register(registry, index.pods)
    stable.register(registry, config.kubernetes_version)
    apps.register(registry, index.services, index.hpa_targets)
    meta.register(registry)
    hpa.register(registry, index.metas)
    topology.register(registry)
    return registry


__all__ = ["register_all_rules"]
