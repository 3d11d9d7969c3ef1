"""Rule metadata models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TargetKind(str, Enum):
    """Resource kinds a rule can be registered against."""

    ALL = "all"
    POD = "Pod"
    SERVICE = "Service"
    STATEFULSET = "StatefulSet"
    DEPLOYMENT = "Deployment"
    NETWORK_POLICY = "NetworkPolicy"
    INGRESS = "Ingress"
    CRONJOB = "CronJob"
    HORIZONTAL_POD_AUTOSCALER = "HorizontalPodAutoscaler"
    POD_DISRUPTION_BUDGET = "PodDisruptionBudget"


def rule_id_from_name(name: str) -> str:
    """Derive the machine friendly id of a rule from its display name."""

    return name.lower().replace(" ", "-")


@dataclass(slots=True, frozen=True)
class Rule:
    """Immutable metadata describing a registered rule."""

    id: str
    name: str
    target_kind: TargetKind
    help_text: str = ""
    optional: bool = False

    @classmethod
    def create(
        cls,
        name: str,
        target_kind: TargetKind,
        help_text: str = "",
        optional: bool = False,
    ) -> "Rule":
        return cls(
            id=rule_id_from_name(name),
            name=name,
            target_kind=target_kind,
            help_text=help_text,
            optional=optional,
        )
