"""Pod topology spread constraint rules."""

from __future__ import annotations

from ...models import Grade, PodSpecer, TargetKind, TestScore
from ...models.resource import as_list, as_mapping, optional_int
from ..registry import RuleRegistry

WHEN_UNSATISFIABLE_VALUES = ("DoNotSchedule", "ScheduleAnyway")
TITLE = "Pod Topology Spread Constraints"


def spread_constraints(owner: PodSpecer) -> TestScore:
    score = TestScore()
    for item in as_list(owner.pod_template.spec.get("topologySpreadConstraints")):
        constraint = as_mapping(item)
        topology_key = str(constraint.get("topologyKey") or "")

        if constraint.get("labelSelector") is None:
            score.grade = Grade.CRITICAL
            score.add_comment(
                topology_key,
                TITLE,
                "No labelSelector detected. A label selector is needed determine the number of pods "
                "in a topology domain",
            )
            return score

        max_skew = optional_int(constraint.get("maxSkew"))
        if max_skew is None or max_skew <= 0:
            score.grade = Grade.CRITICAL
            score.add_comment(
                topology_key,
                TITLE,
                "MaxSkew is set to zero. By default it's set to 1. Set it to a positive integer",
            )

        if "minDomains" in constraint:
            min_domains = optional_int(constraint.get("minDomains"))
            if min_domains is None or min_domains <= 0:
                score.grade = Grade.CRITICAL
                score.add_comment(
                    topology_key, TITLE, "MinDomain set to zero. Set it to a positive integer"
                )

        if not topology_key:
            score.grade = Grade.CRITICAL
            score.add_comment(
                topology_key,
                TITLE,
                "TopologyKey is not set. This key needs to be set so that nodes are grouped by "
                "their topology domain",
            )

        if constraint.get("whenUnsatisfiable") not in WHEN_UNSATISFIABLE_VALUES:
            score.grade = Grade.CRITICAL
            score.add_comment(
                topology_key,
                TITLE,
                "Invalid WhenUnsatisfiable value provided. Possible values: DoNotSchedule or "
                "ScheduleAnyway",
            )
    return score


def register(registry: RuleRegistry) -> None:
    registry.register(
        "Pod Topology Spread Constraints",
        TargetKind.POD,
        spread_constraints,
        help_text="Pod Topology Spread Constraints",
    )
