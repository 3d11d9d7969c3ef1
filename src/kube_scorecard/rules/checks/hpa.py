"""HorizontalPodAutoscaler rules."""

from __future__ import annotations

from ...models import Grade, HorizontalPodAutoscaler, TargetKind, TestScore
from ...relationships import MetaIndex
from ..registry import RuleRegistry


class HpaRules:
    def __init__(self, metas: MetaIndex) -> None:
        self.metas = metas

    def has_target(self, autoscaler: HorizontalPodAutoscaler) -> TestScore:
        score = TestScore()
        if self.metas.find(autoscaler.target, autoscaler.namespace) is None:
            score.grade = Grade.CRITICAL
            score.add_comment("", "The HPA target does not match anything")
        return score

    def replicas(self, autoscaler: HorizontalPodAutoscaler) -> TestScore:
        score = TestScore()
        min_replicas = autoscaler.min_replicas
        if (1 if min_replicas is None else min_replicas) < 2:
            score.grade = Grade.WARNING
            score.add_comment(
                "",
                "HPA few replicas",
                "HorizontalPodAutoscalers are recommended to have at least 2 replicas to prevent "
                "unwanted downtime.",
            )
        return score


def register(registry: RuleRegistry, metas: MetaIndex) -> HpaRules:
    rules = HpaRules(metas)
    registry.register(
        "HorizontalPodAutoscaler has target",
        TargetKind.HORIZONTAL_POD_AUTOSCALER,
        rules.has_target,
        help_text="Makes sure that the HPA targets a valid object",
    )
    registry.register(
        "HorizontalPodAutoscaler Replicas",
        TargetKind.HORIZONTAL_POD_AUTOSCALER,
        rules.replicas,
        help_text="Makes sure that the HPA has multiple replicas",
    )
    return rules
