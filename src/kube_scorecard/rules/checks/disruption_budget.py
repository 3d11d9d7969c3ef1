"""PodDisruptionBudget rules."""

from __future__ import annotations

from ...models import Deployment, Grade, PodDisruptionBudget, PodSpecer, StatefulSet, TargetKind, TestScore
from ...relationships import DisruptionBudgetIndex
from ..registry import RuleRegistry

MISSING_BUDGET_DETAILS = (
    "It's recommended to define a PodDisruptionBudget to avoid unexpected downtime during "
    "Kubernetes maintenance operations, such as when draining a node. "
)


class DisruptionBudgetRules:
    def __init__(self, budgets: DisruptionBudgetIndex) -> None:
        self.budgets = budgets

    def _has_budget(self, owner: PodSpecer, noun: str) -> TestScore:
        score = TestScore()
        if owner.replicas is not None and owner.replicas < 2:
            return score.skip(f"Skipped because the {noun} has less than 2 replicas")

        labels = owner.pod_template.labels
        if self.budgets.covers(labels, owner.namespace):
            return score

        details = MISSING_BUDGET_DETAILS
        mismatched = self.budgets.mismatched_namespaces(labels, owner.namespace)
        if mismatched:
            expected = self.budgets.resolve(owner.namespace)
            details += (
                "A matching budget was found, but in a different namespace. "
                f"expected='{expected}' got='[{' '.join(mismatched)}]'"
            )
        score.grade = Grade.CRITICAL
        score.add_comment("", "No matching PodDisruptionBudget was found", details)
        return score

    def statefulset_has_budget(self, statefulset: StatefulSet) -> TestScore:
        return self._has_budget(statefulset, "statefulset")

    def deployment_has_budget(self, deployment: Deployment) -> TestScore:
        return self._has_budget(deployment, "deployment")

    def has_policy(self, budget: PodDisruptionBudget) -> TestScore:
        score = TestScore()
        if budget.min_available is None and budget.max_unavailable is None:
            score.grade = Grade.CRITICAL
            score.add_comment(
                "",
                "PodDisruptionBudget missing policy",
                "PodDisruptionBudget should specify minAvailable or maxUnavailable.",
            )
        return score


def register(registry: RuleRegistry, budgets: DisruptionBudgetIndex) -> DisruptionBudgetRules:
    rules = DisruptionBudgetRules(budgets)
    registry.register(
        "StatefulSet has PodDisruptionBudget",
        TargetKind.STATEFULSET,
        rules.statefulset_has_budget,
        help_text="Makes sure that all StatefulSets are targeted by a PDB",
    )
    registry.register(
        "Deployment has PodDisruptionBudget",
        TargetKind.DEPLOYMENT,
        rules.deployment_has_budget,
        help_text="Makes sure that all Deployments are targeted by a PDB",
    )
    registry.register(
        "PodDisruptionBudget has policy",
        TargetKind.POD_DISRUPTION_BUDGET,
        rules.has_policy,
        help_text="Makes sure that PodDisruptionBudgets specify minAvailable or maxUnavailable",
    )
    return rules
