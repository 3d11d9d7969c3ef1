"""NetworkPolicy coverage rules."""

from __future__ import annotations

from ...models import Grade, NetworkPolicy, PodSpecer, TargetKind, TestScore
from ...relationships import NetworkPolicyIndex, PodLabelIndex, SelectorError, parse_label_selector
from ..registry import RuleRegistry


class NetworkPolicyRules:
    def __init__(self, policies: NetworkPolicyIndex, pods: PodLabelIndex) -> None:
        self.policies = policies
        self.pods = pods

    def pod_has_network_policy(self, owner: PodSpecer) -> TestScore:
        score = TestScore()
        ingress, egress = self.policies.coverage(owner.pod_template.labels, owner.namespace)

        if ingress and egress:
            return score
        if egress:
            score.grade = Grade.WARNING
            score.add_comment(
                "",
                "The pod does not have a matching ingress NetworkPolicy",
                "Add a ingress policy to the pods NetworkPolicy",
            )
        elif ingress:
            score.grade = Grade.WARNING
            score.add_comment(
                "",
                "The pod does not have a matching egress NetworkPolicy",
                "Add a egress policy to the pods NetworkPolicy",
            )
        else:
            score.grade = Grade.CRITICAL
            score.add_comment(
                "",
                "The pod does not have a matching NetworkPolicy",
                "Create a NetworkPolicy that targets this pod to control who/what can communicate "
                "with this pod. Note, this feature needs to be supported by the CNI implementation "
                "used in the Kubernetes cluster to have an effect.",
            )
        return score

    def targets_pod(self, policy: NetworkPolicy) -> TestScore:
        score = TestScore()
        try:
            selector = parse_label_selector(policy.pod_selector)
        except SelectorError as exc:
            score.grade = Grade.CRITICAL
            score.add_comment("spec.podSelector", "The NetworkPolicy has an invalid podSelector", str(exc))
            return score

        if not self.pods.any_selected(selector, policy.namespace):
            score.grade = Grade.CRITICAL
            score.add_comment("", "The NetworkPolicies selector doesn't match any pods")
        return score


def register(registry: RuleRegistry, policies: NetworkPolicyIndex, pods: PodLabelIndex) -> NetworkPolicyRules:
    rules = NetworkPolicyRules(policies, pods)
    registry.register(
        "Pod NetworkPolicy",
        TargetKind.POD,
        rules.pod_has_network_policy,
        help_text="Makes sure that all Pods are targeted by a NetworkPolicy",
    )
    registry.register(
        "NetworkPolicy targets Pod",
        TargetKind.NETWORK_POLICY,
        rules.targets_pod,
        help_text="Makes sure that all NetworkPolicies targets at least one Pod",
    )
    return rules
