from __future__ import annotations

import logging

from kube_scorecard.models import ObjectReference
from kube_scorecard.relationships import RelationshipIndex, parse_label_selector, policy_directions

MANIFESTS = """
apiVersion: v1
kind: Pod
metadata:
  name: api
  labels:
    app: api
spec:
  containers:
    - name: api
      image: api:1.0
---
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
  namespace: shop
spec:
  template:
    metadata:
      labels:
        app: web
    spec:
      containers:
        - name: web
          image: web:1.0
---
apiVersion: v1
kind: Service
metadata:
  name: web
  namespace: shop
spec:
  selector:
    app: web
  ports:
    - port: 80
---
apiVersion: v1
kind: Service
metadata:
  name: everything
spec:
  ports:
    - port: 80
---
apiVersion: policy/v1
kind: PodDisruptionBudget
metadata:
  name: web
  namespace: other
spec:
  minAvailable: 1
  selector:
    matchLabels:
      app: web
---
apiVersion: autoscaling/v2
kind: HorizontalPodAutoscaler
metadata:
  name: web
  namespace: shop
spec:
  scaleTargetRef:
    apiVersion: apps/v1
    kind: deployment
    name: web
"""


def test_pod_templates_are_indexed_in_owner_namespace(parse_text) -> None:
    index = RelationshipIndex.build(parse_text(MANIFESTS), "default")
    selector = parse_label_selector({"matchLabels": {"app": "web"}})

    assert index.pods.any_selected(selector, "shop")
    assert not index.pods.any_selected(selector, "default")
    assert index.pods.any_selected(parse_label_selector({"matchLabels": {"app": "api"}}), "")


def test_service_queries_respect_namespace(parse_text) -> None:
    index = RelationshipIndex.build(parse_text(MANIFESTS), "default")

    selecting = index.services.selecting({"app": "web"}, "shop")
    assert [service.name for service in selecting] == ["web"]
    assert not index.services.selects({"app": "web"}, "other")
    assert [entry.service.name for entry in index.services.named("web", "shop")] == ["web"]


def test_selectorless_service_selects_every_pod_in_namespace(parse_text) -> None:
    index = RelationshipIndex.build(parse_text(MANIFESTS), "default")

    assert index.services.selects({"app": "api"}, "")
    assert index.services.selects({}, "default")


def test_disruption_budget_in_other_namespace_is_reported(parse_text) -> None:
    index = RelationshipIndex.build(parse_text(MANIFESTS), "default")

    assert not index.disruption_budgets.covers({"app": "web"}, "shop")
    assert index.disruption_budgets.mismatched_namespaces({"app": "web"}, "shop") == ["other"]
    assert index.disruption_budgets.covers({"app": "web"}, "other")


def test_hpa_target_kind_is_case_insensitive(parse_text) -> None:
    index = RelationshipIndex.build(parse_text(MANIFESTS), "default")

    assert index.hpa_targets.targeting("Deployment", "web", "shop", api_version="apps/v1")
    assert not index.hpa_targets.targeting("Deployment", "web", "shop", api_version="apps/v1beta1")
    assert not index.hpa_targets.targeting("Deployment", "web", "default")


def test_meta_lookup_by_reference(parse_text) -> None:
    index = RelationshipIndex.build(parse_text(MANIFESTS), "default")
    reference = ObjectReference(api_version="apps/v1", kind="Deployment", name="web")

    found = index.metas.find(reference, "shop")
    assert found is not None and found.name == "web"
    assert index.metas.find(reference, "default") is None


def test_malformed_candidate_selector_matches_nothing(parse_text, caplog) -> None:
    manifests = parse_text(
        """
        apiVersion: networking.k8s.io/v1
        kind: NetworkPolicy
        metadata:
          name: broken
        spec:
          podSelector:
            matchExpressions:
              - key: app
                operator: Sometimes
        """
    )

    with caplog.at_level(logging.WARNING, logger="kube_scorecard.relationships.index"):
        index = RelationshipIndex.build(manifests, "default")

    assert index.network_policies.coverage({"app": "web"}, "default") == (False, False)
    assert "NetworkPolicy/broken" in caplog.text


def test_policy_type_inference(parse_text) -> None:
    manifests = parse_text(
        """
        apiVersion: networking.k8s.io/v1
        kind: NetworkPolicy
        metadata:
          name: implicit
        spec:
          podSelector: {}
        ---
        apiVersion: networking.k8s.io/v1
        kind: NetworkPolicy
        metadata:
          name: implicit-egress
        spec:
          podSelector: {}
          egress:
            - {}
        ---
        apiVersion: networking.k8s.io/v1
        kind: NetworkPolicy
        metadata:
          name: explicit
        spec:
          podSelector: {}
          policyTypes: [Egress]
        """
    )
    implicit, implicit_egress, explicit = manifests.network_policies

    assert policy_directions(implicit) == (True, False)
    assert policy_directions(implicit_egress) == (True, True)
    assert policy_directions(explicit) == (False, True)
