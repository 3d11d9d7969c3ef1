from __future__ import annotations

from kube_scorecard.config import KubernetesVersion, RunConfiguration
from kube_scorecard.models import Grade

SERVICE = """
apiVersion: v1
kind: Service
metadata:
  name: web
spec:
  selector:
    app: web
  ports:
    - port: 80
"""


def _deployment(spec_extra: str = "", template_extra: str = "") -> str:
    return f"""
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
spec:
{spec_extra}
  selector:
    matchLabels:
      app: web
  template:
    metadata:
      labels:
        app: web
    spec:
{template_extra}
      containers:
        - name: web
          image: web:1.0
"""


def _score(scorecard, key: str, rule_id: str):
    result = scorecard[key].result_for(rule_id)
    assert result is not None
    return result.score


DEPLOYMENT_KEY = "Deployment/apps/v1//web"


def test_recreate_strategy_warns_when_exposed(score_text) -> None:
    manifest = _deployment("  strategy:\n    type: Recreate") + "---" + SERVICE

    score = _score(score_text(manifest), DEPLOYMENT_KEY, "deployment-strategy")

    assert score.grade is Grade.WARNING


def test_replicas_skipped_when_autoscaled(score_text) -> None:
    hpa = """
apiVersion: autoscaling/v2
kind: HorizontalPodAutoscaler
metadata:
  name: web
spec:
  minReplicas: 3
  scaleTargetRef:
    apiVersion: apps/v1
    kind: Deployment
    name: web
"""
    manifest = _deployment("  replicas: 1") + "---" + SERVICE + "---" + hpa
    scorecard = score_text(manifest)

    replicas = _score(scorecard, DEPLOYMENT_KEY, "deployment-replicas")
    assert replicas.skipped
    assert "HorizontalPodAutoscaler" in replicas.comments[0].title

    static = _score(
        scorecard, DEPLOYMENT_KEY, "deployment-targeted-by-hpa-does-not-have-replicas-configured"
    )
    assert static.grade is Grade.CRITICAL

    hpa_key = "HorizontalPodAutoscaler/autoscaling/v2//web"
    assert _score(scorecard, hpa_key, "horizontalpodautoscaler-has-target").grade is Grade.ALL_OK
    assert _score(scorecard, hpa_key, "horizontalpodautoscaler-replicas").grade is Grade.ALL_OK


def test_hpa_without_target(score_text) -> None:
    manifest = """
apiVersion: autoscaling/v2
kind: HorizontalPodAutoscaler
metadata:
  name: orphan
spec:
  scaleTargetRef:
    apiVersion: apps/v1
    kind: Deployment
    name: missing
"""
    scorecard = score_text(manifest)
    key = "HorizontalPodAutoscaler/autoscaling/v2//orphan"

    assert _score(scorecard, key, "horizontalpodautoscaler-has-target").grade is Grade.CRITICAL
    assert _score(scorecard, key, "horizontalpodautoscaler-replicas").grade is Grade.WARNING


def test_anti_affinity(score_text) -> None:
    affinity = """
      affinity:
        podAntiAffinity:
          preferredDuringSchedulingIgnoredDuringExecution:
            - weight: 100
              podAffinityTerm:
                topologyKey: kubernetes.io/hostname
                labelSelector:
                  matchLabels:
                    app: web
"""
    with_affinity = score_text(_deployment("  replicas: 3", affinity))
    without_affinity = score_text(_deployment("  replicas: 3"))
    single = score_text(_deployment("  replicas: 1"))

    rule_id = "deployment-has-host-podantiaffinity"
    assert _score(with_affinity, DEPLOYMENT_KEY, rule_id).grade is Grade.ALL_OK
    assert _score(without_affinity, DEPLOYMENT_KEY, rule_id).grade is Grade.WARNING
    assert _score(single, DEPLOYMENT_KEY, rule_id).skipped


def test_selector_must_match_template_labels(score_text) -> None:
    manifest = _deployment().replace("matchLabels:\n      app: web", "matchLabels:\n      app: api")

    score = _score(
        score_text(manifest),
        DEPLOYMENT_KEY,
        "deployment-pod-selector-labels-match-template-metadata-labels",
    )

    assert score.grade is Grade.CRITICAL


def test_budget_in_other_namespace_is_named(score_text) -> None:
    budget = """
apiVersion: policy/v1
kind: PodDisruptionBudget
metadata:
  name: web
  namespace: elsewhere
spec:
  maxUnavailable: 1
  selector:
    matchLabels:
      app: web
"""
    manifest = _deployment("  replicas: 3") + "---" + budget
    score = _score(
        score_text(manifest, RunConfiguration(namespace="shop")),
        DEPLOYMENT_KEY,
        "deployment-has-poddisruptionbudget",
    )

    assert score.grade is Grade.CRITICAL
    assert "expected='shop' got='[elsewhere]'" in score.comments[0].details


def test_budget_in_default_namespace_covers(score_text) -> None:
    budget = """
apiVersion: policy/v1
kind: PodDisruptionBudget
metadata:
  name: web
  namespace: shop
spec:
  selector:
    matchLabels:
      app: web
"""
    manifest = _deployment("  replicas: 3") + "---" + budget
    scorecard = score_text(manifest, RunConfiguration(namespace="shop"))

    assert _score(scorecard, DEPLOYMENT_KEY, "deployment-has-poddisruptionbudget").grade is Grade.ALL_OK
    assert (
        _score(scorecard, "PodDisruptionBudget/policy/v1/shop/web", "poddisruptionbudget-has-policy").grade
        is Grade.CRITICAL
    )


def test_statefulset_needs_headless_service(score_text) -> None:
    statefulset = """
apiVersion: apps/v1
kind: StatefulSet
metadata:
  name: db
spec:
  serviceName: db
  selector:
    matchLabels:
      app: db
  template:
    metadata:
      labels:
        app: db
    spec:
      containers:
        - name: db
          image: db:1.0
"""
    headless = """
apiVersion: v1
kind: Service
metadata:
  name: db
spec:
  clusterIP: None
  selector:
    app: db
"""
    key = "StatefulSet/apps/v1//db"
    rule_id = "statefulset-has-servicename"

    assert _score(score_text(statefulset), key, rule_id).grade is Grade.CRITICAL
    assert _score(score_text(statefulset + "---" + headless), key, rule_id).grade is Grade.ALL_OK


def test_cronjob_rules(score_text) -> None:
    manifest = """
apiVersion: batch/v1
kind: CronJob
metadata:
  name: report
spec:
  schedule: "0 * * * *"
  jobTemplate:
    spec:
      template:
        spec:
          restartPolicy: Always
          containers:
            - name: report
              image: report:1.0
"""
    scorecard = score_text(manifest)
    key = "CronJob/batch/v1//report"

    assert _score(scorecard, key, "cronjob-has-deadline").grade is Grade.CRITICAL
    assert _score(scorecard, key, "cronjob-restartpolicy").grade is Grade.CRITICAL


def test_jobs_can_be_excluded(score_text) -> None:
    manifest = """
apiVersion: batch/v1
kind: CronJob
metadata:
  name: report
spec:
  jobTemplate:
    spec:
      template:
        spec:
          containers:
            - name: report
              image: report:latest
"""
    scorecard = score_text(manifest, RunConfiguration(skip_jobs=True))
    key = "CronJob/batch/v1//report"

    checked = {result.rule.id for result in scorecard[key].checks}
    assert checked == {"label-values", "stable-version"}


def test_label_values_apply_to_every_kind(score_text) -> None:
    manifest = """
apiVersion: v1
kind: ConfigMap
metadata:
  name: settings
  labels:
    team: not valid!
"""
    scorecard = score_text(manifest)

    score = _score(scorecard, "ConfigMap/v1//settings", "label-values")
    assert score.grade is Grade.CRITICAL
    assert score.comments[0].path == "team"


def test_stable_version_depends_on_kubernetes_version(score_text) -> None:
    manifest = """
apiVersion: batch/v1beta1
kind: CronJob
metadata:
  name: report
spec:
  startingDeadlineSeconds: 100
  jobTemplate:
    spec:
      template:
        spec:
          restartPolicy: Never
          containers:
            - name: report
              image: report:1.0
"""
    key = "CronJob/batch/v1beta1//report"
    old = score_text(manifest, RunConfiguration(kubernetes_version=KubernetesVersion(1, 20)))
    new = score_text(manifest, RunConfiguration(kubernetes_version=KubernetesVersion(1, 25)))

    assert _score(old, key, "stable-version").grade is Grade.ALL_OK
    score = _score(new, key, "stable-version")
    assert score.grade is Grade.WARNING
    assert "batch/v1" in score.comments[0].details
