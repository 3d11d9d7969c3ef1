from __future__ import annotations

import logging

from kube_scorecard.adapters import ManifestDocument, SkipExpression
from kube_scorecard.models import (
    CronJob,
    Deployment,
    FileLocation,
    KubeObject,
    Pod,
)
from kube_scorecard.normalization import ManifestNormalizer

LOCATION = FileLocation("cluster.yaml", 1)


def _documents(*contents: dict) -> list[ManifestDocument]:
    return [ManifestDocument(content=content, location=LOCATION) for content in contents]


def _workload(kind: str, api_version: str = "apps/v1", **metadata: object) -> dict:
    return {
        "apiVersion": api_version,
        "kind": kind,
        "metadata": {"name": kind.lower(), **metadata},
        "spec": {"template": {"metadata": {"labels": {"app": kind.lower()}}, "spec": {}}},
    }


def test_objects_are_grouped_by_accessor() -> None:
    manifests = ManifestNormalizer().normalize(
        _documents(
            _workload("Deployment"),
            _workload("StatefulSet"),
            _workload("DaemonSet"),
            _workload("Job", "batch/v1"),
            {"apiVersion": "v1", "kind": "Pod", "metadata": {"name": "pod"}},
            {"apiVersion": "v1", "kind": "Service", "metadata": {"name": "svc"}},
            {"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "cfg"}},
        )
    )

    assert len(manifests) == 7
    assert [obj.kind for obj in manifests.pod_specers] == ["Deployment", "StatefulSet", "DaemonSet", "Job"]
    assert [pod.name for pod in manifests.pods] == ["pod"]
    assert isinstance(manifests.deployments[0], Deployment)
    assert [svc.name for svc in manifests.services] == ["svc"]
    assert type(manifests.metas[-1]) is KubeObject


def test_list_documents_are_flattened() -> None:
    document = {
        "apiVersion": "v1",
        "kind": "List",
        "items": [
            {"apiVersion": "v1", "kind": "Pod", "metadata": {"name": "a"}},
            {"apiVersion": "v1", "kind": "List", "items": [{"apiVersion": "v1", "kind": "Pod", "metadata": {"name": "b"}}]},
            "not-an-object",
        ],
    }

    manifests = ManifestNormalizer().normalize(_documents(document))

    assert [pod.name for pod in manifests.pods] == ["a", "b"]
    assert all(isinstance(pod, Pod) for pod in manifests.pods)


def test_skip_annotation_on_object_or_template(caplog) -> None:
    skipped_object = _workload("Deployment", annotations={"kube-score/skip": "true"})
    skipped_template = _workload("StatefulSet")
    skipped_template["spec"]["template"]["metadata"]["annotations"] = {"kube-score/skip": "True"}
    kept = _workload("DaemonSet", annotations={"kube-score/skip": "false"})

    with caplog.at_level(logging.INFO, logger="kube_scorecard.normalization.manifest_normalizer"):
        manifests = ManifestNormalizer().normalize(_documents(skipped_object, skipped_template, kept))

    assert [obj.kind for obj in manifests.metas] == ["DaemonSet"]
    assert "skip annotation" in caplog.text


def test_cronjob_template_lives_under_job_template() -> None:
    cronjob = {
        "apiVersion": "batch/v1",
        "kind": "CronJob",
        "metadata": {"name": "report"},
        "spec": {
            "jobTemplate": {
                "spec": {
                    "template": {
                        "metadata": {"labels": {"app": "report"}},
                        "spec": {"containers": [{"name": "report", "image": "report:1"}]},
                    }
                }
            }
        },
    }

    manifests = ManifestNormalizer().normalize(_documents(cronjob))

    (view,) = manifests.cronjobs
    assert isinstance(view, CronJob)
    assert view.pod_template.labels == {"app": "report"}
    assert [container["name"] for container in view.pod_template.containers] == ["report"]


def test_skip_expressions_drop_matching_documents() -> None:
    expression = SkipExpression.parse("metadata.labels.tier=^test$")
    documents = _documents(
        {"apiVersion": "v1", "kind": "Pod", "metadata": {"name": "a", "labels": {"tier": "test"}}},
        {"apiVersion": "v1", "kind": "Pod", "metadata": {"name": "b", "labels": {"tier": "prod"}}},
    )

    manifests = ManifestNormalizer([expression]).normalize(documents)

    assert [pod.name for pod in manifests.pods] == ["b"]
