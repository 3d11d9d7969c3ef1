"""Turn decoded manifest documents into typed views grouped in a ManifestSet."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Sequence, Type

from ..adapters import ManifestDocument, SkipExpression
from ..models import (
    CronJob,
    DaemonSet,
    Deployment,
    FileLocation,
    HorizontalPodAutoscaler,
    Ingress,
    Job,
    KubeObject,
    ManifestSet,
    NetworkPolicy,
    Pod,
    PodDisruptionBudget,
    ReplicaSet,
    ResourceIdentity,
    Service,
    StatefulSet,
)
from ..models.resource import as_mapping

logger = logging.getLogger(__name__)

SKIP_ANNOTATION = "kube-score/skip"

_VIEW_TYPES: Dict[str, Type[KubeObject]] = {
    "Pod": Pod,
    "Deployment": Deployment,
    "StatefulSet": StatefulSet,
    "DaemonSet": DaemonSet,
    "ReplicaSet": ReplicaSet,
    "Job": Job,
    "CronJob": CronJob,
    "Service": Service,
    "NetworkPolicy": NetworkPolicy,
    "Ingress": Ingress,
    "HorizontalPodAutoscaler": HorizontalPodAutoscaler,
    "PodDisruptionBudget": PodDisruptionBudget,
}


def _is_truthy(value: Any) -> bool:
    return str(value).strip().lower() == "true"


class ManifestNormalizer:
    """Normalize manifest documents into a :class:`ManifestSet`."""

    def __init__(self, skip_expressions: Sequence[SkipExpression] | None = None) -> None:
        self._skip_expressions = list(skip_expressions or [])

    def normalize(self, documents: Iterable[ManifestDocument]) -> ManifestSet:
        """Return a manifest set holding a typed view for every kept document."""

        manifests = ManifestSet()
        for document in documents:
            for content in self._flatten(document.content):
                if self._should_skip(content, document.location):
                    continue
                self._add(manifests, self.to_view(content, document.location))
        return manifests

    # ------------------------------------------------------------------
    def to_view(self, content: Dict[str, Any], location: FileLocation) -> KubeObject:
        metadata = as_mapping(content.get("metadata"))
        kind = str(content.get("kind") or "")
        identity = ResourceIdentity(
            api_version=str(content.get("apiVersion") or ""),
            kind=kind,
            name=str(metadata.get("name") or ""),
            namespace=str(metadata.get("namespace") or ""),
            location=location,
        )
        view_type = _VIEW_TYPES.get(kind)
        if view_type is None:
            logger.debug("No typed view for kind %r at %s:%d", kind, location.name, location.line)
            view_type = KubeObject
        return view_type(identity=identity, manifest=content)

    def _flatten(self, content: Dict[str, Any]) -> List[Dict[str, Any]]:
        if content.get("kind") != "List":
            return [content]

        items = content.get("items")
        if not isinstance(items, list):
            return []
        flattened: List[Dict[str, Any]] = []
        for item in items:
            if isinstance(item, dict):
                flattened.extend(self._flatten(item))
        return flattened

    def _should_skip(self, content: Dict[str, Any], location: FileLocation) -> bool:
        name = as_mapping(content.get("metadata")).get("name") or "<unnamed>"
        kind = content.get("kind") or "<unknown>"

        if _has_skip_annotation(content):
            logger.info("Skipping %s/%s (%s:%d): skip annotation", kind, name, location.name, location.line)
            return True

        for expression in self._skip_expressions:
            if expression.matches(content):
                logger.info(
                    "Skipping %s/%s (%s:%d): matches skip expression %s",
                    kind,
                    name,
                    location.name,
                    location.line,
                    expression,
                )
                return True
        return False

    def _add(self, manifests: ManifestSet, view: KubeObject) -> None:
        manifests.metas.append(view)

        if isinstance(view, Pod):
            manifests.pods.append(view)
            return

        if isinstance(view, (Deployment, StatefulSet, DaemonSet, ReplicaSet, Job, CronJob)):
            manifests.pod_specers.append(view)
        if isinstance(view, Deployment):
            manifests.deployments.append(view)
        elif isinstance(view, StatefulSet):
            manifests.statefulsets.append(view)
        elif isinstance(view, CronJob):
            manifests.cronjobs.append(view)
        elif isinstance(view, Service):
            manifests.services.append(view)
        elif isinstance(view, NetworkPolicy):
            manifests.network_policies.append(view)
        elif isinstance(view, Ingress):
            manifests.ingresses.append(view)
        elif isinstance(view, HorizontalPodAutoscaler):
            manifests.hpas.append(view)
        elif isinstance(view, PodDisruptionBudget):
            manifests.pdbs.append(view)


def _has_skip_annotation(content: Dict[str, Any]) -> bool:
    """The skip annotation counts on the object and on its pod template."""

    annotations = as_mapping(as_mapping(content.get("metadata")).get("annotations"))
    if _is_truthy(annotations.get(SKIP_ANNOTATION, "")):
        return True

    spec = as_mapping(content.get("spec"))
    if content.get("kind") == "CronJob":
        spec = as_mapping(as_mapping(spec.get("jobTemplate")).get("spec"))
    template = as_mapping(spec.get("template"))
    template_annotations = as_mapping(as_mapping(template.get("metadata")).get("annotations"))
    return _is_truthy(template_annotations.get(SKIP_ANNOTATION, ""))


__all__ = ["ManifestNormalizer", "SKIP_ANNOTATION"]
