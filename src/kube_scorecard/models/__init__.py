"""Data models for decoded manifests, rules and scorecards."""

from .resource import (
    CronJob,
    DaemonSet,
    Deployment,
    FileLocation,
    HorizontalPodAutoscaler,
    Ingress,
    IngressPath,
    Job,
    KubeObject,
    ManifestSet,
    NetworkPolicy,
    ObjectReference,
    Pod,
    PodDisruptionBudget,
    PodSpecer,
    PodTemplate,
    ReplicaSet,
    ResourceIdentity,
    Service,
    ServicePort,
    StatefulSet,
)
from .rule import Rule, TargetKind, rule_id_from_name
from .score import Comment, Grade, TestScore
from .scorecard import RuleResult, ScoredObject, Scorecard

__all__ = [
    "Comment",
    "CronJob",
    "DaemonSet",
    "Deployment",
    "FileLocation",
    "Grade",
    "HorizontalPodAutoscaler",
    "Ingress",
    "IngressPath",
    "Job",
    "KubeObject",
    "ManifestSet",
    "NetworkPolicy",
    "ObjectReference",
    "Pod",
    "PodDisruptionBudget",
    "PodSpecer",
    "PodTemplate",
    "ReplicaSet",
    "ResourceIdentity",
    "Rule",
    "RuleResult",
    "ScoredObject",
    "Scorecard",
    "Service",
    "ServicePort",
    "StatefulSet",
    "TargetKind",
    "TestScore",
    "rule_id_from_name",
]
