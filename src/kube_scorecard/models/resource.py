"""Typed, read-only views over decoded Kubernetes manifests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


def as_mapping(value: Any) -> Dict[str, Any]:
    """Return ``value`` when it is a mapping, otherwise an empty dict."""

    if isinstance(value, Mapping):
        return dict(value)
    return {}


def as_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    return []


def scalar_text(value: Any) -> str:
    """Text form of a decoded YAML scalar.

    Booleans, including unquoted ``yes`` and ``no``, become ``true`` or ``false``.
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def as_str_mapping(value: Any) -> Dict[str, str]:
    """Coerce label/annotation style mappings to ``str -> str``."""

    return {str(key): scalar_text(item) for key, item in as_mapping(value).items()}


def optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


@dataclass(slots=True, frozen=True)
class FileLocation:
    """Where an object was found: file name and 1-based line number."""

    name: str = ""
    line: int = 0


@dataclass(slots=True, frozen=True)
class ResourceIdentity:
    """Identity of a resource. An empty namespace means "use the run default"."""

    api_version: str
    kind: str
    name: str
    namespace: str = ""
    location: FileLocation = FileLocation()

    @property
    def key(self) -> str:
        """Stable scorecard key: ``kind/apiVersion/namespace/name``."""

        return f"{self.kind}/{self.api_version}/{self.namespace}/{self.name}"

    @property
    def display_name(self) -> str:
        return f"{self.kind}/{self.name}"


@dataclass(slots=True)
class KubeObject:
    """Generic metadata view. Every decoded document is exposed as one."""

    identity: ResourceIdentity
    manifest: Dict[str, Any] = field(default_factory=dict)

    @property
    def api_version(self) -> str:
        return self.identity.api_version

    @property
    def kind(self) -> str:
        return self.identity.kind

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def namespace(self) -> str:
        return self.identity.namespace

    @property
    def location(self) -> FileLocation:
        return self.identity.location

    @property
    def metadata(self) -> Dict[str, Any]:
        return as_mapping(self.manifest.get("metadata"))

    @property
    def spec(self) -> Dict[str, Any]:
        return as_mapping(self.manifest.get("spec"))

    @property
    def labels(self) -> Dict[str, str]:
        return as_str_mapping(self.metadata.get("labels"))

    @property
    def annotations(self) -> Dict[str, str]:
        return as_str_mapping(self.metadata.get("annotations"))


@dataclass(slots=True)
class PodTemplate:
    """The pod template embedded in a workload, or a bare pod's own body."""

    metadata: Dict[str, Any] = field(default_factory=dict)
    spec: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return str(self.metadata.get("name") or "")

    @property
    def labels(self) -> Dict[str, str]:
        return as_str_mapping(self.metadata.get("labels"))

    @property
    def annotations(self) -> Dict[str, str]:
        return as_str_mapping(self.metadata.get("annotations"))

    @property
    def containers(self) -> List[Dict[str, Any]]:
        return [as_mapping(item) for item in as_list(self.spec.get("containers"))]

    @property
    def init_containers(self) -> List[Dict[str, Any]]:
        return [as_mapping(item) for item in as_list(self.spec.get("initContainers"))]

    @property
    def security_context(self) -> Optional[Dict[str, Any]]:
        value = self.spec.get("securityContext")
        return as_mapping(value) if isinstance(value, Mapping) else None

    def all_containers(self, skip_init_containers: bool = False) -> List[Dict[str, Any]]:
        """Init containers (unless skipped) followed by regular containers."""

        containers: List[Dict[str, Any]] = []
        if not skip_init_containers:
            containers.extend(self.init_containers)
        containers.extend(self.containers)
        return containers


@dataclass(slots=True)
class PodSpecer(KubeObject):
    """An object carrying a pod template at ``spec.template``."""

    @property
    def pod_template(self) -> PodTemplate:
        template = as_mapping(self.spec.get("template"))
        return PodTemplate(
            metadata=as_mapping(template.get("metadata")),
            spec=as_mapping(template.get("spec")),
        )

    @property
    def replicas(self) -> Optional[int]:
        return optional_int(self.spec.get("replicas"))

    @property
    def selector(self) -> Optional[Dict[str, Any]]:
        value = self.spec.get("selector")
        return as_mapping(value) if isinstance(value, Mapping) else None


@dataclass(slots=True)
class Pod(PodSpecer):
    @property
    def pod_template(self) -> PodTemplate:
        return PodTemplate(metadata=self.metadata, spec=self.spec)


@dataclass(slots=True)
class Deployment(PodSpecer):
    @property
    def strategy_type(self) -> str:
        return str(as_mapping(self.spec.get("strategy")).get("type") or "")


@dataclass(slots=True)
class StatefulSet(PodSpecer):
    @property
    def service_name(self) -> str:
        return str(self.spec.get("serviceName") or "")


@dataclass(slots=True)
class DaemonSet(PodSpecer):
    pass


@dataclass(slots=True)
class ReplicaSet(PodSpecer):
    pass


@dataclass(slots=True)
class Job(PodSpecer):
    pass


@dataclass(slots=True)
class CronJob(PodSpecer):
    @property
    def job_template_spec(self) -> Dict[str, Any]:
        return as_mapping(as_mapping(self.spec.get("jobTemplate")).get("spec"))

    @property
    def pod_template(self) -> PodTemplate:
        template = as_mapping(self.job_template_spec.get("template"))
        return PodTemplate(
            metadata=as_mapping(template.get("metadata")),
            spec=as_mapping(template.get("spec")),
        )

    @property
    def starting_deadline_seconds(self) -> Optional[int]:
        return optional_int(self.spec.get("startingDeadlineSeconds"))


@dataclass(slots=True, frozen=True)
class ServicePort:
    name: str
    port: int


@dataclass(slots=True)
class Service(KubeObject):
    @property
    def service_type(self) -> str:
        return str(self.spec.get("type") or "ClusterIP")

    @property
    def selector(self) -> Dict[str, str]:
        return as_str_mapping(self.spec.get("selector"))

    @property
    def cluster_ip(self) -> str:
        return str(self.spec.get("clusterIP") or "")

    @property
    def ports(self) -> List[ServicePort]:
        ports = []
        for item in as_list(self.spec.get("ports")):
            entry = as_mapping(item)
            ports.append(
                ServicePort(
                    name=str(entry.get("name") or ""),
                    port=optional_int(entry.get("port")) or 0,
                )
            )
        return ports


@dataclass(slots=True)
class NetworkPolicy(KubeObject):
    @property
    def pod_selector(self) -> Dict[str, Any]:
        # podSelector is not optional in the API; an absent one selects everything.
        return as_mapping(self.spec.get("podSelector"))

    @property
    def policy_types(self) -> List[str]:
        return [str(item) for item in as_list(self.spec.get("policyTypes"))]

    @property
    def ingress_rules(self) -> List[Any]:
        return as_list(self.spec.get("ingress"))

    @property
    def egress_rules(self) -> List[Any]:
        return as_list(self.spec.get("egress"))


@dataclass(slots=True, frozen=True)
class IngressPath:
    """One HTTP path of an Ingress rule and the Service backend it names."""

    path: str
    service_name: Optional[str] = None
    port_number: int = 0
    port_name: str = ""


@dataclass(slots=True)
class Ingress(KubeObject):
    @property
    def paths(self) -> List[IngressPath]:
        paths: List[IngressPath] = []
        for rule in as_list(self.spec.get("rules")):
            http = as_mapping(rule).get("http") if isinstance(rule, Mapping) else None
            if not isinstance(http, Mapping):
                continue
            for item in as_list(http.get("paths")):
                entry = as_mapping(item)
                paths.append(_ingress_path(entry))
        return paths


def _ingress_path(entry: Mapping[str, Any]) -> IngressPath:
    path = str(entry.get("path") or "")
    backend = as_mapping(entry.get("backend"))

    service = backend.get("service")
    if isinstance(service, Mapping):
        port = as_mapping(service.get("port"))
        return IngressPath(
            path=path,
            service_name=str(service.get("name") or ""),
            port_number=optional_int(port.get("number")) or 0,
            port_name=str(port.get("name") or ""),
        )

    # extensions/v1beta1 and networking.k8s.io/v1beta1 backends
    if "serviceName" in backend:
        service_port = backend.get("servicePort")
        number = optional_int(service_port)
        return IngressPath(
            path=path,
            service_name=str(backend.get("serviceName") or ""),
            port_number=number or 0,
            port_name="" if number is not None else str(service_port or ""),
        )

    return IngressPath(path=path)


@dataclass(slots=True, frozen=True)
class ObjectReference:
    api_version: str
    kind: str
    name: str


@dataclass(slots=True)
class HorizontalPodAutoscaler(KubeObject):
    @property
    def min_replicas(self) -> Optional[int]:
        return optional_int(self.spec.get("minReplicas"))

    @property
    def target(self) -> ObjectReference:
        ref = as_mapping(self.spec.get("scaleTargetRef"))
        return ObjectReference(
            api_version=str(ref.get("apiVersion") or ""),
            kind=str(ref.get("kind") or ""),
            name=str(ref.get("name") or ""),
        )


@dataclass(slots=True)
class PodDisruptionBudget(KubeObject):
    @property
    def selector(self) -> Optional[Dict[str, Any]]:
        value = self.spec.get("selector")
        return as_mapping(value) if isinstance(value, Mapping) else None

    @property
    def min_available(self) -> Any:
        return self.spec.get("minAvailable")

    @property
    def max_unavailable(self) -> Any:
        return self.spec.get("maxUnavailable")


@dataclass(slots=True)
class ManifestSet:
    """All objects of one run, grouped by the accessor each rule family uses."""

    metas: List[KubeObject] = field(default_factory=list)
    pods: List[Pod] = field(default_factory=list)
    pod_specers: List[PodSpecer] = field(default_factory=list)
    services: List[Service] = field(default_factory=list)
    statefulsets: List[StatefulSet] = field(default_factory=list)
    deployments: List[Deployment] = field(default_factory=list)
    network_policies: List[NetworkPolicy] = field(default_factory=list)
    ingresses: List[Ingress] = field(default_factory=list)
    cronjobs: List[CronJob] = field(default_factory=list)
    hpas: List[HorizontalPodAutoscaler] = field(default_factory=list)
    pdbs: List[PodDisruptionBudget] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.metas)
