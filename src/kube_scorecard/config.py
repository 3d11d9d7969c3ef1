"""Run-wide configuration and the optional YAML configuration file."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml


class ConfigError(RuntimeError):
    """Raised when the run configuration is malformed."""


_VERSION_PATTERN = re.compile(r"^v?(\d+)\.(\d+)$")


@dataclass(slots=True, frozen=True, order=True)
class KubernetesVersion:
    major: int
    minor: int

    @classmethod
    def parse(cls, value: str) -> "KubernetesVersion":
        """Parse ``vN.NN`` or ``N.NN``."""

        match = _VERSION_PATTERN.match(str(value).strip())
        if not match:
            raise ConfigError(f"Invalid Kubernetes version {value!r}, expected the form v1.18")
        return cls(major=int(match.group(1)), minor=int(match.group(2)))

    def at_least(self, major: int, minor: int) -> bool:
        return (self.major, self.minor) >= (major, minor)

    def __str__(self) -> str:
        return f"v{self.major}.{self.minor}"


DEFAULT_KUBERNETES_VERSION = KubernetesVersion(1, 18)


@dataclass(slots=True)
class RunConfiguration:
    """Every knob that changes which rules run and how they grade."""

    namespace: str = ""
    skip_init_containers: bool = False
    skip_jobs: bool = False
    ignore_container_cpu_limit: bool = False
    ignore_container_memory_limit: bool = False
    ignored_rules: set[str] = field(default_factory=set)
    enabled_optional_rules: set[str] = field(default_factory=set)
    use_ignore_annotations: bool = True
    use_optional_annotations: bool = True
    kubernetes_version: KubernetesVersion = DEFAULT_KUBERNETES_VERSION
    all_optional_enabled: bool = False
    abort_on_rule_error: bool = False

    # ------------------------------------------------------------------
    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RunConfiguration":
        """Build a configuration from a mapping keyed by field name.

        Keys may use ``-`` instead of ``_``. Unknown keys raise
        :class:`ConfigError`.
        """

        known = {item.name for item in fields(cls)}
        values: Dict[str, Any] = {}
        for raw_key, value in data.items():
            key = str(raw_key).strip().replace("-", "_")
            if key not in known:
                raise ConfigError(f"Unknown configuration key: {raw_key}")
            values[key] = _coerce(key, value)
        return cls(**values)


def _coerce(key: str, value: Any) -> Any:
    if key == "namespace":
        return "" if value is None else str(value)
    if key == "kubernetes_version":
        if isinstance(value, KubernetesVersion):
            return value
        return KubernetesVersion.parse(str(value))
    if key in ("ignored_rules", "enabled_optional_rules"):
        if value is None:
            return set()
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple, set)):
            raise ConfigError(f"{key} must be a list of rule ids")
        return {str(item).strip() for item in value if str(item).strip()}
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be a boolean, got {value!r}")
    return value


def load_config_file(path: Path | str) -> RunConfiguration:
    """Read a YAML (or JSON) configuration file."""

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration file {path}") from exc

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in configuration file {path}") from exc

    if not isinstance(data, Mapping):
        raise ConfigError(f"Configuration file must be a mapping: {path}")

    return RunConfiguration.from_mapping(data)


__all__ = [
    "ConfigError",
    "DEFAULT_KUBERNETES_VERSION",
    "KubernetesVersion",
    "RunConfiguration",
    "load_config_file",
]
