"""Shared domain models for the platform deployer."""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from .constants import (
    DEFAULT_CLUSTER_TYPE,
    DEFAULT_SQL_ADMIN_USERNAME,
    DEFAULT_STACKS_DIR,
    NONPRODUCTION_DATABASE_SKU,
    PRODUCTION_DATABASE_SKU,
)
from .environment import get_effective_environment_name, is_production_class, parse_environment
from .errors import ConfigurationError


@dataclass(frozen=True)
class DeploymentContext:
    """Deployment intent as supplied by the caller, before validation."""

    org: str
    project: str
    environment: str
    location: str
    tenant_id: Optional[str] = None
    ephemeral_id: Optional[str] = None
    deployment_slot: Optional[str] = None


@dataclass(frozen=True)
class TenantAppConfig:
    """Per-tenant application stack configuration."""

    tenant_id: str
    environment: str
    location: str
    database_isolation: str
    database_sku: str
    key_vault_sku: str
    enable_private_endpoints: bool = True
    enable_workload_identity: bool = True
    tenant_name: Optional[str] = None
    cost_center: Optional[str] = None
    owner: Optional[str] = None
    ephemeral_id: Optional[str] = None
    deployment_slot: Optional[str] = None

    @classmethod
    def with_defaults(
        cls,
        tenant_id: str,
        environment: str,
        location: str,
        database_isolation: str = "isolated",
        **kwargs: Any,
    ) -> "TenantAppConfig":
        """Build a config with the environment-conditional SKU defaults."""
        production = _is_production_value(environment)
        kwargs.setdefault(
            "database_sku",
            PRODUCTION_DATABASE_SKU if production else NONPRODUCTION_DATABASE_SKU,
        )
        kwargs.setdefault("key_vault_sku", "premium" if production else "standard")
        return cls(
            tenant_id=tenant_id,
            environment=environment,
            location=location,
            database_isolation=database_isolation,
            **kwargs,
        )

    @property
    def effective_environment(self) -> str:
        return get_effective_environment_name(
            self.environment,
            self.ephemeral_id,
            self.deployment_slot,
        )


def _is_production_value(environment: str) -> bool:
    try:
        return is_production_class(parse_environment(environment))
    except ValueError:
        return is_production_class(environment)


class StackOutputs(Mapping):
    """Read-only, ordered outputs reported by the engine after an apply."""

    def __init__(self, values: Optional[Dict[str, Any]] = None, secret_keys: Iterable[str] = ()):
        self._values: Dict[str, Any] = dict(values or {})
        self._secret_keys: FrozenSet[str] = frozenset(secret_keys)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"StackOutputs({list(self._values)!r})"

    def is_secret(self, key: str) -> bool:
        return key in self._secret_keys

    @property
    def secret_keys(self) -> FrozenSet[str]:
        return self._secret_keys

    def project(self, keys: Iterable[str]) -> "StackOutputs":
        """Return only ``keys``, stringified, keeping secrecy flags."""
        selected = {key: _stringify(self._values[key]) for key in keys if key in self._values}
        return StackOutputs(selected, secret_keys=self._secret_keys.intersection(selected))

    def missing(self, keys: Iterable[str]) -> List[str]:
        return [key for key in keys if key not in self._values]


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return json.dumps(value, sort_keys=True)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: Tuple[str, ...] = ()

    def raise_for_errors(self, message: Optional[str] = None):
        if not self.valid:
            raise ConfigurationError(self.errors, message=message)


@dataclass(frozen=True)
class DeploymentSettings:
    """Run-wide settings resolved once by the entry point."""

    stacks_dir: str = DEFAULT_STACKS_DIR
    cluster_type: str = DEFAULT_CLUSTER_TYPE
    sql_admin_username: str = DEFAULT_SQL_ADMIN_USERNAME
    sql_admin_password: Optional[str] = None
    manifest_file: Optional[str] = None


@dataclass(frozen=True)
class LayerResult:
    """Outcome of a single layer in a pipeline run."""

    layer: str
    stack_name: str
    status: str
    outputs: StackOutputs = field(default_factory=StackOutputs)
    change_summary: Dict[str, int] = field(default_factory=dict)
    error: Optional[str] = None
    duration_seconds: Optional[float] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"


@dataclass
class PipelineResult:
    """Structured outcome of a pipeline run, layer by layer."""

    run_id: str
    effective_environment: str
    layers: List[LayerResult] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def failed_layer(self) -> Optional[str]:
        for result in self.layers:
            if result.status == "failed":
                return result.layer
        return None

    def outputs_for(self, layer: str) -> Optional[StackOutputs]:
        for result in self.layers:
            if result.layer == layer and result.succeeded:
                return result.outputs
        return None


@dataclass(frozen=True)
class TenantProvisionResult:
    stack_name: str
    outputs: StackOutputs
    change_summary: Dict[str, int]
    summary: str
    reused: bool = False
