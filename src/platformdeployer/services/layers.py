"""Layer descriptors for the platform deployment pipeline.

Each descriptor names its stack role, the Pulumi project it applies, how its
configuration is built, and which upstream outputs it needs. The ordered list
returned by ``default_layers`` is the deployment order.
"""

import os
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from platformdeployer.constants import (
    APPLICATION_LAYER,
    APPLICATION_PROJECT_DIR,
    APP_STACK_ROLE,
    DATABASE_PREFIX,
    DEFAULT_DATABASE_SKU_TIER,
    INFRASTRUCTURE_PREFIX,
    KEYVAULT_PREFIX,
    PLATFORM_LAYER,
    PLATFORM_PROJECT_DIR,
    SERVICES_LAYER,
    SERVICES_PREFIX,
    SERVICES_PROJECT_DIR,
    TENANT_PREFIX,
)
from platformdeployer.environment import EnvironmentIdentity
from platformdeployer.errors import ConfigurationError
from platformdeployer.models import DeploymentContext, DeploymentSettings, TenantAppConfig

PLATFORM_OUTPUT_KEYS = (
    "resourceGroupName",
    "vnetId",
    "aksClusterId",
    "dbServerName",
    "keyVaultUri",
)

SQL_ADMIN_PASSWORD_KEY = "sql:adminPassword"

ConfigBuilder = Callable[[EnvironmentIdentity, DeploymentContext, DeploymentSettings], Dict[str, str]]


@dataclass(frozen=True)
class LayerDescriptor:
    name: str
    role: str
    project_dir: str
    build_config: ConfigBuilder
    upstream_layer: Optional[str] = None
    upstream_keys: Tuple[str, ...] = ()
    secret_keys: FrozenSet[str] = frozenset()
    requires_tenant: bool = False

    def work_dir(self, settings: DeploymentSettings) -> str:
        return os.path.join(settings.stacks_dir, self.project_dir)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def build_platform_config(
    identity: EnvironmentIdentity,
    context: DeploymentContext,
    settings: DeploymentSettings,
) -> Dict[str, str]:
    production = identity.is_production_class
    return {
        "azure:location": context.location,
        f"{INFRASTRUCTURE_PREFIX}:environment": identity.effective_name,
        f"{INFRASTRUCTURE_PREFIX}:location": context.location,
        f"{INFRASTRUCTURE_PREFIX}:clusterType": settings.cluster_type,
        f"{INFRASTRUCTURE_PREFIX}:clusterTier": identity.cluster_tier.value,
        f"{DATABASE_PREFIX}:redundancyLevel": "high" if production else "medium",
        f"{DATABASE_PREFIX}:isolation": "shared",
        "sql:adminUsername": settings.sql_admin_username,
        SQL_ADMIN_PASSWORD_KEY: settings.sql_admin_password or "",
    }


def build_services_config(
    identity: EnvironmentIdentity,
    context: DeploymentContext,
    settings: DeploymentSettings,
) -> Dict[str, str]:
    production = identity.is_production_class
    return {
        f"{INFRASTRUCTURE_PREFIX}:environment": identity.effective_name,
        f"{INFRASTRUCTURE_PREFIX}:location": context.location,
        f"{INFRASTRUCTURE_PREFIX}:clusterTier": identity.cluster_tier.value,
        f"{SERVICES_PREFIX}:enableGrafana": "true",
        f"{SERVICES_PREFIX}:enableKyverno": _flag(production),
        f"{SERVICES_PREFIX}:enableOpenSearch": _flag(production),
        f"{SERVICES_PREFIX}:enableUptimeKuma": _flag(production),
    }


def build_tenant_config(config: TenantAppConfig) -> Dict[str, str]:
    """Stack configuration for one tenant's application stack."""
    entries = {
        f"{INFRASTRUCTURE_PREFIX}:tenantId": config.tenant_id,
        f"{INFRASTRUCTURE_PREFIX}:environment": config.effective_environment,
        f"{INFRASTRUCTURE_PREFIX}:location": config.location,
        f"{DATABASE_PREFIX}:isolation": config.database_isolation,
        f"{DATABASE_PREFIX}:skuName": config.database_sku,
        f"{DATABASE_PREFIX}:skuTier": DEFAULT_DATABASE_SKU_TIER,
        f"{KEYVAULT_PREFIX}:sku": config.key_vault_sku,
        "enablePrivateEndpoints": _flag(config.enable_private_endpoints),
        "enableWorkloadIdentity": _flag(config.enable_workload_identity),
    }
    if config.tenant_name:
        entries[f"{TENANT_PREFIX}:name"] = config.tenant_name
    if config.cost_center:
        entries[f"{TENANT_PREFIX}:costCenter"] = config.cost_center
    if config.owner:
        entries[f"{TENANT_PREFIX}:owner"] = config.owner
    return entries


def tenant_config_from_context(context: DeploymentContext) -> TenantAppConfig:
    return TenantAppConfig.with_defaults(
        tenant_id=context.tenant_id or "",
        environment=context.environment,
        location=context.location,
        ephemeral_id=context.ephemeral_id,
        deployment_slot=context.deployment_slot,
    )


def build_application_config(
    identity: EnvironmentIdentity,
    context: DeploymentContext,
    settings: DeploymentSettings,
) -> Dict[str, str]:
    return build_tenant_config(tenant_config_from_context(context))


def default_layers() -> List[LayerDescriptor]:
    return [
        LayerDescriptor(
            name=PLATFORM_LAYER,
            role=PLATFORM_LAYER,
            project_dir=PLATFORM_PROJECT_DIR,
            build_config=build_platform_config,
            secret_keys=frozenset({SQL_ADMIN_PASSWORD_KEY}),
        ),
        LayerDescriptor(
            name=SERVICES_LAYER,
            role=SERVICES_LAYER,
            project_dir=SERVICES_PROJECT_DIR,
            build_config=build_services_config,
            upstream_layer=PLATFORM_LAYER,
            upstream_keys=PLATFORM_OUTPUT_KEYS,
        ),
        LayerDescriptor(
            name=APPLICATION_LAYER,
            role=APP_STACK_ROLE,
            project_dir=APPLICATION_PROJECT_DIR,
            build_config=build_application_config,
            upstream_layer=PLATFORM_LAYER,
            upstream_keys=PLATFORM_OUTPUT_KEYS,
            requires_tenant=True,
        ),
    ]


def validate_layer_order(layers: Sequence[LayerDescriptor]):
    """Reject pipelines whose upstream references point forward or nowhere."""
    errors: List[str] = []
    seen = set()
    for layer in layers:
        if layer.name in seen:
            errors.append(f"layer '{layer.name}' is declared more than once")
        if layer.upstream_layer and layer.upstream_layer not in seen:
            errors.append(
                f"layer '{layer.name}' depends on '{layer.upstream_layer}', "
                "which is not applied before it"
            )
        seen.add(layer.name)

    if errors:
        raise ConfigurationError(errors)
