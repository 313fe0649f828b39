"""Tenant onboarding service."""

import os
from typing import Optional

from platformdeployer.constants import APPLICATION_LAYER, APPLICATION_PROJECT_DIR, PLATFORM_LAYER
from platformdeployer.errors import (
    ProvisioningError,
    StackAlreadyExistsError,
    TenantAlreadyProvisionedError,
)
from platformdeployer.errors_catalog import actionable_error
from platformdeployer.models import StackOutputs, TenantAppConfig, TenantProvisionResult
from platformdeployer.naming import tenant_stack_name
from platformdeployer.services.layers import PLATFORM_OUTPUT_KEYS, build_tenant_config
from platformdeployer.services.stack_applier import StackApplier
from platformdeployer.services.validation import validate_tenant_app_config


class TenantProvisioner:
    """Creates and applies the application stack for a single tenant.

    Runs outside the layered pipeline, when a tenant joins the platform. The
    platform layer must already be applied; its outputs are passed in as
    ``upstream_outputs``.
    """

    def __init__(self, engine, logger, stacks_dir: str):
        self.logger = logger
        self.applier = StackApplier(engine=engine, logger=logger)
        self.work_dir = os.path.join(stacks_dir, APPLICATION_PROJECT_DIR)

    def validate(self, config: TenantAppConfig):
        validation = validate_tenant_app_config(config)
        validation.raise_for_errors(
            actionable_error("invalid_tenant_config", errors="; ".join(validation.errors))
        )

    def stack_name_for(self, config: TenantAppConfig) -> str:
        return tenant_stack_name(config.tenant_id, config.effective_environment, config.location)

    def provision(
        self,
        config: TenantAppConfig,
        upstream_outputs: Optional[StackOutputs] = None,
        allow_existing: bool = False,
    ) -> TenantProvisionResult:
        self.validate(config)

        stack_name = self.stack_name_for(config)
        upstream = self._project_upstream(upstream_outputs, stack_name)
        self.logger.info("Provisioning tenant %s on stack %s", config.tenant_id, stack_name)

        reused = False
        try:
            stack = self.applier.open(APPLICATION_LAYER, stack_name, self.work_dir, mode="create")
        except StackAlreadyExistsError as exc:
            if not allow_existing:
                raise TenantAlreadyProvisionedError(
                    actionable_error("tenant_already_provisioned", stack_name=stack_name),
                    layer=APPLICATION_LAYER,
                    stack_name=stack_name,
                ) from exc
            self.logger.info("Stack %s already exists; reusing it.", stack_name)
            stack = self.applier.open(APPLICATION_LAYER, stack_name, self.work_dir, mode="select")
            reused = True

        result = self.applier.apply(
            APPLICATION_LAYER,
            stack,
            build_tenant_config(config),
            upstream=upstream,
        )
        summary = self._summarize(config, stack_name, result.outputs)
        return TenantProvisionResult(
            stack_name=stack_name,
            outputs=result.outputs,
            change_summary=result.change_summary,
            summary=summary,
            reused=reused,
        )

    @staticmethod
    def _project_upstream(upstream_outputs: Optional[StackOutputs], stack_name: str) -> StackOutputs:
        available = upstream_outputs if upstream_outputs is not None else StackOutputs()
        missing = available.missing(PLATFORM_OUTPUT_KEYS)
        if missing:
            raise ProvisioningError(
                actionable_error(
                    "missing_upstream_outputs",
                    layer=APPLICATION_LAYER,
                    upstream=PLATFORM_LAYER,
                    keys=", ".join(missing),
                ),
                layer=APPLICATION_LAYER,
                stack_name=stack_name,
            )
        return available.project(PLATFORM_OUTPUT_KEYS)

    @staticmethod
    def _summarize(config: TenantAppConfig, stack_name: str, outputs: StackOutputs) -> str:
        display_name = config.tenant_name or config.tenant_id
        return (
            f"Tenant {display_name} is ready on stack {stack_name} "
            f"({config.database_isolation} database {config.database_sku}, "
            f"{config.key_vault_sku} key vault, {len(outputs)} outputs). "
            f"Update it later with: pulumi stack select {stack_name}"
        )
