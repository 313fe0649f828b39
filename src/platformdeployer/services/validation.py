"""Deployment request validation.

Validators never raise: each violated rule appends one message, so callers
can report every problem at once before touching any infrastructure.
"""

from typing import List, Optional

from platformdeployer.constants import (
    DATABASE_ISOLATION_VALUES,
    INSECURE_DEFAULT_SQL_ADMIN_PASSWORD,
    KEYVAULT_SKU_VALUES,
)
from platformdeployer.environment import (
    ENVIRONMENT_VALUES,
    SLOT_VALUES,
    BaseEnvironment,
    EnvironmentIdentity,
    EphemeralEnvironment,
    parse_environment,
    parse_slot,
)
from platformdeployer.errors import ConfigurationError
from platformdeployer.errors_catalog import actionable_error
from platformdeployer.models import DeploymentContext, TenantAppConfig, ValidationResult


def _is_blank(value: Optional[str]) -> bool:
    return not value or not str(value).strip()


def _environment_errors(environment: Optional[str]) -> List[str]:
    if _is_blank(environment):
        return ["environment is required"]
    if environment not in ENVIRONMENT_VALUES:
        return [f"environment must be one of {', '.join(ENVIRONMENT_VALUES)} (got '{environment}')"]
    return []


def _qualifier_errors(
    environment: Optional[str],
    ephemeral_id: Optional[str],
    deployment_slot: Optional[str],
) -> List[str]:
    """Rules tying ephemeral ids to ``pr`` and slots to ``prod``."""
    errors: List[str] = []

    is_pr = environment == EphemeralEnvironment.PR.value
    if is_pr and _is_blank(ephemeral_id):
        errors.append("ephemeralId is required for pr environment")
    if not is_pr and ephemeral_id:
        errors.append("ephemeralId should only be set for pr environment")

    if deployment_slot:
        if environment != BaseEnvironment.PROD.value:
            errors.append("deploymentSlot is only valid for prod environment")
        if deployment_slot not in SLOT_VALUES:
            errors.append(
                f"deploymentSlot must be one of {', '.join(SLOT_VALUES)} "
                f"(got '{deployment_slot}')"
            )
    return errors


def validate_deployment_context(context: DeploymentContext) -> ValidationResult:
    errors: List[str] = []

    if _is_blank(context.org):
        errors.append("org is required")
    if _is_blank(context.project):
        errors.append("project is required")
    errors.extend(_environment_errors(context.environment))
    if _is_blank(context.location):
        errors.append("location is required")
    errors.extend(
        _qualifier_errors(context.environment, context.ephemeral_id, context.deployment_slot)
    )

    return ValidationResult(valid=not errors, errors=tuple(errors))


def validate_tenant_app_config(config: TenantAppConfig) -> ValidationResult:
    errors: List[str] = []

    if _is_blank(config.tenant_id):
        errors.append("tenantId is required")
    errors.extend(_environment_errors(config.environment))
    if _is_blank(config.location):
        errors.append("location is required")
    errors.extend(_qualifier_errors(config.environment, config.ephemeral_id, config.deployment_slot))
    if config.database_isolation not in DATABASE_ISOLATION_VALUES:
        errors.append("databaseIsolation must be 'shared' or 'isolated'")
    if config.key_vault_sku not in KEYVAULT_SKU_VALUES:
        errors.append("keyVaultSku must be 'standard' or 'premium'")

    return ValidationResult(valid=not errors, errors=tuple(errors))


def resolve_identity(context: DeploymentContext) -> EnvironmentIdentity:
    """Validate ``context`` and return its resolved environment identity."""
    result = validate_deployment_context(context)
    result.raise_for_errors(
        actionable_error("invalid_deployment_context", errors="; ".join(result.errors))
    )
    return EnvironmentIdentity(
        environment=parse_environment(context.environment),
        ephemeral_id=context.ephemeral_id or None,
        slot=parse_slot(context.deployment_slot),
    )


def resolve_admin_password(identity: EnvironmentIdentity, supplied: Optional[str], logger) -> str:
    if supplied:
        return supplied

    if identity.is_production_class:
        message = actionable_error("insecure_admin_password", environment=identity.effective_name)
        raise ConfigurationError([message], message=message)

    logger.warning(
        "No SQL admin password supplied; using the insecure default for '%s'.",
        identity.effective_name,
    )
    return INSECURE_DEFAULT_SQL_ADMIN_PASSWORD
