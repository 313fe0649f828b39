import pytest

from platformdeployer.environment import BaseEnvironment, DeploymentSlot, EnvironmentIdentity
from platformdeployer.errors import ConfigurationError
from platformdeployer.models import DeploymentContext, TenantAppConfig
from platformdeployer.services.validation import (
    resolve_admin_password,
    resolve_identity,
    validate_deployment_context,
    validate_tenant_app_config,
)


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def warning(self, message, *args):
        self.warnings.append(message % args)


def _context(**overrides):
    values = {
        "org": "myorg",
        "project": "cloud-native-platform",
        "environment": "dev",
        "location": "eastus",
    }
    values.update(overrides)
    return DeploymentContext(**values)


def test_valid_context_has_no_errors():
    result = validate_deployment_context(_context())

    assert result.valid
    assert result.errors == ()


def test_missing_org_is_a_single_error():
    result = validate_deployment_context(_context(org="", project="p"))

    assert result.errors == ("org is required",)


def test_pr_without_ephemeral_id_is_a_single_error():
    result = validate_deployment_context(_context(environment="pr"))

    assert not result.valid
    assert result.errors == ("ephemeralId is required for pr environment",)


def test_ephemeral_id_outside_pr_is_rejected():
    result = validate_deployment_context(_context(ephemeral_id="12"))

    assert result.errors == ("ephemeralId should only be set for pr environment",)


def test_slot_outside_prod_is_rejected():
    result = validate_deployment_context(_context(environment="staging", deployment_slot="blue"))

    assert result.errors == ("deploymentSlot is only valid for prod environment",)


def test_prod_with_slot_is_valid():
    assert validate_deployment_context(_context(environment="prod", deployment_slot="green")).valid


def test_errors_accumulate_in_rule_order():
    context = DeploymentContext(
        org="",
        project="",
        environment="dev",
        location="",
        ephemeral_id="5",
        deployment_slot="purple",
    )

    result = validate_deployment_context(context)

    assert result.errors == (
        "org is required",
        "project is required",
        "location is required",
        "ephemeralId should only be set for pr environment",
        "deploymentSlot is only valid for prod environment",
        "deploymentSlot must be one of blue, green (got 'purple')",
    )


def test_unknown_environment_is_rejected():
    result = validate_deployment_context(_context(environment="qa"))

    assert len(result.errors) == 1
    assert result.errors[0].startswith("environment must be one of dev, test, staging, prod, pr")


def test_tenant_config_validation():
    config = TenantAppConfig(
        tenant_id="",
        environment="dev",
        location="eastus",
        database_isolation="dedicated",
        database_sku="S1",
        key_vault_sku="basic",
    )

    result = validate_tenant_app_config(config)

    assert result.errors == (
        "tenantId is required",
        "databaseIsolation must be 'shared' or 'isolated'",
        "keyVaultSku must be 'standard' or 'premium'",
    )


def test_resolve_identity_returns_identity_for_valid_context():
    identity = resolve_identity(_context(environment="prod", deployment_slot="blue"))

    assert identity == EnvironmentIdentity(BaseEnvironment.PROD, slot=DeploymentSlot.BLUE)
    assert identity.effective_name == "prod-blue"


def test_resolve_identity_raises_with_every_error():
    with pytest.raises(ConfigurationError, match="Suggested action:") as exc_info:
        resolve_identity(_context(org="", environment="pr"))

    assert exc_info.value.errors == [
        "org is required",
        "ephemeralId is required for pr environment",
    ]


def test_admin_password_supplied_value_wins():
    logger = DummyLogger()
    identity = EnvironmentIdentity(BaseEnvironment.PROD)

    assert resolve_admin_password(identity, "S3cret!", logger) == "S3cret!"
    assert logger.warnings == []


def test_admin_password_default_only_outside_production():
    logger = DummyLogger()

    password = resolve_admin_password(EnvironmentIdentity(BaseEnvironment.DEV), None, logger)

    assert password == "ChangeMe@123!"
    assert len(logger.warnings) == 1

    with pytest.raises(ConfigurationError, match="SQL_ADMIN_PASSWORD"):
        resolve_admin_password(
            EnvironmentIdentity(BaseEnvironment.PROD, slot=DeploymentSlot.GREEN),
            None,
            logger,
        )


def _tenant(**overrides):
    values = {"tenant_id": "acme", "environment": "dev", "location": "eastus"}
    values.update(overrides)
    return TenantAppConfig.with_defaults(**values)


def test_tenant_config_applies_environment_rules():
    assert validate_tenant_app_config(_tenant(environment="pr", ephemeral_id="7")).valid
    assert validate_tenant_app_config(_tenant(environment="prod", deployment_slot="blue")).valid

    assert validate_tenant_app_config(_tenant(environment="pr")).errors == (
        "ephemeralId is required for pr environment",
    )
    assert validate_tenant_app_config(_tenant(ephemeral_id="7")).errors == (
        "ephemeralId should only be set for pr environment",
    )
    assert validate_tenant_app_config(_tenant(deployment_slot="blue")).errors == (
        "deploymentSlot is only valid for prod environment",
    )


def test_tenant_config_rejects_unknown_environment_spellings():
    for environment in ("production", "Prod"):
        result = validate_tenant_app_config(_tenant(environment=environment))

        assert len(result.errors) == 1
        assert result.errors[0].startswith("environment must be one of")


def test_tenant_config_rejects_unknown_slot_value():
    result = validate_tenant_app_config(_tenant(environment="prod", deployment_slot="purple"))

    assert result.errors == ("deploymentSlot must be one of blue, green (got 'purple')",)


def test_whitespace_only_values_count_as_missing():
    result = validate_deployment_context(_context(org="  ", project="\t", location=" "))

    assert result.errors == ("org is required", "project is required", "location is required")

    tenant_result = validate_tenant_app_config(_tenant(tenant_id="  ", location=" "))
    assert tenant_result.errors == ("tenantId is required", "location is required")


def test_pr_with_blank_ephemeral_id_is_rejected():
    result = validate_deployment_context(_context(environment="pr", ephemeral_id="  "))

    assert result.errors == ("ephemeralId is required for pr environment",)
