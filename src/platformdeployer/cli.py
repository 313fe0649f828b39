import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    DEFAULT_CLUSTER_TYPE,
    DEFAULT_CONFIG_FILE,
    DEFAULT_ENVIRONMENT,
    DEFAULT_LOCATION,
    DEFAULT_ORG,
    DEFAULT_PROJECT,
    DEFAULT_SQL_ADMIN_USERNAME,
    DEFAULT_STACKS_DIR,
)
from .core import PlatformDeployer, TenantOnboarding
from .errors import DeployerError
from .models import DeploymentContext, DeploymentSettings, TenantAppConfig
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _optional_text(value):
    if value is None or value == "":
        return None
    return str(value)


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


def _load_config(config_path):
    try:
        resolved_config = config_path
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path
        return ConfigLoader().load(resolved_config)
    except DeployerError as exc:
        raise click.ClickException(str(exc)) from exc


def _configure_logging(verbose, log_file):
    logger = logging.getLogger("platformdeployer")
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)


def _build_settings(config_values, stacks_dir, sql_admin_password, manifest_file) -> DeploymentSettings:
    return DeploymentSettings(
        stacks_dir=_resolve_option(stacks_dir, config_values, "stacks_dir", default=DEFAULT_STACKS_DIR),
        cluster_type=str(
            _resolve_option(None, config_values, "cluster_type", default=DEFAULT_CLUSTER_TYPE)
        ),
        sql_admin_username=str(
            _resolve_option(
                None,
                config_values,
                "sql_admin_username",
                default=DEFAULT_SQL_ADMIN_USERNAME,
            )
        ),
        sql_admin_password=sql_admin_password or None,
        manifest_file=_resolve_option(manifest_file, config_values, "manifest_file"),
    )


def _common_options(func):
    options = [
        click.option(
            "--config",
            required=False,
            type=click.Path(),
            help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
        ),
        click.option("--environment", envvar="DEPLOYMENT_ENV", help="dev, test, staging, prod or pr."),
        click.option("--location", envvar="DEPLOYMENT_LOCATION", help="Cloud region, e.g. eastus."),
        click.option("--ephemeral-id", envvar="EPHEMERAL_ID", help="Id of a pr environment."),
        click.option(
            "--deployment-slot",
            envvar="DEPLOYMENT_SLOT",
            help="Blue/green slot (prod only).",
        ),
        click.option(
            "--stacks-dir",
            required=False,
            type=click.Path(),
            help=f"Directory holding the stack projects (default: {DEFAULT_STACKS_DIR}).",
        ),
        click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging"),
        click.option("--log-file", type=click.Path(), help="Path to log file"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
def main():
    """Deploy the layered multi-tenant platform and onboard tenants."""


@main.command()
@_common_options
@click.option("--org", envvar="PULUMI_ORG", help="Organization owning the stacks.")
@click.option("--project", envvar="PULUMI_PROJECT", help="Platform project name.")
@click.option("--tenant-id", envvar="TENANT_ID", help="Deploy the application layer for this tenant.")
@click.option(
    "--manifest-file",
    required=False,
    type=click.Path(),
    help="Write a JSON run manifest to this path.",
)
@click.option("--sql-admin-password", envvar="SQL_ADMIN_PASSWORD", hidden=True)
@click.option(
    "--dry-run",
    is_flag=True,
    default=None,
    help="Validate inputs and print the deployment plan without touching any stack.",
)
def deploy(
    config,
    environment,
    location,
    ephemeral_id,
    deployment_slot,
    stacks_dir,
    verbose,
    log_file,
    org,
    project,
    tenant_id,
    manifest_file,
    sql_admin_password,
    dry_run,
):
    """Apply platform, services and application layers in order."""
    config_values = _load_config(config)

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    _configure_logging(verbose, log_file)

    context = DeploymentContext(
        org=str(_resolve_option(org, config_values, "org", default=DEFAULT_ORG)),
        project=str(_resolve_option(project, config_values, "project", default=DEFAULT_PROJECT)),
        environment=str(
            _resolve_option(environment, config_values, "environment", default=DEFAULT_ENVIRONMENT)
        ),
        location=str(_resolve_option(location, config_values, "location", default=DEFAULT_LOCATION)),
        tenant_id=_optional_text(_resolve_option(tenant_id, config_values, "tenant_id")),
        ephemeral_id=_optional_text(_resolve_option(ephemeral_id, config_values, "ephemeral_id")),
        deployment_slot=_optional_text(_resolve_option(deployment_slot, config_values, "deployment_slot")),
    )
    settings = _build_settings(
        config_values,
        stacks_dir,
        sql_admin_password,
        manifest_file,
    )
    dry_run = bool(_resolve_option(dry_run, config_values, "dry_run", default=False))

    try:
        deployer = PlatformDeployer(context=context, settings=settings, dry_run=dry_run)
    except DeployerError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(deployer.run())


@main.command("provision-tenant")
@_common_options
@click.option("--tenant-id", envvar="TENANT_ID", help="Tenant to onboard.")
@click.option("--tenant-name", envvar="TENANT_NAME", help="Human readable tenant name.")
@click.option("--cost-center", envvar="TENANT_COST_CENTER", help="Cost center tag for the tenant.")
@click.option("--owner", envvar="TENANT_OWNER", help="Owning team or email.")
@click.option(
    "--database-isolation",
    type=click.Choice(["shared", "isolated"]),
    default=None,
    help="Tenant database isolation (default: isolated).",
)
@click.option(
    "--allow-existing",
    is_flag=True,
    default=None,
    help="Update the tenant stack if it already exists instead of failing.",
)
def provision_tenant(
    config,
    environment,
    location,
    ephemeral_id,
    deployment_slot,
    stacks_dir,
    verbose,
    log_file,
    tenant_id,
    tenant_name,
    cost_center,
    owner,
    database_isolation,
    allow_existing,
):
    """Create and apply the application stack for one tenant."""
    config_values = _load_config(config)

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    _configure_logging(verbose, log_file)

    tenant_id = _optional_text(_resolve_option(tenant_id, config_values, "tenant_id"))
    if not tenant_id:
        raise click.ClickException("Missing required option '--tenant-id' (or TENANT_ID).")

    tenant_config = TenantAppConfig.with_defaults(
        tenant_id=str(tenant_id),
        environment=str(
            _resolve_option(environment, config_values, "environment", default=DEFAULT_ENVIRONMENT)
        ),
        location=str(_resolve_option(location, config_values, "location", default=DEFAULT_LOCATION)),
        database_isolation=str(
            _resolve_option(database_isolation, config_values, "database_isolation", default="isolated")
        ),
        tenant_name=_optional_text(_resolve_option(tenant_name, config_values, "tenant_name")),
        cost_center=_optional_text(_resolve_option(cost_center, config_values, "cost_center")),
        owner=_optional_text(_resolve_option(owner, config_values, "owner")),
        ephemeral_id=_optional_text(_resolve_option(ephemeral_id, config_values, "ephemeral_id")),
        deployment_slot=_optional_text(_resolve_option(deployment_slot, config_values, "deployment_slot")),
    )
    settings = _build_settings(config_values, stacks_dir, None, None)
    allow_existing = bool(
        _resolve_option(allow_existing, config_values, "allow_existing", default=False)
    )

    onboarding = TenantOnboarding(
        config=tenant_config,
        settings=settings,
        allow_existing=allow_existing,
    )
    raise SystemExit(onboarding.run())


if __name__ == "__main__":
    main()
