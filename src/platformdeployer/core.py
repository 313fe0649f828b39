import logging
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rich.console import Console

from .constants import (
    EXIT_INVALID_CONFIGURATION,
    EXIT_OK,
    EXIT_PROVISIONING_FAILED,
    EXIT_TENANT_EXISTS,
    PLATFORM_LAYER,
)
from .environment import EnvironmentIdentity
from .errors import (
    ConfigurationError,
    DeployerError,
    ProvisioningError,
    TenantAlreadyProvisionedError,
)
from .errors_catalog import actionable_error
from .models import (
    DeploymentContext,
    DeploymentSettings,
    LayerResult,
    PipelineResult,
    StackOutputs,
    TenantAppConfig,
    TenantProvisionResult,
)
from .naming import layer_stack_name
from .services.layers import LayerDescriptor, default_layers, validate_layer_order
from .services.manifest import ManifestService
from .services.reporter import ConsoleReporter
from .services.stack_applier import StackApplier
from .services.stack_engine import PulumiStackEngine
from .services.tenant import TenantProvisioner
from .services.validation import resolve_admin_password, resolve_identity

console = Console()
logger = logging.getLogger("platformdeployer")


class PlatformDeployer:
    """Applies the platform layers in order, threading outputs downstream."""

    def __init__(
        self,
        context: DeploymentContext,
        settings: Optional[DeploymentSettings] = None,
        engine=None,
        layers: Optional[Sequence[LayerDescriptor]] = None,
        reporter=None,
        dry_run: bool = False,
    ):
        self.context = context
        self.settings = settings or DeploymentSettings()
        self.layers: List[LayerDescriptor] = list(layers) if layers is not None else default_layers()
        validate_layer_order(self.layers)

        self.engine = engine if engine is not None else PulumiStackEngine(logger=logger)
        self.applier = StackApplier(engine=self.engine, logger=logger)
        self.reporter = reporter or ConsoleReporter(console)
        self.dry_run = dry_run
        self.run_id = uuid.uuid4().hex[:10]
        self.manifest_service = ManifestService(self.settings.manifest_file, logger=logger)

    def resolve(self) -> Tuple[EnvironmentIdentity, DeploymentSettings]:
        """Validate inputs before any engine call. Raises ConfigurationError."""
        identity = resolve_identity(self.context)
        password = resolve_admin_password(identity, self.settings.sql_admin_password, logger)
        return identity, replace(self.settings, sql_admin_password=password)

    def stack_name_for(self, layer: LayerDescriptor, identity: EnvironmentIdentity) -> str:
        return layer_stack_name(
            layer.role,
            identity.effective_name,
            self.context.location,
            tenant_id=self.context.tenant_id if layer.requires_tenant else None,
        )

    def plan(self) -> List[Dict[str, Any]]:
        """Describe the stacks and configuration a run would apply."""
        identity, settings = self.resolve()
        entries = []
        for layer in self.layers:
            if layer.requires_tenant and not self.context.tenant_id:
                continue
            entries.append(
                {
                    "layer": layer.name,
                    "stack": self.stack_name_for(layer, identity),
                    "work_dir": layer.work_dir(settings),
                    "config": layer.build_config(identity, self.context, settings),
                    "secret_keys": sorted(layer.secret_keys),
                    "upstream_layer": layer.upstream_layer,
                    "upstream_keys": list(layer.upstream_keys),
                }
            )
        return entries

    def _build_metadata(self, identity: EnvironmentIdentity) -> Dict[str, Any]:
        return {
            "org": self.context.org,
            "project": self.context.project,
            "environment": self.context.environment,
            "effective_environment": identity.effective_name,
            "namespace": identity.namespace,
            "cluster_tier": identity.cluster_tier.value,
            "location": self.context.location,
            "tenant_id": self.context.tenant_id,
        }

    def run_pipeline(self) -> PipelineResult:
        """Apply every layer in order and stop at the first failure.

        Validation problems raise ConfigurationError before the engine is
        touched. Engine failures are recorded on the returned result; layers
        applied before the failure are left in place.
        """
        identity, settings = self.resolve()
        metadata = self._build_metadata(identity)
        result = PipelineResult(run_id=self.run_id, effective_environment=identity.effective_name)

        self.manifest_service.start_run(run_id=self.run_id, metadata=metadata)
        self.reporter.pipeline_started(metadata)
        logger.info("Starting deployment %s for %s", self.run_id, identity.effective_name)

        produced: Dict[str, StackOutputs] = {}
        for layer in self.layers:
            if layer.requires_tenant and not self.context.tenant_id:
                reason = "no tenant id supplied"
                logger.info("Skipping layer %s: %s", layer.name, reason)
                result.layers.append(LayerResult(layer=layer.name, stack_name="", status="skipped"))
                self.manifest_service.layer_skipped(layer.name, reason)
                self.reporter.layer_skipped(layer.name, reason)
                continue

            stack_name = self.stack_name_for(layer, identity)
            self.manifest_service.layer_started(layer.name, stack_name)
            self.reporter.layer_started(layer.name, stack_name)

            try:
                layer_result = self._run_layer(layer, stack_name, identity, settings, produced)
            except ProvisioningError as exc:
                logger.error("Layer %s failed: %s", layer.name, exc)
                failed = LayerResult(
                    layer=layer.name,
                    stack_name=stack_name,
                    status="failed",
                    error=str(exc),
                )
                result.layers.append(failed)
                result.error = exc
                self.manifest_service.layer_finished(layer.name, "failed", error=str(exc))
                self.reporter.layer_finished(failed)
                break

            produced[layer.name] = layer_result.outputs
            result.layers.append(layer_result)
            self.manifest_service.layer_finished(
                layer.name,
                "success",
                details={
                    "outputs": sorted(layer_result.outputs),
                    "change_summary": layer_result.change_summary,
                },
            )
            self.reporter.layer_finished(layer_result)

        self.manifest_service.finalize(
            "success" if result.succeeded else "failed",
            error=str(result.error) if result.error else None,
        )
        return result

    def _run_layer(
        self,
        layer: LayerDescriptor,
        stack_name: str,
        identity: EnvironmentIdentity,
        settings: DeploymentSettings,
        produced: Dict[str, StackOutputs],
    ) -> LayerResult:
        upstream = None
        if layer.upstream_layer:
            available = produced.get(layer.upstream_layer, StackOutputs())
            missing = available.missing(layer.upstream_keys)
            if missing:
                raise ProvisioningError(
                    actionable_error(
                        "missing_upstream_outputs",
                        layer=layer.name,
                        upstream=layer.upstream_layer,
                        keys=", ".join(missing),
                    ),
                    layer=layer.name,
                    stack_name=stack_name,
                )
            upstream = available.project(layer.upstream_keys)

        config = layer.build_config(identity, self.context, settings)
        stack = self.applier.open(layer.name, stack_name, layer.work_dir(settings))
        return self.applier.apply(
            layer.name,
            stack,
            config,
            upstream=upstream,
            secret_keys=layer.secret_keys,
        )

    def run(self) -> int:
        try:
            if self.dry_run:
                self.reporter.plan(self.plan())
                return EXIT_OK

            result = self.run_pipeline()
            self.reporter.pipeline_finished(result)
            return EXIT_OK if result.succeeded else EXIT_PROVISIONING_FAILED

        except ConfigurationError as exc:
            console.print("[bold red]Invalid deployment configuration:[/bold red]")
            for error in exc.errors:
                console.print(f"  - {error}")
            logger.error(str(exc))
            return EXIT_INVALID_CONFIGURATION
        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            self.manifest_service.finalize("aborted", error="Operation cancelled by user.")
            return EXIT_PROVISIONING_FAILED
        except DeployerError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return EXIT_PROVISIONING_FAILED
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            self.manifest_service.finalize("failed", error=str(exc))
            return EXIT_PROVISIONING_FAILED


class TenantOnboarding:
    """Out-of-band onboarding of one tenant onto an applied platform."""

    def __init__(
        self,
        config: TenantAppConfig,
        settings: Optional[DeploymentSettings] = None,
        engine=None,
        reporter=None,
        allow_existing: bool = False,
    ):
        self.config = config
        self.settings = settings or DeploymentSettings()
        self.engine = engine if engine is not None else PulumiStackEngine(logger=logger)
        self.provisioner = TenantProvisioner(
            engine=self.engine,
            logger=logger,
            stacks_dir=self.settings.stacks_dir,
        )
        self.applier = StackApplier(engine=self.engine, logger=logger)
        self.reporter = reporter or ConsoleReporter(console)
        self.allow_existing = allow_existing

    def platform_stack_name(self) -> str:
        return layer_stack_name(
            PLATFORM_LAYER,
            self.config.effective_environment,
            self.config.location,
        )

    def read_platform_outputs(self) -> StackOutputs:
        platform = next(layer for layer in default_layers() if layer.name == PLATFORM_LAYER)
        stack_name = self.platform_stack_name()
        stack = self.applier.open(
            PLATFORM_LAYER,
            stack_name,
            platform.work_dir(self.settings),
            mode="select",
        )
        try:
            return stack.outputs()
        except Exception as exc:
            raise ProvisioningError(
                actionable_error("layer_failed", layer=PLATFORM_LAYER, stack_name=stack_name, reason=str(exc)),
                layer=PLATFORM_LAYER,
                stack_name=stack_name,
            ) from exc

    def onboard(self) -> TenantProvisionResult:
        self.provisioner.validate(self.config)
        upstream = self.read_platform_outputs()
        return self.provisioner.provision(
            self.config,
            upstream_outputs=upstream,
            allow_existing=self.allow_existing,
        )

    def run(self) -> int:
        try:
            result = self.onboard()
            self.reporter.tenant_provisioned(result)
            return EXIT_OK
        except ConfigurationError as exc:
            console.print("[bold red]Invalid tenant configuration:[/bold red]")
            for error in exc.errors:
                console.print(f"  - {error}")
            logger.error(str(exc))
            return EXIT_INVALID_CONFIGURATION
        except TenantAlreadyProvisionedError as exc:
            console.print(f"[bold yellow]Already onboarded:[/bold yellow] {exc}")
            logger.warning(str(exc))
            return EXIT_TENANT_EXISTS
        except DeployerError as exc:
            console.print(f"[bold red]Tenant onboarding failed:[/bold red] {exc}")
            logger.error(str(exc))
            return EXIT_PROVISIONING_FAILED
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return EXIT_PROVISIONING_FAILED
