"""Single-stack apply service for the platform deployer."""

import time
from typing import Iterable, Mapping, Optional

from platformdeployer.constants import UPSTREAM_PREFIX
from platformdeployer.errors import ProvisioningError, StackAlreadyExistsError
from platformdeployer.errors_catalog import actionable_error
from platformdeployer.models import LayerResult, StackOutputs


class StackApplier:
    """Configures, previews and applies one stack with consistent error handling.

    Failures are never retried: preview and apply mutate infrastructure and
    a failed run needs an operator to look at it first.
    """

    OPEN_MODES = ("select_or_create", "create", "select")

    def __init__(self, engine, logger):
        self.engine = engine
        self.logger = logger

    def open(self, layer: str, stack_name: str, work_dir: str, mode: str = "select_or_create"):
        if mode not in self.OPEN_MODES:
            raise ValueError(f"Unknown stack open mode: {mode}")

        try:
            return getattr(self.engine, mode)(stack_name, work_dir)
        except StackAlreadyExistsError:
            raise
        except Exception as exc:
            raise self._failure(layer, stack_name, exc) from exc

    def apply(
        self,
        layer: str,
        stack,
        config: Mapping[str, str],
        upstream: Optional[StackOutputs] = None,
        secret_keys: Iterable[str] = (),
    ) -> LayerResult:
        stack_name = stack.name
        secrets = set(secret_keys)
        started = time.monotonic()

        try:
            for key, value in config.items():
                stack.set_config(key, str(value), secret=key in secrets)

            if upstream:
                for key, value in upstream.items():
                    stack.set_config(
                        f"{UPSTREAM_PREFIX}:{key}",
                        str(value),
                        secret=upstream.is_secret(key),
                    )

            self.logger.info("Running preview for %s", stack_name)
            change_summary = stack.preview()
            self.logger.info(
                "Preview complete for %s: %s",
                stack_name,
                _format_change_summary(change_summary),
            )

            self.logger.info("Applying %s", stack_name)
            outputs = stack.up()
        except Exception as exc:
            raise self._failure(layer, stack_name, exc) from exc

        self.logger.info("Stack %s applied with %s outputs", stack_name, len(outputs))
        return LayerResult(
            layer=layer,
            stack_name=stack_name,
            status="success",
            outputs=outputs,
            change_summary=dict(change_summary or {}),
            duration_seconds=round(time.monotonic() - started, 3),
        )

    @staticmethod
    def _failure(layer: str, stack_name: str, exc: Exception) -> ProvisioningError:
        message = actionable_error("layer_failed", layer=layer, stack_name=stack_name, reason=str(exc))
        return ProvisioningError(message, layer=layer, stack_name=stack_name)


def _format_change_summary(change_summary: Optional[Mapping[str, int]]) -> str:
    if not change_summary:
        return "no changes"
    return ", ".join(f"{count} to {op}" for op, count in sorted(change_summary.items()))
