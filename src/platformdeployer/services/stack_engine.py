"""Stack engine adapter backed by the Pulumi Automation API.

Any engine used by the deployer exposes ``select_or_create``, ``create`` and
``select``, each returning a handle with ``set_config``, ``preview``, ``up``
and ``outputs``. Per-stack locking is left to the engine itself.
"""

from typing import Any, Dict

from pulumi import automation as auto

from platformdeployer.errors import DeployerError, StackAlreadyExistsError
from platformdeployer.models import StackOutputs


class PulumiStackHandle:
    """Wraps a local-program Pulumi stack."""

    def __init__(self, stack, logger, auto_module=auto):
        self.stack = stack
        self.name = stack.name
        self.logger = logger
        self.auto = auto_module

    def set_config(self, key: str, value: str, secret: bool = False):
        self.logger.debug("Setting config on %s: %s", self.name, key)
        self.stack.set_config(key, self.auto.ConfigValue(value=value, secret=secret))

    def preview(self) -> Dict[str, int]:
        result = self.stack.preview(on_output=self._log_output)
        return _normalize_change_summary(result.change_summary)

    def up(self) -> StackOutputs:
        result = self.stack.up(on_output=self._log_output)
        return _to_stack_outputs(result.outputs)

    def outputs(self) -> StackOutputs:
        return _to_stack_outputs(self.stack.outputs())

    def _log_output(self, line: str):
        self.logger.debug("[%s] %s", self.name, line.rstrip())


class PulumiStackEngine:
    """Creates and selects stacks for local Pulumi programs."""

    def __init__(self, logger, auto_module=auto):
        self.logger = logger
        self.auto = auto_module

    def select_or_create(self, stack_name: str, work_dir: str) -> PulumiStackHandle:
        self.logger.info("Selecting stack %s", stack_name)
        stack = self.auto.create_or_select_stack(stack_name=stack_name, work_dir=work_dir)
        return self._wrap(stack)

    def create(self, stack_name: str, work_dir: str) -> PulumiStackHandle:
        self.logger.info("Creating stack %s", stack_name)
        try:
            stack = self.auto.create_stack(stack_name=stack_name, work_dir=work_dir)
        except self.auto.StackAlreadyExistsError as exc:
            raise StackAlreadyExistsError(stack_name) from exc
        return self._wrap(stack)

    def select(self, stack_name: str, work_dir: str) -> PulumiStackHandle:
        try:
            stack = self.auto.select_stack(stack_name=stack_name, work_dir=work_dir)
        except self.auto.StackNotFoundError as exc:
            raise DeployerError(f"Stack not found: {stack_name}") from exc
        return self._wrap(stack)

    def _wrap(self, stack) -> PulumiStackHandle:
        return PulumiStackHandle(stack, logger=self.logger, auto_module=self.auto)


def _normalize_change_summary(change_summary) -> Dict[str, int]:
    if not change_summary:
        return {}
    return {str(getattr(op, "value", op)): int(count) for op, count in change_summary.items()}


def _to_stack_outputs(raw_outputs: Dict[str, Any]) -> StackOutputs:
    values: Dict[str, Any] = {}
    secret_keys = []
    for key, output in (raw_outputs or {}).items():
        values[key] = getattr(output, "value", output)
        if getattr(output, "secret", False):
            secret_keys.append(key)
    return StackOutputs(values, secret_keys=secret_keys)
