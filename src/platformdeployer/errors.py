"""Domain errors for the platform deployer."""

from typing import Iterable, Optional


class DeployerError(RuntimeError):
    """Raised when a deployment cannot continue safely."""


class ConfigurationError(DeployerError):
    """Raised when a deployment request fails validation.

    Carries every accumulated problem so callers can report them at once.
    """

    def __init__(self, errors: Iterable[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message or "; ".join(self.errors) or "Invalid configuration.")


class StackAlreadyExistsError(DeployerError):
    """Raised by a stack engine when asked to create a stack that exists."""

    def __init__(self, stack_name: str):
        self.stack_name = stack_name
        super().__init__(f"Stack already exists: {stack_name}")


class ProvisioningError(DeployerError):
    """Raised when the stack engine fails while previewing or applying a layer."""

    def __init__(self, message: str, layer: str, stack_name: str):
        self.layer = layer
        self.stack_name = stack_name
        super().__init__(message)


class TenantAlreadyProvisionedError(ProvisioningError):
    """Raised when onboarding targets a tenant stack that already exists."""
