"""
platform-deployer - layered multi-tenant platform deployment orchestration
"""

__version__ = "0.1.0"

from .core import PlatformDeployer, TenantOnboarding
from .errors import ConfigurationError, DeployerError, ProvisioningError

__all__ = [
    "ConfigurationError",
    "DeployerError",
    "PlatformDeployer",
    "ProvisioningError",
    "TenantOnboarding",
]
