"""Environment identity resolution.

Pure helpers that turn an environment, an optional ephemeral id and an
optional blue/green slot into the names and tiers used across the platform:

- effective name / namespace: ``staging``, ``pr-123``, ``prod-blue``
- cluster tier: only production slots land on the ``prod`` shared cluster
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class BaseEnvironment(str, Enum):
    """Long-lived environments."""

    DEV = "dev"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class EphemeralEnvironment(str, Enum):
    """Short-lived, on-demand environments identified by an external id."""

    PR = "pr"


class DeploymentSlot(str, Enum):
    BLUE = "blue"
    GREEN = "green"


class ClusterTier(str, Enum):
    NONPROD = "nonprod"
    PROD = "prod"


Environment = Union[BaseEnvironment, EphemeralEnvironment]

ENVIRONMENT_VALUES = tuple(item.value for item in BaseEnvironment) + tuple(
    item.value for item in EphemeralEnvironment
)
SLOT_VALUES = tuple(item.value for item in DeploymentSlot)


def parse_environment(value: Union[str, Environment]) -> Environment:
    if isinstance(value, (BaseEnvironment, EphemeralEnvironment)):
        return value

    clean_value = str(value).strip().lower()
    for enum_type in (BaseEnvironment, EphemeralEnvironment):
        try:
            return enum_type(clean_value)
        except ValueError:
            continue
    raise ValueError(f"Unknown environment: {value!r}")


def parse_slot(value: Union[str, DeploymentSlot, None]) -> Optional[DeploymentSlot]:
    if value is None or value == "":
        return None
    if isinstance(value, DeploymentSlot):
        return value
    return DeploymentSlot(str(value).strip().lower())


@dataclass(frozen=True)
class EnvironmentIdentity:
    """A validated deployment target: environment plus its qualifiers."""

    environment: Environment
    ephemeral_id: Optional[str] = None
    slot: Optional[DeploymentSlot] = None

    @property
    def effective_name(self) -> str:
        return get_effective_environment_name(self.environment, self.ephemeral_id, self.slot)

    @property
    def namespace(self) -> str:
        return get_environment_namespace(self.environment, self.ephemeral_id, self.slot)

    @property
    def is_production_class(self) -> bool:
        return is_production_class(self)

    @property
    def cluster_tier(self) -> ClusterTier:
        return get_cluster_tier(self)

    @property
    def is_ephemeral(self) -> bool:
        return is_ephemeral_environment(self.environment)


EnvironmentLike = Union[Environment, EnvironmentIdentity, str]


def is_production_class(env: EnvironmentLike) -> bool:
    """Return True for ``prod`` and its blue/green variants.

    Accepts an environment enum, a resolved identity, or an effective name
    string as reported back by a stack (``prod``, ``prod-blue``, ``pr-12``).
    """
    if isinstance(env, EnvironmentIdentity):
        return env.environment is BaseEnvironment.PROD
    if isinstance(env, (BaseEnvironment, EphemeralEnvironment)):
        return env is BaseEnvironment.PROD
    return env == BaseEnvironment.PROD.value or env.startswith(f"{BaseEnvironment.PROD.value}-")


def is_ephemeral_environment(env: Union[Environment, str]) -> bool:
    if isinstance(env, (BaseEnvironment, EphemeralEnvironment)):
        return isinstance(env, EphemeralEnvironment)
    return env == EphemeralEnvironment.PR.value


def get_cluster_tier(env: EnvironmentLike) -> ClusterTier:
    # staging and every ephemeral environment share the nonprod cluster
    if is_production_class(env):
        return ClusterTier.PROD
    return ClusterTier.NONPROD


def get_effective_environment_name(
    env: Union[Environment, str],
    ephemeral_id: Optional[str] = None,
    slot: Union[DeploymentSlot, str, None] = None,
) -> str:
    name = env.value if isinstance(env, Enum) else str(env)
    if is_ephemeral_environment(env) and ephemeral_id:
        name = f"{EphemeralEnvironment.PR.value}-{ephemeral_id}"
    if slot:
        slot_value = slot.value if isinstance(slot, DeploymentSlot) else str(slot)
        name = f"{name}-{slot_value}"
    return name


def get_environment_namespace(
    env: Union[Environment, str],
    ephemeral_id: Optional[str] = None,
    slot: Union[DeploymentSlot, str, None] = None,
) -> str:
    """Kubernetes namespace for an environment on a shared cluster."""
    return get_effective_environment_name(env, ephemeral_id, slot)
