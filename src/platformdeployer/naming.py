"""Stack identifiers.

Layer stacks follow ``{role}-{effectiveEnvironment}-{location}`` and tenant
stacks ``app-{tenantId}-{effectiveEnvironment}-{location}``. Existing
deployments are addressed by these names, so they must not change.
"""

from typing import Optional

from .constants import APP_STACK_ROLE


def stack_name(role: str, effective_environment: str, location: str) -> str:
    return f"{role}-{effective_environment}-{location}"


def tenant_stack_name(tenant_id: str, effective_environment: str, location: str) -> str:
    return stack_name(f"{APP_STACK_ROLE}-{tenant_id}", effective_environment, location)


def layer_stack_name(
    role: str,
    effective_environment: str,
    location: str,
    tenant_id: Optional[str] = None,
) -> str:
    if tenant_id:
        return tenant_stack_name(tenant_id, effective_environment, location)
    return stack_name(role, effective_environment, location)
