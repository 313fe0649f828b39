"""Actionable error catalog for the platform deployer."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "invalid_deployment_context": {
        "what": "Deployment context is invalid: {errors}.",
        "next": "Fix the environment, location, tenant and slot inputs and run again.",
    },
    "invalid_tenant_config": {
        "what": "Tenant configuration is invalid: {errors}.",
        "next": "Check the tenant id, environment, location and SKU settings.",
    },
    "layer_failed": {
        "what": "Layer '{layer}' failed on stack '{stack_name}': {reason}",
        "next": "Review the engine output, fix the stack, then rerun; earlier layers stay applied.",
    },
    "missing_upstream_outputs": {
        "what": "Layer '{layer}' requires outputs missing from '{upstream}': {keys}.",
        "next": "Make sure the upstream stack exports these values and has been applied.",
    },
    "tenant_already_provisioned": {
        "what": "Tenant stack '{stack_name}' already exists.",
        "next": "Pass `--allow-existing` to update the existing tenant stack instead.",
    },
    "insecure_admin_password": {
        "what": "No SQL admin password supplied for production target '{environment}'.",
        "next": "Set `SQL_ADMIN_PASSWORD`; the built-in default is only allowed outside production.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
