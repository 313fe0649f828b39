"""Defaults for the CLI commands read from ``.platform-deployer.yml``."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from platformdeployer.constants import DATABASE_ISOLATION_VALUES
from platformdeployer.environment import ENVIRONMENT_VALUES, SLOT_VALUES
from platformdeployer.errors import ConfigurationError, DeployerError


class ConfigLoader:
    """Loads a deployment defaults file and checks every value against its key.

    Keys mirror the CLI option names. Empty values (``tenant_id:``) are
    dropped so the CLI falls through to environment variables and defaults.
    """

    FLAG_KEYS = frozenset({"verbose", "dry_run", "allow_existing"})
    CHOICE_KEYS = {
        "environment": ENVIRONMENT_VALUES,
        "deployment_slot": SLOT_VALUES,
        "database_isolation": DATABASE_ISOLATION_VALUES,
    }
    TEXT_KEYS = frozenset(
        {
            "org",
            "project",
            "location",
            "tenant_id",
            "ephemeral_id",
            "stacks_dir",
            "cluster_type",
            "sql_admin_username",
            "manifest_file",
            "log_file",
            "tenant_name",
            "cost_center",
            "owner",
        }
    )
    SUPPORTED_KEYS = FLAG_KEYS | frozenset(CHOICE_KEYS) | TEXT_KEYS

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        values = {key: value for key, value in self._read(config_path).items() if value is not None}
        errors = self.check(values)
        if errors:
            raise ConfigurationError(
                errors,
                message=f"Invalid config file '{config_path}': {'; '.join(errors)}",
            )
        return values

    @staticmethod
    def _read(config_path: str) -> Dict[Any, Any]:
        path = Path(config_path)
        if not path.exists():
            raise DeployerError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise DeployerError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise DeployerError("Config file must contain a YAML mapping at the root.")
        return parsed

    def check(self, values: Dict[Any, Any]) -> List[str]:
        """Return one message per unusable entry; unknown keys are reported together."""
        errors: List[str] = []

        unknown = sorted(str(key) for key in values if key not in self.SUPPORTED_KEYS)
        if unknown:
            errors.append(f"Unknown configuration keys: {', '.join(unknown)}")

        for key in sorted(key for key in values if key in self.SUPPORTED_KEYS):
            value = values[key]
            if key in self.FLAG_KEYS:
                if not isinstance(value, bool):
                    errors.append(f"'{key}' must be true or false (got {value!r})")
            elif key in self.CHOICE_KEYS:
                choices = self.CHOICE_KEYS[key]
                if value not in choices:
                    errors.append(f"'{key}' must be one of {', '.join(choices)} (got {value!r})")
            elif isinstance(value, bool) or not isinstance(value, (str, int)):
                # ids like `ephemeral_id: 123` load as int
                errors.append(f"'{key}' must be a single value (got {value!r})")

        return errors
