"""Configuration loader for SageProvisioner."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from sageprovisioner.errors import ConfigError
from sageprovisioner.errors_catalog import actionable_error


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "host",
        "log_dir",
        "select",
        "dsn_platform",
        "verbose",
        "dry_run",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ConfigError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            raise ConfigError(
                actionable_error(
                    "unknown_config_keys",
                    keys=", ".join(unknown),
                    supported=", ".join(sorted(self.SUPPORTED_KEYS)),
                )
            )

        return parsed
