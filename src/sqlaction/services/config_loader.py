"""Configuration loader for sqlaction."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from sqlaction.errors import SqlActionError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "connection_string",
        "path",
        "action",
        "arguments",
        "build_arguments",
        "sqlpackage_path",
        "odbc_driver",
        "timeout",
        "verbose",
        "log_file",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise SqlActionError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise SqlActionError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise SqlActionError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(str(key) for key in set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise SqlActionError(f"Unknown configuration keys: {unknown_list}")

        return parsed
