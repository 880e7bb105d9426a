import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from omegaconf import OmegaConf
from omegaconf.errors import InterpolationResolutionError

from ssmconnect.constants import BRIDGE_EXECUTABLE, DEFAULT_CONFIG_PATH, PlatformFamily

logger = logging.getLogger(__name__)

DEFAULTS_MAPPING_ERROR = "defaults must be a mapping of setting to value"
SHELL_MAPPING_ERROR = "shell must be a mapping of platform to shell path"


def _require_mapping(config: dict[str, Any], section: str, message: str) -> None:
    value = config.get(section)
    if value is not None and not isinstance(value, dict):
        raise ValueError(message)


class ConfigLoader:
    """Load YAML configuration and merge it with defaults and CLI overrides."""

    def __init__(self) -> None:
        """Initialize ConfigLoader with built-in defaults."""
        self.BUILT_IN_DEFAULTS = {
            "profile": None,
            "region": None,
            "managed_only": True,
            "bridge_executable": BRIDGE_EXECUTABLE,
        }

    def load_config(self, config_path: str | None = None) -> dict[str, Any]:
        """Load configuration from YAML file.

        Parameters
        ----------
        config_path : str | None
            Path to YAML config file. If None, checks SSMCONNECT_CONFIG env var,
            then falls back to ~/.ssmconnect.yaml

        Returns
        -------
        dict[str, Any]
            Parsed configuration with defaults and shell sections,
            with all variable interpolations resolved

        Raises
        ------
        ValueError
            If the file is not valid YAML, variables cannot be resolved, or a
            section that must be a mapping is not one
        RuntimeError
            If the file exists but cannot be read
        """
        if config_path is None:
            config_path = os.environ.get("SSMCONNECT_CONFIG", DEFAULT_CONFIG_PATH)

        config_file = Path(config_path).expanduser()

        if not config_file.exists():
            logger.debug("No config file at %s, using defaults", config_file)
            return {"defaults": {}, "shell": {}}

        try:
            cfg = OmegaConf.load(config_file)
        except yaml.YAMLError as e:
            logger.error("Failed to parse YAML config file %s: %s", config_file, e)
            raise ValueError(f"Invalid YAML in {config_file}: {e}") from e
        except OSError as e:
            logger.error("Failed to read config file %s: %s", config_file, e)
            raise RuntimeError(f"Failed to read config file {config_file}: {e}") from e

        if cfg is None:
            return {"defaults": {}, "shell": {}}

        if "vars" in cfg:
            vars_dict = OmegaConf.to_container(cfg.vars, resolve=False)
            for key, value in vars_dict.items():
                if key not in cfg:
                    cfg[key] = value

        try:
            config = OmegaConf.to_container(cfg, resolve=True, throw_on_missing=True)
        except InterpolationResolutionError as e:
            logger.error("Failed to resolve configuration variables: %s", e)
            raise ValueError(f"Configuration variable resolution error: {e}") from e
        except (ValueError, KeyError, AttributeError) as e:
            logger.error("Failed to resolve configuration variables: %s", e)
            raise ValueError(f"Configuration variable resolution error: {e}") from e

        if not isinstance(config, dict):
            raise ValueError(f"Config file {config_file} must contain a mapping")

        for section in ("defaults", "shell"):
            if config.get(section) is None:
                config[section] = {}

        _require_mapping(config, "defaults", DEFAULTS_MAPPING_ERROR)
        _require_mapping(config, "shell", SHELL_MAPPING_ERROR)

        return config

    def get_settings(
        self, config: dict[str, Any], **overrides: Any
    ) -> dict[str, Any]:
        """Merge built-in defaults, YAML defaults and CLI overrides.

        Parameters
        ----------
        config : dict[str, Any]
            Full configuration from YAML
        **overrides : Any
            CLI values; None means "not given" and does not override

        Returns
        -------
        dict[str, Any]
            Effective settings including a "shell" mapping
        """
        merged = copy.deepcopy(self.BUILT_IN_DEFAULTS)

        _require_mapping(config, "defaults", DEFAULTS_MAPPING_ERROR)
        _require_mapping(config, "shell", SHELL_MAPPING_ERROR)

        for key, value in (config.get("defaults") or {}).items():
            merged[key] = value

        for key, value in overrides.items():
            if value is not None:
                merged[key] = value

        merged["shell"] = {
            str(platform).lower(): shell
            for platform, shell in (config.get("shell") or {}).items()
        }

        self.validate_config(merged)
        return merged

    def validate_config(self, config: dict[str, Any]) -> None:
        """Validate effective settings.

        Parameters
        ----------
        config : dict[str, Any]
            Settings to validate

        Raises
        ------
        ValueError
            If a setting has the wrong type or an unknown shell platform is used
        """
        optional_strings = {
            "profile": "profile must be a string",
            "region": "region must be a string",
            "bridge_executable": "bridge_executable must be a string",
        }

        for field, type_msg in optional_strings.items():
            value = config.get(field)
            if value is not None and not isinstance(value, str):
                raise ValueError(type_msg)

        if not config.get("bridge_executable"):
            raise ValueError("bridge_executable must not be empty")

        if not isinstance(config.get("managed_only", True), bool):
            raise ValueError("managed_only must be a boolean")

        self._validate_shell(config.get("shell", {}))

    def _validate_shell(self, shell: Any) -> None:
        if not isinstance(shell, dict):
            raise ValueError(SHELL_MAPPING_ERROR)

        known = {family.value.lower() for family in PlatformFamily}

        for platform, path in shell.items():
            if platform not in known:
                raise ValueError(
                    f"Unknown shell platform '{platform}'. "
                    f"Expected one of: {', '.join(sorted(known))}"
                )
            if not isinstance(path, str) or not path:
                raise ValueError(f"shell.{platform} must be a non-empty string")

    def get_shell_preference(
        self, settings: dict[str, Any], platform_family: str
    ) -> str | None:
        """Return the configured shell path for a platform family, if any."""
        return settings.get("shell", {}).get(platform_family.lower())
