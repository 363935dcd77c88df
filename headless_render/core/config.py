"""
YAML-backed settings for the headless render service.

One file per environment lives in `headless_render/config/` (`development`,
`production`, `testing`). `APP_ENV` picks the file; without it the development
settings apply. The settings are loaded once into the `ConfigurationManager`
singleton and read with dotted keys such as `"render.pool.size"`.

Sections read by the service:
- `render`: pool size and ports, debug launch, process-wide HTTPS toggle, and
  `defaults` merged over the built-in render options.
- `logging`: level, format, console and rotating-file handlers.
- `api`: bind address used when the app is started directly.
"""
import os
import yaml
from typing import Any, Dict, Optional

# Directory holding the per-environment YAML files.
CONFIG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "config")

# Environment used when APP_ENV is unset.
DEFAULT_ENV = "development"

class ConfigError(Exception):
    """Base class for errors raised while loading settings."""
    pass

class ConfigFileNotFoundError(ConfigError):
    """The YAML file for the requested environment does not exist."""
    pass

class InvalidYamlError(ConfigError):
    """The YAML file cannot be parsed or its top level is not a mapping."""
    pass

class ConfigurationManager:
    """
    Process-wide holder of the active environment's settings.

    Constructing it always returns the same instance; the first construction
    reads the YAML file. Tests point `CONFIG_DIR` elsewhere and call
    `load_config` to swap the settings in place.
    """
    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}
    _current_env: str = ""
    CONFIG_DIR: str = CONFIG_DIR

    def __new__(cls) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.load_config()
        return cls._instance

    def config_path(self, env: str) -> str:
        """Location of the YAML file for `env`."""
        return os.path.join(self.CONFIG_DIR, f"{env}.yaml")

    def load_config(self, env: Optional[str] = None) -> None:
        """
        Replaces the active settings with those of one environment.

        Args:
            env (Optional[str]): Environment name. Falls back to `APP_ENV`,
                then to `DEFAULT_ENV`.

        Raises:
            ConfigFileNotFoundError: No `<env>.yaml` in `CONFIG_DIR`.
            InvalidYamlError: The file is malformed or is not a mapping.
        """
        self._current_env = env or os.getenv("APP_ENV", DEFAULT_ENV)
        path = self.config_path(self._current_env)

        try:
            with open(path, "r") as f:
                loaded = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigFileNotFoundError(
                f"Configuration file not found for environment '{self._current_env}' at '{path}'. "
                f"Add '{self._current_env}.yaml' to '{self.CONFIG_DIR}' or change APP_ENV."
            )
        except yaml.YAMLError as e:
            raise InvalidYamlError(f"Error parsing YAML in configuration file '{path}': {e}")

        if not isinstance(loaded, dict):
            raise InvalidYamlError(f"Configuration file '{path}' does not contain a valid YAML dictionary.")
        self._config = loaded

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """
        Looks up a setting by dotted key.

        `get("render.pool.size")` walks `render` -> `pool` -> `size`. Any
        missing segment, or a segment that is not a mapping, yields `default`.
        """
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    @property
    def current_environment(self) -> str:
        """Name of the environment whose settings are active."""
        return self._current_env

# Shared instance; importing this module loads the settings.
config_manager = ConfigurationManager()

def get_config(key: str, default: Optional[Any] = None) -> Any:
    """Shortcut for `config_manager.get(key, default)`."""
    return config_manager.get(key, default)
