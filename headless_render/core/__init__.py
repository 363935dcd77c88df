from .config import get_config, config_manager, ConfigurationManager, ConfigError, ConfigFileNotFoundError, InvalidYamlError
from .exceptions import (
    RenderServiceError,
    ConfigurationError,
    ComponentError,
    ConnectionPoolError,
    RendererError,
    NavigationError,
    PolicyAbortError,
    ScrollTimeoutError,
    UnsupportedOutputError,
    UnsupportedEncodingError,
    EngineRuntimeError,
)
from .logger import setup_logging, get_logger

__all__ = [
    # Config
    "get_config",
    "config_manager",
    "ConfigurationManager",
    "ConfigError",
    "ConfigFileNotFoundError",
    "InvalidYamlError",
    # Logger
    "setup_logging",
    "get_logger",
    # Exceptions
    "RenderServiceError",
    "ConfigurationError",
    "ComponentError",
    "ConnectionPoolError",
    "RendererError",
    "NavigationError",
    "PolicyAbortError",
    "ScrollTimeoutError",
    "UnsupportedOutputError",
    "UnsupportedEncodingError",
    "EngineRuntimeError",
]
