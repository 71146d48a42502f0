"""nodesup settings.

Example:
    >>> from nodesup.config import NodesupSettings
    >>> settings = NodesupSettings.load()
    >>> settings.logging.level
    <LogLevel.INFO: 'info'>
"""

from nodesup.exceptions import ConfigError, ConfigLoadError

from ._defaults import DEFAULT_CONFIG
from ._loader import deep_merge, parse_env_vars, read_toml_file
from ._models import (
    ControlSection,
    LogFormat,
    LoggingConfig,
    LogLevel,
    NodesupSettings,
    RpcSection,
    SupervisorSection,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ConfigError",
    "ConfigLoadError",
    "ControlSection",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "NodesupSettings",
    "RpcSection",
    "SupervisorSection",
    "deep_merge",
    "parse_env_vars",
    "read_toml_file",
]
