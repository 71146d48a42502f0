# pyright: reportExplicitAny=false, reportAny=false
"""Settings models with typed access.

Settings are assembled from three sources, lowest precedence first:
built-in defaults, an optional TOML file, and ``NODESUP_*`` environment
variables.
"""

from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nodesup.config._defaults import DEFAULT_CONFIG
from nodesup.config._loader import deep_merge, parse_env_vars, read_toml_file
from nodesup.exceptions import ConfigLoadError
from nodesup.supervisor import SupervisorConfig


class LogLevel(StrEnum):
    """Log level threshold values."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging settings section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
        max_bytes: Rotate the log file after this many bytes.
        backup_count: Number of rotated files to keep.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""
    max_bytes: int | None = None
    backup_count: int | None = None


class SupervisorSection(BaseModel):
    """How the node is launched and stopped."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    working_dir: Path = Path()
    log_file: Path = Path("node.log")
    command: tuple[str, ...] = ("cargo", "run", "--")
    log_sink_command: tuple[str, ...] = ("tee",)
    shutdown_timeout: float = Field(default=10.0, gt=0)


class RpcSection(BaseModel):
    """Where the node's JSON-RPC endpoint listens."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    host: str = "127.0.0.1"
    # TODO: derive the port from the node's launch arguments once the node
    # exposes a stable flag for it; until then it must match by hand.
    port: int = Field(default=8080, ge=1, le=65535)
    timeout: float = Field(default=30.0, gt=0)


class ControlSection(BaseModel):
    """Where the control API listens."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    host: str = "127.0.0.1"
    port: int = Field(default=6280, ge=0, le=65535)


class NodesupSettings(BaseModel):
    """Complete nodesup settings.

    Example:
        >>> settings = NodesupSettings.load()
        >>> settings.rpc.port
        8080
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    supervisor: SupervisorSection = SupervisorSection()
    rpc: RpcSection = RpcSection()
    control: ControlSection = ControlSection()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        *,
        path: Path | None = None,
    ) -> Self:
        """Create settings from a dictionary merged over the defaults.

        Args:
            data: Dictionary of settings values.
            path: File the values came from, for error reporting.

        Raises:
            ConfigLoadError: If a value has the wrong type or range.
        """
        merged = deep_merge(DEFAULT_CONFIG, data)
        try:
            return cls.model_validate(merged)
        except ValidationError as e:
            msg = f"Invalid settings: {e}"
            raise ConfigLoadError(msg, path=path) from e

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        *,
        include_env: bool = True,
    ) -> Self:
        """Load settings from defaults, an optional file, and the environment.

        Args:
            config_path: TOML settings file. Must exist when given.
            include_env: Apply ``NODESUP_SECTION__KEY`` overrides.

        Raises:
            FileNotFoundError: If config_path does not exist.
            ConfigLoadError: If the file cannot be parsed or validated.
        """
        data: dict[str, Any] = {}
        if config_path is not None:
            data = read_toml_file(config_path)
        if include_env:
            data = deep_merge(data, parse_env_vars())
        return cls.from_dict(data, path=config_path)

    def to_supervisor_config(self) -> SupervisorConfig:
        """Build the immutable configuration consumed by the control actor."""
        return SupervisorConfig(
            working_dir=self.supervisor.working_dir,
            log_file=self.supervisor.log_file,
            command=self.supervisor.command,
            log_sink_command=self.supervisor.log_sink_command,
            shutdown_timeout=self.supervisor.shutdown_timeout,
            rpc_host=self.rpc.host,
            rpc_port=self.rpc.port,
            rpc_timeout=self.rpc.timeout,
        )
