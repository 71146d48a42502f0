# pyright: reportAny=false, reportExplicitAny=false
"""Raw settings sources: TOML files and ``NODESUP_*`` environment variables.

Both produce plain nested dicts that are combined with deep_merge before
validation.
"""

import copy
import json
import os
import tomllib
from collections.abc import Mapping
from contextlib import suppress
from pathlib import Path
from typing import Any

from nodesup.exceptions import ConfigLoadError

ENV_PREFIX = "NODESUP_"
ENV_SEPARATOR = "__"


def read_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML settings file.

    Raises:
        FileNotFoundError: If path does not exist.
        ConfigLoadError: If the file is not valid TOML. The error carries the
            line and column reported by the parser.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigLoadError(msg, path=path, line=e.lineno, column=e.colno) from e


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of base with override layered on top.

    Tables present on both sides are merged key by key. Any other value from
    override, lists included, replaces the value in base outright. Neither
    argument is modified and the result shares no containers with them.
    """
    merged = {key: copy.deepcopy(value) for key, value in base.items()}
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)  # pyright: ignore[reportUnknownArgumentType]
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def parse_env_vars(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Collect settings overrides from the process environment.

    ``NODESUP_RPC__PORT=9933`` becomes ``{"rpc": {"port": 9933}}``. Names
    without a section separator, such as ``NODESUP_DEBUG``, are left to the
    logging setup.
    """
    overrides: dict[str, Any] = {}
    for name, raw in os.environ.items():
        if not name.startswith(prefix):
            continue
        parts = name.removeprefix(prefix).lower().split(ENV_SEPARATOR)
        if len(parts) < 2:  # noqa: PLR2004
            continue
        set_nested_key(overrides, ".".join(parts), parse_env_value(raw))
    return overrides


def parse_env_value(value: str) -> Any:
    """Convert an environment string to the most specific settings value.

    Booleans and integers are recognised first, then decimals, then JSON
    arrays (for command lines). Anything else stays a string.

    Examples:
        >>> parse_env_value("9933")
        9933
        >>> parse_env_value('["./node", "--dev"]')
        ['./node', '--dev']
    """
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"
    with suppress(ValueError):
        return int(value)
    if "." in value:
        with suppress(ValueError):
            return float(value)
    if value.startswith("[") and value.endswith("]"):
        with suppress(json.JSONDecodeError):
            return json.loads(value)
    return value


def set_nested_key(d: dict[str, Any], key_path: str, value: Any) -> None:
    """Store value under a dotted path, creating or replacing parent tables."""
    *parents, leaf = key_path.split(".")
    node = d
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child  # pyright: ignore[reportUnknownVariableType]
    node[leaf] = value
