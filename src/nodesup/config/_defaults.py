"""Default settings values.

DEFAULT_CONFIG is a plain dict fed straight into deep_merge, which copies it
rather than mutating it.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "supervisor": {
        "working_dir": ".",
        "log_file": "node.log",
        "command": ["cargo", "run", "--"],
        "log_sink_command": ["tee"],
        "shutdown_timeout": 10.0,
    },
    "rpc": {
        "host": "127.0.0.1",
        "port": 8080,
        "timeout": 30.0,
    },
    "control": {
        "host": "127.0.0.1",
        "port": 6280,
    },
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
}
