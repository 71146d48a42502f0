"""On-demand access to the node's captured log file."""

from pathlib import Path
from typing import final

from nodesup.exceptions import LogReadError


@final
class LogReader:
    """Reads the log file written by the log sink.

    Every call returns the whole file as it is at that moment. No position
    is tracked between calls.
    """

    __slots__ = ("_path",)

    def __init__(self, path: Path) -> None:
        self._path = path

    def get_log(self) -> str:
        """Return the full current contents of the log file.

        Raises:
            LogReadError: If the file is missing or unreadable.
        """
        try:
            content = self._path.read_bytes()
        except OSError as e:
            raise LogReadError.from_os_error(e, path=self._path) from e
        # Bytes are decoded as-is so line endings survive untouched
        return content.decode("utf-8", errors="replace")
