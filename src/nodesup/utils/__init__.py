"""Shared utilities for nodesup."""

from ._logging import LogFormatType, create_supervisor_logger, get_default_logger

__all__ = ["LogFormatType", "create_supervisor_logger", "get_default_logger"]
