"""Supervise a single blockchain node process.

nodesup launches the node with its output captured to a log file, stops it
gracefully, reports its status, serves the captured log, and forwards
JSON-RPC calls to it. Every operation is serialized through one control
actor.
"""

__version__ = "0.1.0"
