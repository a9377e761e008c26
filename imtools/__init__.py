"""Logging, rotating log files, request context, task queueing and middleware helpers for messaging services."""

__version__ = "0.1.0"