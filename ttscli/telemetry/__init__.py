"""Telemetry and observability helpers.

This package emits structured run events for CLI-observable activity.
"""

from .logger import RunLogger

__all__ = ["RunLogger"]
