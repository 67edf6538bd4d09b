"""Shared utilities."""

from state_machines.utils.logging import setup_logging


__all__ = [
    'setup_logging'
]
