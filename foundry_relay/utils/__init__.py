"""
Utility functions and helpers.
"""

from foundry_relay.utils.logging import setup_logging

__all__ = [
    "setup_logging",
]
