"""
Utility functions for the Apitherapy Care backend.
"""

from .datetime_utils import (
    epoch_millis,
    get_current_timestamp,
    minutes_between,
)

__all__ = [
    "epoch_millis",
    "get_current_timestamp",
    "minutes_between",
]
