"""Usage domain constants."""

from enum import Enum


class ResetTrigger(str, Enum):
    """What caused a usage reset. Used as the metrics label."""

    LAZY = "lazy"
    SWEEP = "sweep"
    ADMIN = "admin"
