from enum import Enum


class MemberState(Enum):
    """Lifecycle of one ensemble approximation."""
    INITIALIZED = "initialized"  # blank canvas
    IMPROVING = "improving"      # at least one accepted stamp
    FINAL = "final"              # stop signal received, read-only
