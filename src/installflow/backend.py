from enum import Enum


class BackendType(Enum):
    """Supported progress store backends."""

    IN_MEMORY = "in_memory"
    SQLITE = "sqlite"
