"""
Exceptions raised by the ranking and scoring engine.
"""


class RankingError(ValueError):
    """Base exception for ranking engine errors."""


class ValidationError(RankingError):
    """Raised when caller-supplied input is malformed or out of range."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ConfigurationError(RankingError):
    """Raised when a policy table or tuning parameter is invalid."""

    def __init__(self, message: str, parameter: str | None = None):
        super().__init__(message)
        self.parameter = parameter


class SweepError(RankingError):
    """Raised when decay sweep partitions still fail after retries."""

    def __init__(self, failed_partitions: list):
        super().__init__(
            f"Decay sweep failed for {len(failed_partitions)} partition(s): "
            f"{failed_partitions}"
        )
        self.failed_partitions = failed_partitions
