"""
errors.py - Error types raised by the pivot grid engine
"""


class ConfigurationError(ValueError):
    """Raised when a dataset declaration is missing or malformed."""

    def __init__(self, message: str, section: str = None):
        super().__init__(message)
        self.section = section


class UnsupportedAggregationError(ValueError):
    """Raised when a measure asks for an aggregation function nobody registered."""

    def __init__(self, function_name: str):
        super().__init__(f"Unsupported aggregation function: {function_name!r}")
        self.function_name = function_name
