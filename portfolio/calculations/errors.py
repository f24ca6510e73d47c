"""
Errors raised by the calculation engine.
"""


class InvalidInputError(ValueError):
    """Raised when engine inputs are malformed or out of range."""
