"""
Exceptions for requirement extraction.
"""


class AIServiceError(Exception):
    """Raised when an LLM call fails or its reply is not a usable JSON array."""
