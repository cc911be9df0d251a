"""
Provider error types
"""


class ProviderError(RuntimeError):
    """Raised when an upstream provider call fails or the provider is unavailable."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"[{provider}] {message}")
        self.provider = provider


class DateValidationError(ValueError):
    """Raised when travel dates fall outside the bookable window"""
