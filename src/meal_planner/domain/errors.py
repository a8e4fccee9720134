"""Application error types."""


class ConfigurationError(RuntimeError):
    """A required capability has no credential configured."""


class ProviderError(RuntimeError):
    """An external provider (weather, LLM) failed or timed out."""


class RateLimitExceededError(RuntimeError):
    """Caller exceeded a rate limit; not a failure of the service."""

    def __init__(self, message: str, retry_after_seconds: int) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds
