"""
Engine error taxonomy.

ProviderError and its subclasses describe per-unit generation failures and are
raised by provider clients; ConfigurationError aborts a run before any work is
submitted; EstimationUnavailable marks a pricing gap in a cost preview.
"""


class ProviderError(Exception):
    """Base exception for per-unit generation failures."""

    def __init__(self, message: str, provider: str, original_error: Exception | None = None):
        self.message = message
        self.provider = provider
        self.original_error = original_error
        super().__init__(f"[{provider}] {message}")


class RateLimitError(ProviderError):
    """Raised when a provider rate limit is exceeded."""

    def __init__(self, provider: str, retry_after: float | None = None):
        self.retry_after = retry_after
        message = "Rate limit exceeded"
        if retry_after:
            message += f", retry after {retry_after}s"
        super().__init__(message, provider)


class ModelNotFoundError(ProviderError):
    """Raised when the requested model is not available."""

    def __init__(self, provider: str, model: str):
        self.model = model
        super().__init__(f"Model '{model}' not found", provider)


class ProviderConnectionError(ProviderError):
    """Raised when the provider cannot be reached or the connection is inactive."""

    pass


class MissingCredentialsError(ProviderError):
    """Raised when a provider requiring an API key has none."""

    def __init__(self, provider: str):
        super().__init__("API key is required", provider)


class ConfigurationError(Exception):
    """Raised before any work is submitted when the model selection is unusable."""

    def __init__(self, message: str, profile_id: str | None = None):
        self.message = message
        self.profile_id = profile_id
        super().__init__(message if profile_id is None else f"[{profile_id}] {message}")


class EstimationUnavailable(Exception):
    """Raised when a model's price cannot be resolved. Never fatal to an estimate."""

    def __init__(self, provider_id: str, model_id: str, reason: str = "pricing unavailable"):
        self.provider_id = provider_id
        self.model_id = model_id
        self.reason = reason
        super().__init__(f"[{provider_id}] {model_id}: {reason}")


__all__ = [
    "ConfigurationError",
    "EstimationUnavailable",
    "MissingCredentialsError",
    "ModelNotFoundError",
    "ProviderConnectionError",
    "ProviderError",
    "RateLimitError",
]
