"""Exceptions raised by divwatch."""


class DivwatchError(Exception):
    """Base class for all divwatch errors."""


class ConfigurationError(DivwatchError):
    """Missing or malformed configuration (credentials, portfolio, providers)."""


class ProviderError(DivwatchError):
    """A market-data provider failed to deliver a usable response."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class RateLimitError(ProviderError):
    """The provider answered with a rate-limit envelope."""
