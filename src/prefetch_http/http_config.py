"""HTTP protocol configuration class.

This module contains the HTTP-specific ``HttpProtocolConfig`` used by the fetch
client and the resource primer to configure connection behavior.
"""

from dataclasses import dataclass

from prefetch_core.exceptions import ConfigurationError


@dataclass
class HttpProtocolConfig:
    """HTTP protocol configuration.

    Contains all the settings needed to reach the item provider, including
    timeouts, retries and headers.
    """

    base_url: str = ""
    endpoint_path: str = "/api/dogs/prefetch"
    timeout: float = 10.0
    default_headers: dict[str, str] | None = None
    max_retries: int = 2
    retry_base_delay: float = 0.5

    def __post_init__(self) -> None:
        """Initialize default values if not provided."""
        if self.default_headers is None:
            self.default_headers = {"User-Agent": "FeedPrefetcher/1.0"}
        if self.timeout <= 0:
            error_message = "timeout must be positive"
            raise ConfigurationError(error_message, "http")
        if self.max_retries < 0:
            error_message = "max_retries must be non-negative"
            raise ConfigurationError(error_message, "http")

    @property
    def endpoint_url(self) -> str:
        """Full URL of the batch endpoint."""
        if not self.base_url:
            return self.endpoint_path
        return f"{self.base_url.rstrip('/')}/{self.endpoint_path.lstrip('/')}"
