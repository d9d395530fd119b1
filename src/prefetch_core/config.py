from dataclasses import dataclass

from prefetch_core.core import DEFAULT_LOCATOR_FIELD
from prefetch_core.exceptions import ConfigurationError

# The provider rejects batches larger than this
MAX_BATCH_SIZE = 20


@dataclass
class PrefetchConfig:
    """Prefetch queue configuration container."""

    batch_size: int = 10
    refill_threshold: int = 3
    persist: bool = True
    fetch_timeout: float | None = 15.0
    storage_key: str = "prefetch_queue"
    storage_prefix: str = "feed"
    snapshot_ttl: int | None = None
    locator_field: str = DEFAULT_LOCATOR_FIELD

    def __post_init__(self) -> None:
        """Validate the configured values."""
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            error_message = f"batch_size must be between 1 and {MAX_BATCH_SIZE}"
            raise ConfigurationError(error_message, "batch_size")
        if self.refill_threshold < 0:
            error_message = "refill_threshold must be non-negative"
            raise ConfigurationError(error_message, "refill_threshold")
        if self.fetch_timeout is not None and self.fetch_timeout <= 0:
            error_message = "fetch_timeout must be positive"
            raise ConfigurationError(error_message, "fetch_timeout")
        if not self.storage_key:
            error_message = "storage_key is required"
            raise ConfigurationError(error_message, "storage_key")
        if not self.locator_field:
            error_message = "locator_field is required"
            raise ConfigurationError(error_message, "locator_field")
