"""Configuration settings using Pydantic Settings.

Provides typed client configuration with environment variable support.

Usage:
    from optisync.config import ClientSettings

    # Load from environment variables (OPTISYNC_*)
    settings = ClientSettings()

    # Or override with explicit values
    settings = ClientSettings(stale_after=30.0, refetch_after_write=True)
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from optisync.core.resources import Collection
from optisync.mutation.models import MutationPolicy
from optisync.query.models import RetryPolicy


class ClientSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for a sync client.

    Attributes:
        base_url: Backend root URL.
        request_timeout: Per-request timeout in seconds.
        stale_after: Seconds a completed read is reused before refetching.
        refetch_after_write: Invalidate and refetch after each successful
            mutation. Off for backends that do not persist writes.
        user_id_seed: Provisional user ids start just above this value.
        post_id_seed: Provisional post ids start just above this value.
        fetch_max_attempts: Attempts per read (1 = no retry).
        fetch_backoff: Backoff between read attempts.
        fetch_base_delay: Base delay in seconds for read backoff.
        log_level: Level used by entry points that configure logging.

    Environment Variables:
        OPTISYNC_BASE_URL
        OPTISYNC_REQUEST_TIMEOUT
        OPTISYNC_STALE_AFTER
        OPTISYNC_REFETCH_AFTER_WRITE
        OPTISYNC_USER_ID_SEED
        OPTISYNC_POST_ID_SEED
        OPTISYNC_FETCH_MAX_ATTEMPTS
        OPTISYNC_FETCH_BACKOFF
        OPTISYNC_FETCH_BASE_DELAY
        OPTISYNC_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="OPTISYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "https://jsonplaceholder.typicode.com"
    request_timeout: float = Field(default=10.0, gt=0)
    stale_after: float = Field(default=120.0, ge=0)
    refetch_after_write: bool = False
    user_id_seed: int = Field(default=100, ge=0)
    post_id_seed: int = Field(default=1000, ge=0)
    fetch_max_attempts: int = Field(default=4, ge=1)
    fetch_backoff: Literal["none", "linear", "exponential"] = "exponential"
    fetch_base_delay: float = Field(default=1.0, ge=0)
    log_level: str = "INFO"

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.fetch_max_attempts,
            backoff=self.fetch_backoff,
            base_delay=self.fetch_base_delay,
        )

    def mutation_policy(self) -> MutationPolicy:
        return MutationPolicy(refetch_after_write=self.refetch_after_write)

    def id_seeds(self) -> dict[Collection, int]:
        return {
            Collection.USERS: self.user_id_seed,
            Collection.POSTS: self.post_id_seed,
        }
