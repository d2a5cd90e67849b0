"""Pydantic models for rpcpipe pipeline configuration."""

from enum import Enum
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rpcpipe.core.constants import DEVNET_URL


class Commitment(str, Enum):
    """Solana commitment level. rpcpipe passes it through to the RPC client untouched."""

    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"

    def __str__(self) -> str:
        return self.value


class RateLimitConfig(BaseModel):
    """Plain rate limit: at most ``num`` calls per ``per`` seconds.

    Example in config:
        "rate_limit": {"num": 10, "per": 1.0}
    """

    model_config = ConfigDict(extra="forbid")

    num: int = Field(ge=1)
    """Calls allowed per window."""

    per: float = Field(gt=0)
    """Window length in seconds."""


class PipelineConfig(BaseModel):
    """Configuration for an HTTP pipeline and the sender built from it.

    Example:
        {
            "url": "https://api.devnet.solana.com",
            "request_timeout": 10,
            "extra_headers": {"x-api-key": "..."},
            "retry_429": 3,
            "rate_limit": {"num": 10, "per": 1.0},
            "concurrency_limit": 4,
            "commitment": "confirmed"
        }
    """

    model_config = ConfigDict(extra="forbid")

    url: str = DEVNET_URL
    """JSON-RPC endpoint (http or https)."""

    request_timeout: float = Field(default=30.0, gt=0)
    """Per-request timeout in seconds."""

    extra_headers: dict[str, str] = {}
    """Headers added to every request. They take precedence over the defaults."""

    retry_429: int = Field(default=5, ge=0)
    """Replays allowed for a throttled (HTTP 429) request. 0 disables retrying."""

    rate_limit: RateLimitConfig | None = None
    """Optional plain rate limit applied above the HTTP layers."""

    concurrency_limit: int | None = Field(default=None, ge=1)
    """Optional bound on in-flight calls."""

    commitment: Commitment = Commitment.FINALIZED
    """Commitment preference handed to the RPC client."""

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an http(s) URL with a host."""
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"url must use http or https, got: {v!r}")
        if not parsed.hostname:
            raise ValueError(f"url must include a host, got: {v!r}")
        return v
