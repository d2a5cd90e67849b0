"""Pipeline configuration models."""

from rpcpipe.config.schema import Commitment, PipelineConfig, RateLimitConfig

__all__ = ["Commitment", "PipelineConfig", "RateLimitConfig"]
