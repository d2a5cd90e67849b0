"""Core types, errors and interfaces."""

from rpcpipe.core.errors import (
    ClientError,
    ConfigError,
    MalformedResponseError,
    RpcPipeError,
    RpcResponseError,
    TransportError,
)
from rpcpipe.core.interfaces import Layer, RetryPolicy, RpcSender
from rpcpipe.core.types import Request, RpcMethod, RpcRequest, TransportStats, method_name

__all__ = [
    # Errors
    "RpcPipeError",
    "ConfigError",
    "ClientError",
    "TransportError",
    "RpcResponseError",
    "MalformedResponseError",
    # Interfaces
    "Layer",
    "RetryPolicy",
    "RpcSender",
    # Types
    "Request",
    "RpcMethod",
    "RpcRequest",
    "TransportStats",
    "method_name",
]
