"""JSON-RPC 2.0 wire format for rpcpipe.

Serializes request envelopes and classifies decoded responses into results or
typed errors.

Example usage:
    body = jsonrpc_request_body("getBalance", ["<pubkey>"], request_id=0)
    result = parse_response_errors({"jsonrpc": "2.0", "id": 0, "result": 50})
"""

from rpcpipe.rpc.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSON_RPC,
    JSON_RPC_SERVER_ERROR_NODE_UNHEALTHY,
    JSON_RPC_SERVER_ERROR_SEND_TRANSACTION_PREFLIGHT_FAILURE,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    jsonrpc_request_body,
    parse_response_errors,
    parse_rpc_error,
)
from rpcpipe.rpc.types import (
    NodeUnhealthyErrorData,
    RpcErrorObject,
    RpcResponseErrorData,
    RpcSimulateTransactionResult,
)

__all__ = [
    # Types
    "RpcErrorObject",
    "RpcResponseErrorData",
    "RpcSimulateTransactionResult",
    "NodeUnhealthyErrorData",
    # Protocol functions
    "jsonrpc_request_body",
    "parse_rpc_error",
    "parse_response_errors",
    # Error codes
    "JSON_RPC",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "JSON_RPC_SERVER_ERROR_SEND_TRANSACTION_PREFLIGHT_FAILURE",
    "JSON_RPC_SERVER_ERROR_NODE_UNHEALTHY",
]
