"""JSON-RPC 2.0 envelope serialization and response classification."""

import json
import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from rpcpipe.core.errors import MalformedResponseError, RpcResponseError
from rpcpipe.rpc.types import (
    NodeUnhealthyErrorData,
    RpcErrorObject,
    RpcResponseErrorData,
    RpcSimulateTransactionResult,
)

logger = logging.getLogger(__name__)

JSON_RPC = "2.0"

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Solana server error codes with typed data payloads
JSON_RPC_SERVER_ERROR_SEND_TRANSACTION_PREFLIGHT_FAILURE = -32002
JSON_RPC_SERVER_ERROR_NODE_UNHEALTHY = -32005

_ERROR_DATA_TYPES: dict[int, type[BaseModel]] = {
    JSON_RPC_SERVER_ERROR_SEND_TRANSACTION_PREFLIGHT_FAILURE: RpcSimulateTransactionResult,
    JSON_RPC_SERVER_ERROR_NODE_UNHEALTHY: NodeUnhealthyErrorData,
}


def jsonrpc_request_body(method: str, params: Any, request_id: int) -> str:
    """Serialize a JSON-RPC 2.0 request to a compact JSON string.

    Args:
        method: Wire name of the method.
        params: JSON-like parameters.
        request_id: Request identifier.

    Returns:
        The request body (no trailing newline).
    """
    data = {
        "jsonrpc": JSON_RPC,
        "id": request_id,
        "method": method,
        "params": params,
    }
    return json.dumps(data, separators=(",", ":"))


def _parse_error_data(code: int, data: Any) -> RpcResponseErrorData | None:
    model = _ERROR_DATA_TYPES.get(code)
    if model is None:
        return None
    try:
        return model.model_validate(data)  # type: ignore[return-value]
    except ValidationError as e:
        if code == JSON_RPC_SERVER_ERROR_SEND_TRANSACTION_PREFLIGHT_FAILURE:
            logger.warning("Failed to deserialize RpcSimulateTransactionResult: %s", e)
        return None


def parse_rpc_error(error: Any) -> RpcResponseError:
    """Build the typed error for a JSON-RPC ``error`` object.

    Well-known codes get their ``data`` decoded (preflight failure into a
    simulation result, node unhealthy into slots-behind data); other codes, and
    data that fails to decode, leave ``data`` empty.

    Args:
        error: The value of the response's ``error`` field.

    Returns:
        The RpcResponseError to raise.

    Raises:
        MalformedResponseError: If the object lacks a valid code or message.
    """
    try:
        obj = RpcErrorObject.model_validate(error)
    except ValidationError as e:
        raise MalformedResponseError(
            f"Failed to deserialize RPC error response: {json.dumps(error)} [{e}]",
            body=error,
        ) from e
    data = _parse_error_data(obj.code, error.get("data"))
    return RpcResponseError(obj.code, obj.message, data)


def parse_response_errors(response: Any) -> Any:
    """Extract the ``result`` of a decoded JSON-RPC response.

    Args:
        response: The decoded response body.

    Returns:
        The value of the ``result`` field (which may be None).

    Raises:
        RpcResponseError: If the response carries an ``error`` object.
        MalformedResponseError: If the response has neither a ``result`` nor
            an ``error`` object, or is not a JSON object at all.
    """
    if not isinstance(response, dict):
        raise MalformedResponseError(
            f"RPC response must be a JSON object, got: {type(response).__name__}",
            body=response,
        )

    if isinstance(response.get("error"), dict):
        logger.debug("JSON-RPC error response: %s", response)
        raise parse_rpc_error(response["error"])

    if "result" not in response:
        raise MalformedResponseError(
            "RPC response must have either 'result' or an 'error' object",
            body=response,
        )

    logger.debug("JSON-RPC response: %s", response)
    return response["result"]
