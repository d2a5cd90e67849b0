"""Unit tests for JSON-RPC request serialization and response classification."""

import json

import pytest

from rpcpipe.core.errors import MalformedResponseError, RpcResponseError
from rpcpipe.rpc.protocol import (
    JSON_RPC_SERVER_ERROR_NODE_UNHEALTHY,
    JSON_RPC_SERVER_ERROR_SEND_TRANSACTION_PREFLIGHT_FAILURE,
    METHOD_NOT_FOUND,
    jsonrpc_request_body,
    parse_response_errors,
    parse_rpc_error,
)
from rpcpipe.rpc.types import NodeUnhealthyErrorData, RpcSimulateTransactionResult


class TestJsonRpcRequestBody:
    """Tests for jsonrpc_request_body."""

    def test_envelope_fields(self):
        """Body carries jsonrpc, id, method and params."""
        data = json.loads(jsonrpc_request_body("getBalance", ["pubkey"], 7))
        assert data == {"jsonrpc": "2.0", "id": 7, "method": "getBalance", "params": ["pubkey"]}

    def test_compact_encoding(self):
        """Body has no insignificant whitespace."""
        body = jsonrpc_request_body("getSlot", None, 0)
        assert body == '{"jsonrpc":"2.0","id":0,"method":"getSlot","params":null}'


class TestParseResponseErrors:
    """Tests for parse_response_errors."""

    def test_returns_result(self):
        """A result response yields its result value."""
        assert parse_response_errors({"jsonrpc": "2.0", "id": 0, "result": 50}) == 50

    def test_null_result_is_valid(self):
        """A null result is a result, not a malformed response."""
        assert parse_response_errors({"jsonrpc": "2.0", "id": 0, "result": None}) is None

    def test_error_object_raises(self):
        """An error object raises RpcResponseError."""
        with pytest.raises(RpcResponseError) as exc_info:
            parse_response_errors(
                {"jsonrpc": "2.0", "id": 0, "error": {"code": -32601, "message": "Method not found"}}
            )
        assert exc_info.value.code == METHOD_NOT_FOUND
        assert exc_info.value.rpc_message == "Method not found"

    def test_missing_result_and_error(self):
        """A body with neither result nor error is malformed."""
        with pytest.raises(MalformedResponseError):
            parse_response_errors({"jsonrpc": "2.0", "id": 0})

    def test_non_object_error_field_is_ignored(self):
        """A non-object error field does not count as an error."""
        with pytest.raises(MalformedResponseError):
            parse_response_errors({"jsonrpc": "2.0", "id": 0, "error": "oops"})

    @pytest.mark.parametrize("body", [[1, 2], "text", 5, None])
    def test_non_object_body(self, body):
        """A body that is not a JSON object is malformed."""
        with pytest.raises(MalformedResponseError):
            parse_response_errors(body)


class TestParseRpcError:
    """Tests for parse_rpc_error and its typed error data."""

    def test_preflight_failure_data(self):
        """-32002 data decodes into a simulation result."""
        error = parse_rpc_error(
            {
                "code": JSON_RPC_SERVER_ERROR_SEND_TRANSACTION_PREFLIGHT_FAILURE,
                "message": "Transaction simulation failed",
                "data": {
                    "err": "BlockhashNotFound",
                    "logs": ["Program log: hello"],
                    "accounts": None,
                    "unitsConsumed": 1200,
                    "returnData": None,
                },
            }
        )
        assert isinstance(error.data, RpcSimulateTransactionResult)
        assert error.data.err == "BlockhashNotFound"
        assert error.data.logs == ["Program log: hello"]
        assert error.data.units_consumed == 1200
        assert "1 log messages:" in str(error)

    def test_preflight_failure_bad_data(self, caplog):
        """Undecodable preflight data leaves data empty and logs a warning."""
        with caplog.at_level("WARNING", logger="rpcpipe.rpc.protocol"):
            error = parse_rpc_error(
                {
                    "code": JSON_RPC_SERVER_ERROR_SEND_TRANSACTION_PREFLIGHT_FAILURE,
                    "message": "Transaction simulation failed",
                    "data": {"logs": "not-a-list"},
                }
            )
        assert error.data is None
        assert "RpcSimulateTransactionResult" in caplog.text

    def test_node_unhealthy_data(self):
        """-32005 data decodes the number of slots behind."""
        error = parse_rpc_error(
            {
                "code": JSON_RPC_SERVER_ERROR_NODE_UNHEALTHY,
                "message": "Node is behind by 42 slots",
                "data": {"numSlotsBehind": 42},
            }
        )
        assert isinstance(error.data, NodeUnhealthyErrorData)
        assert error.data.num_slots_behind == 42

    def test_node_unhealthy_without_data(self):
        """-32005 without data leaves data empty."""
        error = parse_rpc_error(
            {"code": JSON_RPC_SERVER_ERROR_NODE_UNHEALTHY, "message": "Node is unhealthy"}
        )
        assert error.data is None

    def test_other_codes_drop_data(self):
        """Data of codes without a known payload type is not kept."""
        error = parse_rpc_error({"code": -32000, "message": "custom", "data": {"x": 1}})
        assert error.code == -32000
        assert error.data is None

    @pytest.mark.parametrize(
        "obj",
        [
            {"message": "no code"},
            {"code": -32000},
            {"code": "abc", "message": "bad code"},
        ],
    )
    def test_invalid_error_object(self, obj):
        """An error object without a valid code and message is malformed."""
        with pytest.raises(MalformedResponseError):
            parse_rpc_error(obj)
