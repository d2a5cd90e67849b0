"""Typed payloads for JSON-RPC error ``data`` fields.

Solana nodes attach structured data to a couple of well-known error codes.
These models decode that data from the camelCase wire format.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class RpcErrorObject(BaseModel):
    """The ``error`` object of a JSON-RPC response, minus its ``data``."""

    code: int
    message: str


class RpcSimulateTransactionResult(_WireModel):
    """Simulation result attached to a send-transaction preflight failure."""

    err: Any = None
    logs: list[str] | None = None
    accounts: list[Any] | None = None
    units_consumed: int | None = None
    return_data: Any = None
    inner_instructions: list[Any] | None = None
    replacement_blockhash: Any = None

    def __str__(self) -> str:
        if not self.logs:
            return ""
        lines = [f"{len(self.logs)} log messages:"]
        lines.extend(f"  {log}" for log in self.logs)
        return "\n".join(lines) + "\n"


class NodeUnhealthyErrorData(_WireModel):
    """Data attached to a node-unhealthy error: how far behind the node is."""

    num_slots_behind: int | None = None

    def __str__(self) -> str:
        return ""


RpcResponseErrorData = RpcSimulateTransactionResult | NodeUnhealthyErrorData
