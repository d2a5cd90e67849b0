"""Core types for rpcpipe.

This module defines the values that flow through a pipeline: the RPC method
enumeration, the (method, params) request pair, and the transport statistics
record maintained by the sender.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any


class RpcRequest(str, Enum):
    """Solana JSON-RPC method names.

    The enumeration is closed; a plain ``str`` method name is accepted wherever
    an ``RpcMethod`` is expected, for methods not listed here.
    """

    DEREGISTER_NODE = "deregisterNode"
    GET_ACCOUNT_INFO = "getAccountInfo"
    GET_BALANCE = "getBalance"
    GET_BLOCK = "getBlock"
    GET_BLOCK_HEIGHT = "getBlockHeight"
    GET_BLOCK_PRODUCTION = "getBlockProduction"
    GET_BLOCKS = "getBlocks"
    GET_BLOCKS_WITH_LIMIT = "getBlocksWithLimit"
    GET_BLOCK_TIME = "getBlockTime"
    GET_CLUSTER_NODES = "getClusterNodes"
    GET_EPOCH_INFO = "getEpochInfo"
    GET_EPOCH_SCHEDULE = "getEpochSchedule"
    GET_FEE_FOR_MESSAGE = "getFeeForMessage"
    GET_FIRST_AVAILABLE_BLOCK = "getFirstAvailableBlock"
    GET_GENESIS_HASH = "getGenesisHash"
    GET_HEALTH = "getHealth"
    GET_HIGHEST_SNAPSHOT_SLOT = "getHighestSnapshotSlot"
    GET_IDENTITY = "getIdentity"
    GET_INFLATION_GOVERNOR = "getInflationGovernor"
    GET_INFLATION_RATE = "getInflationRate"
    GET_INFLATION_REWARD = "getInflationReward"
    GET_LARGEST_ACCOUNTS = "getLargestAccounts"
    GET_LATEST_BLOCKHASH = "getLatestBlockhash"
    GET_LEADER_SCHEDULE = "getLeaderSchedule"
    GET_MAX_RETRANSMIT_SLOT = "getMaxRetransmitSlot"
    GET_MAX_SHRED_INSERT_SLOT = "getMaxShredInsertSlot"
    GET_MINIMUM_BALANCE_FOR_RENT_EXEMPTION = "getMinimumBalanceForRentExemption"
    GET_MULTIPLE_ACCOUNTS = "getMultipleAccounts"
    GET_PROGRAM_ACCOUNTS = "getProgramAccounts"
    GET_RECENT_PERFORMANCE_SAMPLES = "getRecentPerformanceSamples"
    GET_RECENT_PRIORITIZATION_FEES = "getRecentPrioritizationFees"
    GET_SIGNATURE_STATUSES = "getSignatureStatuses"
    GET_SIGNATURES_FOR_ADDRESS = "getSignaturesForAddress"
    GET_SLOT = "getSlot"
    GET_SLOT_LEADER = "getSlotLeader"
    GET_SLOT_LEADERS = "getSlotLeaders"
    GET_STAKE_MINIMUM_DELEGATION = "getStakeMinimumDelegation"
    GET_STORAGE_TURN = "getStorageTurn"
    GET_STORAGE_TURN_RATE = "getStorageTurnRate"
    GET_SUPPLY = "getSupply"
    GET_TOKEN_ACCOUNT_BALANCE = "getTokenAccountBalance"
    GET_TOKEN_ACCOUNTS_BY_DELEGATE = "getTokenAccountsByDelegate"
    GET_TOKEN_ACCOUNTS_BY_OWNER = "getTokenAccountsByOwner"
    GET_TOKEN_LARGEST_ACCOUNTS = "getTokenLargestAccounts"
    GET_TOKEN_SUPPLY = "getTokenSupply"
    GET_TRANSACTION = "getTransaction"
    GET_TRANSACTION_COUNT = "getTransactionCount"
    GET_VERSION = "getVersion"
    GET_VOTE_ACCOUNTS = "getVoteAccounts"
    IS_BLOCKHASH_VALID = "isBlockhashValid"
    MINIMUM_LEDGER_SLOT = "minimumLedgerSlot"
    REGISTER_NODE = "registerNode"
    REQUEST_AIRDROP = "requestAirdrop"
    SEND_TRANSACTION = "sendTransaction"
    SIGNATURE_SUBSCRIBE = "signatureSubscribe"
    SIMULATE_TRANSACTION = "simulateTransaction"

    def __str__(self) -> str:
        return self.value


RpcMethod = RpcRequest | str
"""An enumerated method, or a raw method name for methods outside the enum."""


def method_name(method: RpcMethod) -> str:
    """Return the wire name of a method (``RpcRequest.GET_BALANCE`` -> ``getBalance``)."""
    if isinstance(method, RpcRequest):
        return method.value
    return method


@dataclass(frozen=True)
class Request:
    """A single logical RPC call flowing through a pipeline.

    Unpacks like the ``(method, params)`` pair it models::

        method, params = request

    Attributes:
        method: The RPC method being called.
        params: JSON-like parameter value (usually a list).
    """

    method: RpcMethod
    params: Any = None

    def __iter__(self) -> Iterator[Any]:
        yield self.method
        yield self.params

    @property
    def name(self) -> str:
        """Wire name of the method."""
        return method_name(self.method)


@dataclass
class TransportStats:
    """Counters describing calls made through a sender.

    Attributes:
        request_count: Completed calls (success or error).
        error_count: Completed calls that raised.
        outstanding: Calls currently in flight.
        elapsed_time: Total wall time spent in completed calls, in seconds.
        rate_limited_time: Total time spent sleeping on 429 backoff, in seconds.
    """

    request_count: int = 0
    error_count: int = 0
    outstanding: int = 0
    elapsed_time: float = 0.0
    rate_limited_time: float = 0.0
