"""EVM adapter: ABI helpers, JSON-RPC client and the contract log poller."""

from token_request_projector.evm.abi import AbiDecodeError, EventDeclaration, function_selector
from token_request_projector.evm.poller import ContractLogPoller, parse_log
from token_request_projector.evm.rpc import EthRpcClient, RpcError

__all__ = [
    "AbiDecodeError",
    "ContractLogPoller",
    "EthRpcClient",
    "EventDeclaration",
    "RpcError",
    "function_selector",
    "parse_log",
]
