"""
Contract gateway: the boundary between the pre-flight core and the chain.

- ContractGateway: abstract read/simulation interface consumed by the core
- RpcContractGateway: implementation over a JSON-RPC node
- abi: calldata builders for the relay contracts
"""

from .contract_gateway import BlockTag, ContractGateway, RpcContractGateway

__all__ = [
    "BlockTag",
    "ContractGateway",
    "RpcContractGateway",
]
