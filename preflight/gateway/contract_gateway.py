"""
Contract gateway: typed reads and simulations against the relay contracts.

The gateway is constructed by the composing code and passed explicitly to
the components that need it; it is a long-lived, read-mostly resource and
holds no per-request state.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from eth_abi.exceptions import DecodingError

from . import abi
from ..config import Settings, settings as default_settings
from ..core.feasibility.models import (
    DeployExecutionResult,
    DeployForwardRequest,
    DeployRequest,
    EstimateGasParams,
    RelayExecutionResult,
    RelayManagerData,
    RelayRequest,
    StakeInfo,
)
from ..errors import TransportError
from ..providers.rpc import JsonRpcProvider


logger = logging.getLogger(__name__)

BlockTag = Union[int, str]

T = TypeVar("T")


def _block_param(block: BlockTag) -> str:
    return hex(block) if isinstance(block, int) else block


class ContractGateway(ABC):
    """Read operations and dry-run simulations against the relay contracts."""

    @abstractmethod
    async def current_balance(self, address: str, block: BlockTag = "latest") -> int:
        """Native balance of ``address`` in wei."""

    @abstractmethod
    async def simulate_call(self, params: EstimateGasParams) -> int:
        """Gas the node estimates for ``params`` (raises SimulatedCallError on revert)."""

    @abstractmethod
    async def get_nonce(self, forwarder_address: str) -> int:
        pass

    @abstractmethod
    async def get_factory_nonce(self, factory_address: str, from_address: str) -> int:
        pass

    @abstractmethod
    async def get_latest_block_gas_limit(self) -> int:
        pass

    @abstractmethod
    async def remote_hub_version(self) -> str:
        pass

    @abstractmethod
    async def simulate_verifier_acceptance(
        self,
        request: Union[RelayRequest, DeployRequest],
        signature: str,
    ) -> None:
        """Dry-run the verifier for ``request`` as the relay worker."""

    @abstractmethod
    async def simulate_relay_execution(
        self,
        request: RelayRequest,
        signature: str,
        *,
        gas_price: int,
        gas_limit: int,
    ) -> RelayExecutionResult:
        pass

    @abstractmethod
    async def simulate_deploy_execution(
        self,
        request: DeployRequest,
        signature: str,
        *,
        gas_price: int,
        gas_limit: int,
    ) -> DeployExecutionResult:
        pass

    @abstractmethod
    def encode_relay_call(self, request: RelayRequest, signature: str) -> str:
        pass

    @abstractmethod
    def encode_deploy_call(self, request: DeployRequest, signature: str) -> str:
        pass

    @abstractmethod
    async def get_block_number(self) -> int:
        pass

    @abstractmethod
    async def get_transaction_count(self, address: str, block: BlockTag = "latest") -> int:
        pass

    @abstractmethod
    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_block(self, block: BlockTag) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_code(self, address: str) -> str:
        pass

    @abstractmethod
    async def get_relay_info(self, manager: str) -> RelayManagerData:
        pass

    @abstractmethod
    async def get_stake_info(self, manager: str) -> StakeInfo:
        pass

    @abstractmethod
    async def verify_forwarder(
        self,
        suffix_data: str,
        request: RelayRequest,
        signature: str,
    ) -> None:
        pass

    @abstractmethod
    async def estimate_wallet_creation_gas(
        self,
        request: DeployRequest,
        factory: str,
        suffix_data: str,
        signature: str,
        *,
        test_call: bool = False,
    ) -> int:
        pass

    @abstractmethod
    async def broadcast_transaction(self, signed_transaction: str) -> str:
        pass


class RpcContractGateway(ContractGateway):
    """ContractGateway backed by a JSON-RPC node."""

    def __init__(
        self,
        provider: Optional[JsonRpcProvider] = None,
        config: Optional[Settings] = None,
    ) -> None:
        self.config = config or default_settings
        self.provider = provider or JsonRpcProvider(
            self.config.rpc_url,
            timeout_s=self.config.request_timeout_seconds,
        )

    async def _eth_call(
        self,
        to: str,
        data: str,
        *,
        from_address: Optional[str] = None,
        gas_price: Optional[int] = None,
        gas_limit: Optional[int] = None,
    ) -> str:
        call: Dict[str, Any] = {"to": to, "data": data}
        if from_address:
            call["from"] = from_address
        if gas_price is not None:
            call["gasPrice"] = hex(gas_price)
        if gas_limit is not None:
            call["gas"] = hex(gas_limit)
        return await self.provider.call("eth_call", [call, "latest"])

    @staticmethod
    def _quantity(value: Any, method: str) -> int:
        if not isinstance(value, str):
            raise TransportError(f"Malformed RPC response for {method}: {value!r}")
        try:
            return int(value, 16)
        except ValueError as exc:
            raise TransportError(f"Malformed RPC response for {method}: {value!r}") from exc

    @staticmethod
    def _decode(decoder: Callable[[str], T], result: Any) -> T:
        """Decode eth_call return data; undecodable data is a malformed response."""
        if not isinstance(result, str):
            raise TransportError(f"Malformed RPC response for eth_call: {result!r}")
        try:
            return decoder(result)
        except (DecodingError, ValueError) as exc:
            raise TransportError(f"Malformed RPC response for eth_call: {result!r}") from exc

    async def current_balance(self, address: str, block: BlockTag = "latest") -> int:
        result = await self.provider.call("eth_getBalance", [address, _block_param(block)])
        return self._quantity(result, "eth_getBalance")

    async def simulate_call(self, params: EstimateGasParams) -> int:
        result = await self.provider.call("eth_estimateGas", [params.to_rpc_dict()])
        return self._quantity(result, "eth_estimateGas")

    async def get_nonce(self, forwarder_address: str) -> int:
        result = await self._eth_call(forwarder_address, abi.encode_function_call(abi.NONCE_SIGNATURE))
        return self._decode(abi.decode_uint, result)

    async def get_factory_nonce(self, factory_address: str, from_address: str) -> int:
        result = await self._eth_call(
            factory_address,
            abi.encode_function_call(abi.NONCE_SIGNATURE),
            from_address=from_address,
        )
        return self._decode(abi.decode_uint, result)

    async def get_latest_block_gas_limit(self) -> int:
        block = await self.get_block("latest")
        if not block or "gasLimit" not in block:
            raise TransportError("Malformed RPC response for eth_getBlockByNumber")
        return self._quantity(block["gasLimit"], "eth_getBlockByNumber")

    async def remote_hub_version(self) -> str:
        result = await self._eth_call(
            self.config.relay_hub_address,
            abi.encode_function_call(abi.VERSION_HUB_SIGNATURE),
        )
        return self._decode(abi.decode_string, result)

    async def simulate_verifier_acceptance(
        self,
        request: Union[RelayRequest, DeployRequest],
        signature: str,
    ) -> None:
        if isinstance(request, DeployRequest):
            verifier = self.config.deploy_verifier_address
            data = abi.encode_verify_deploy_call(request, signature)
        else:
            verifier = self.config.relay_verifier_address
            data = abi.encode_verify_relayed_call(request, signature)

        await self._eth_call(verifier, data, from_address=request.relay_data.relay_worker)

    async def simulate_relay_execution(
        self,
        request: RelayRequest,
        signature: str,
        *,
        gas_price: int,
        gas_limit: int,
    ) -> RelayExecutionResult:
        result = await self._eth_call(
            self.config.relay_hub_address,
            abi.encode_relay_call(request, signature),
            from_address=request.relay_data.relay_worker,
            gas_price=gas_price,
            gas_limit=gas_limit,
        )
        if not result or result == "0x":
            # Hubs that do not return the destination status
            return RelayExecutionResult(destination_call_success=True)
        return RelayExecutionResult(destination_call_success=self._decode(abi.decode_bool, result))

    async def simulate_deploy_execution(
        self,
        request: DeployRequest,
        signature: str,
        *,
        gas_price: int,
        gas_limit: int,
    ) -> DeployExecutionResult:
        hub = self.config.relay_hub_address
        data = abi.encode_deploy_call(request, signature)
        await self._eth_call(
            hub,
            data,
            from_address=request.relay_data.relay_worker,
            gas_price=gas_price,
            gas_limit=gas_limit,
        )
        return DeployExecutionResult(transaction_id=abi.call_id(hub, data))

    def encode_relay_call(self, request: RelayRequest, signature: str) -> str:
        return abi.encode_relay_call(request, signature)

    def encode_deploy_call(self, request: DeployRequest, signature: str) -> str:
        return abi.encode_deploy_call(request, signature)

    async def get_block_number(self) -> int:
        result = await self.provider.call("eth_blockNumber", [])
        return self._quantity(result, "eth_blockNumber")

    async def get_transaction_count(self, address: str, block: BlockTag = "latest") -> int:
        result = await self.provider.call("eth_getTransactionCount", [address, _block_param(block)])
        return self._quantity(result, "eth_getTransactionCount")

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self.provider.call("eth_getTransactionByHash", [tx_hash])

    async def get_block(self, block: BlockTag) -> Optional[Dict[str, Any]]:
        return await self.provider.call("eth_getBlockByNumber", [_block_param(block), False])

    async def get_code(self, address: str) -> str:
        return await self.provider.call("eth_getCode", [address, "latest"])

    async def get_relay_info(self, manager: str) -> RelayManagerData:
        result = await self._eth_call(
            self.config.relay_hub_address,
            abi.encode_address_call(abi.GET_RELAY_INFO_SIGNATURE, manager),
        )
        return self._decode(abi.decode_relay_manager_data, result)

    async def get_stake_info(self, manager: str) -> StakeInfo:
        result = await self._eth_call(
            self.config.relay_hub_address,
            abi.encode_address_call(abi.GET_STAKE_INFO_SIGNATURE, manager),
        )
        return self._decode(abi.decode_stake_info, result)

    async def verify_forwarder(
        self,
        suffix_data: str,
        request: RelayRequest,
        signature: str,
    ) -> None:
        forwarder = request.relay_data.call_forwarder
        if not forwarder:
            raise ValueError(f"Invalid forwarder address: {forwarder!r}")
        await self._eth_call(
            forwarder,
            abi.encode_forwarder_verify(suffix_data, request.request, signature),
        )

    async def estimate_wallet_creation_gas(
        self,
        request: DeployRequest,
        factory: str,
        suffix_data: str,
        signature: str,
        *,
        test_call: bool = False,
    ) -> int:
        forward_request: DeployForwardRequest = request.request
        data = abi.encode_wallet_creation(forward_request, suffix_data, signature)
        gas_price = request.relay_data.gas_price

        if test_call:
            await self._eth_call(
                factory,
                data,
                from_address=forward_request.relay_hub,
                gas_price=gas_price,
            )

        return await self.simulate_call(
            EstimateGasParams(
                from_address=forward_request.relay_hub,
                to=factory,
                data=data,
                gas_price=gas_price,
            )
        )

    async def broadcast_transaction(self, signed_transaction: str) -> str:
        tx_hash = await self.provider.call("eth_sendRawTransaction", [signed_transaction])
        logger.info("Broadcast transaction %s", tx_hash)
        return tx_hash

    async def aclose(self) -> None:
        await self.provider.aclose()
