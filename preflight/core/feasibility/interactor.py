"""
Caller-facing entry point for relay pre-flight checks.

Usage:
    gateway = RpcContractGateway(config=settings)
    interactor = await ContractInteractor.initialize(gateway)

    verdict = await interactor.check_relay_feasibility(relay_request, signature)
    if verdict.accepted:
        ...
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from ...config import Settings, settings as default_settings
from ...errors import InteractorNotInitializedError, UnsupportedRemoteVersionError
from ..versions import VersionCompatibilityChecker
from .budget import BalanceBudgetCalculator
from .gas_estimator import GasEstimator
from .models import (
    DeployRequest,
    DeployTransactionRequest,
    EstimateGasParams,
    FeasibilityVerdict,
    RelayManagerData,
    RelayRequest,
    RelayTransactionRequest,
    StakeInfo,
)
from .simulator import CallFeasibilitySimulator, require_relay_hub

if TYPE_CHECKING:
    from ...gateway.contract_gateway import BlockTag, ContractGateway


logger = logging.getLogger(__name__)


class ContractInteractor:
    """
    Gas estimation, budget checks and feasibility simulation for relayed
    calls, gated on the remote hub version.

    Build it with ``initialize``; a directly constructed interactor refuses
    every operation until ``validate_remote_version`` has passed.
    """

    VERSION = "2.0.1"

    def __init__(
        self,
        gateway: "ContractGateway",
        config: Optional[Settings] = None,
        version: str = VERSION,
    ):
        self.config = config or default_settings
        self.gateway = gateway
        self.version_checker = VersionCompatibilityChecker(version)
        self.estimator = GasEstimator(gateway, config=self.config)
        self.budget = BalanceBudgetCalculator(gateway)
        self.simulator = CallFeasibilitySimulator(gateway, self.estimator, self.budget)
        self._hub_version: Optional[str] = None

    @classmethod
    async def initialize(
        cls,
        gateway: "ContractGateway",
        own_version: str = VERSION,
        config: Optional[Settings] = None,
    ) -> "ContractInteractor":
        """Build an interactor and check the remote hub version once."""
        interactor = cls(gateway, config=config, version=own_version)
        await interactor.validate_remote_version()
        return interactor

    @property
    def hub_version(self) -> Optional[str]:
        return self._hub_version

    @property
    def initialized(self) -> bool:
        return self._hub_version is not None

    async def validate_remote_version(self) -> str:
        if self._hub_version is not None:
            return self._hub_version

        version = await self.gateway.remote_hub_version()
        if not self.version_checker.is_compatible(version):
            logger.error(
                "Hub version %s outside supported range %s",
                version,
                self.version_checker.compatibility_range,
            )
            raise UnsupportedRemoteVersionError(version, self.version_checker.component_version)

        self._hub_version = version
        logger.info("Hub version %s accepted", version)
        return version

    def _require_initialized(self) -> None:
        if self._hub_version is None:
            raise InteractorNotInitializedError(
                "Remote hub version has not been validated; use ContractInteractor.initialize"
            )

    # Feasibility

    async def check_relay_feasibility(self, request: RelayRequest, signature: str) -> FeasibilityVerdict:
        self._require_initialized()
        return await self.simulator.simulate_relay_call(request, signature)

    async def check_deploy_feasibility(self, request: DeployTransactionRequest) -> FeasibilityVerdict:
        self._require_initialized()
        return await self.simulator.simulate_deploy_call(request)

    async def get_max_viewable_relay_gas_limit(self, request: RelayRequest, signature: str) -> int:
        self._require_initialized()
        return await self.simulator.relay_path(request, signature).compute_max_gas()

    async def get_max_viewable_deploy_gas_limit(self, request: DeployTransactionRequest) -> int:
        self._require_initialized()
        return await self.simulator.deploy_path(request).compute_max_gas()

    # Gas estimation

    async def estimate_max_possible_gas(self, request: RelayRequest, signature: str) -> int:
        """Corrected gas estimate of ``relayCall`` sent by the relay worker."""
        self._require_initialized()
        return await self.simulator.relay_path(request, signature).estimate_max_gas()

    async def estimate_max_possible_gas_with_transaction_request(
        self,
        transaction_request: RelayTransactionRequest,
    ) -> int:
        self._require_initialized()
        relay_hub = require_relay_hub(
            transaction_request.metadata.relay_hub_address,
            "estimateMaxPossibleGas",
        )
        relay_request = transaction_request.relay_request
        return await self.estimator.estimate(
            EstimateGasParams(
                from_address=relay_request.relay_data.relay_worker,
                to=relay_hub,
                data=self.gateway.encode_relay_call(relay_request, transaction_request.metadata.signature),
                gas_price=relay_request.relay_data.gas_price,
            )
        )

    async def estimate_deploy_call_gas(self, transaction_request: DeployTransactionRequest) -> int:
        self._require_initialized()
        return await self.simulator.deploy_path(transaction_request).estimate_max_gas()

    async def estimate_destination_contract_call_gas(
        self,
        params: EstimateGasParams,
        add_cushion: bool = True,
    ) -> int:
        """
        Estimate the gas forwarded to the destination contract.

        The node prices the call as an external transaction; inside a relay it
        runs as an internal call, so the internal overhead is removed. Without
        that, the smart wallet's ``gasleft() > req.gas`` check could fail.
        """
        self._require_initialized()
        return await self.estimator.estimate(params, internal=True, apply_correction=add_cushion)

    async def wallet_factory_estimate_gas_for_internal_call(
        self,
        request: DeployRequest,
        factory: str,
        suffix_data: str,
        signature: str,
        test_call: bool = False,
    ) -> int:
        self._require_initialized()
        return await self.gateway.estimate_wallet_creation_gas(
            request,
            factory,
            suffix_data,
            signature,
            test_call=test_call,
        )

    # Chain reads

    async def get_sender_nonce(self, smart_wallet: str) -> int:
        self._require_initialized()
        return await self.gateway.get_nonce(smart_wallet)

    async def get_factory_nonce(self, factory_address: str, from_address: str) -> int:
        self._require_initialized()
        return await self.gateway.get_factory_nonce(factory_address, from_address)

    async def get_block_gas_limit(self) -> int:
        self._require_initialized()
        return await self.gateway.get_latest_block_gas_limit()

    async def get_balance(self, address: str, block: "BlockTag" = "latest") -> int:
        self._require_initialized()
        return await self.gateway.current_balance(address, block)

    async def get_block_number(self) -> int:
        self._require_initialized()
        return await self.gateway.get_block_number()

    async def get_transaction_count(self, address: str, block: "BlockTag" = "latest") -> int:
        self._require_initialized()
        return await self.gateway.get_transaction_count(address, block)

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        self._require_initialized()
        return await self.gateway.get_transaction(tx_hash)

    async def get_block(self, block: "BlockTag") -> Optional[Dict[str, Any]]:
        self._require_initialized()
        return await self.gateway.get_block(block)

    async def is_contract_deployed(self, address: str) -> bool:
        self._require_initialized()
        code = await self.gateway.get_code(address)
        # Some nodes answer 0x00 instead of 0x for accounts without code
        return code not in ("0x", "0x00")

    async def get_relay_info(self, relay_managers: Iterable[str]) -> List[RelayManagerData]:
        self._require_initialized()
        return list(
            await asyncio.gather(*(self.gateway.get_relay_info(manager) for manager in relay_managers))
        )

    async def get_active_relay_info(self, relay_managers: Iterable[str]) -> List[RelayManagerData]:
        results = await self.get_relay_info(relay_managers)
        return [info for info in results if info.registered and info.currently_staked]

    async def get_stake_info(self, manager: str) -> StakeInfo:
        self._require_initialized()
        return await self.gateway.get_stake_info(manager)

    async def verify_forwarder(self, suffix_data: str, request: RelayRequest, signature: str) -> None:
        self._require_initialized()
        await self.gateway.verify_forwarder(suffix_data, request, signature)

    # Encoding and broadcast

    def encode_relay_call_abi(self, request: RelayRequest, signature: str) -> str:
        return self.gateway.encode_relay_call(request, signature)

    def encode_deploy_call_abi(self, request: DeployRequest, signature: str) -> str:
        return self.gateway.encode_deploy_call(request, signature)

    async def broadcast_transaction(self, signed_transaction: str) -> str:
        self._require_initialized()
        return await self.gateway.broadcast_transaction(signed_transaction)
