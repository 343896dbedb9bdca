"""
Feasibility simulation for relay and deploy calls.

A check runs four strictly sequential states:

    BUDGET_CHECK -> VERIFIER_SIMULATION -> EXECUTION_SIMULATION -> ACCEPTED

Every failed state is terminal and produces a FeasibilityVerdict. Only
simulated call failures are turned into verdicts; transport errors
propagate. Nothing is broadcast: every step is an estimate or a view call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ...errors import RelayHubNotDefinedError, SimulatedCallError
from ...config import ZERO_ADDRESS
from ...logging_config import get_verdict_logger
from .budget import BalanceBudgetCalculator
from .gas_estimator import GasEstimator
from .models import (
    DeployTransactionRequest,
    EstimateGasParams,
    FeasibilityStage,
    FeasibilityVerdict,
    RelayRequest,
)

if TYPE_CHECKING:
    from ...gateway.contract_gateway import ContractGateway


@dataclass(frozen=True)
class ExecutionOutcome:
    """What a successful execution simulation reports."""
    reverted_in_destination: bool = False
    transaction_id: Optional[str] = None


def require_relay_hub(relay_hub_address: Optional[str], operation: str) -> str:
    if not relay_hub_address or relay_hub_address.lower() == ZERO_ADDRESS:
        raise RelayHubNotDefinedError(operation)
    return relay_hub_address


class FeasibilityPath(ABC):
    """
    Capabilities the simulator needs from one kind of relayed call.

    Subclasses estimate the call's maximum gas and dry-run its verifier and
    its execution; the budget check is shared.
    """

    method: str

    def __init__(
        self,
        gateway: "ContractGateway",
        estimator: GasEstimator,
        budget: BalanceBudgetCalculator,
    ):
        self.gateway = gateway
        self.estimator = estimator
        self.budget = budget

    @property
    @abstractmethod
    def relay_worker(self) -> str:
        pass

    @property
    @abstractmethod
    def gas_price(self) -> int:
        pass

    @abstractmethod
    async def estimate_max_gas(self) -> int:
        pass

    @abstractmethod
    async def simulate_verifier(self) -> None:
        pass

    @abstractmethod
    async def simulate_execution(self, gas_limit: int) -> ExecutionOutcome:
        pass

    async def compute_max_gas(self) -> int:
        """Maximum viewable gas limit; 0 means the worker cannot fund the call."""
        if self.gas_price == 0:
            return 0
        max_estimated_gas = await self.estimate_max_gas()
        return await self.budget.max_affordable_gas(
            self.relay_worker,
            self.gas_price,
            max_estimated_gas,
        )


class RelayCallPath(FeasibilityPath):
    method = "relayCall"

    def __init__(
        self,
        gateway: "ContractGateway",
        estimator: GasEstimator,
        budget: BalanceBudgetCalculator,
        request: RelayRequest,
        signature: str,
    ):
        super().__init__(gateway, estimator, budget)
        self.request = request
        self.signature = signature

    @property
    def relay_worker(self) -> str:
        return self.request.relay_data.relay_worker

    @property
    def gas_price(self) -> int:
        return self.request.relay_data.gas_price

    async def estimate_max_gas(self) -> int:
        return await self.estimator.estimate(
            EstimateGasParams(
                from_address=self.relay_worker,
                to=self.request.request.relay_hub,
                data=self.gateway.encode_relay_call(self.request, self.signature),
                gas_price=self.gas_price,
            )
        )

    async def simulate_verifier(self) -> None:
        await self.gateway.simulate_verifier_acceptance(self.request, self.signature)

    async def simulate_execution(self, gas_limit: int) -> ExecutionOutcome:
        result = await self.gateway.simulate_relay_execution(
            self.request,
            self.signature,
            gas_price=self.gas_price,
            gas_limit=gas_limit,
        )
        return ExecutionOutcome(reverted_in_destination=not result.destination_call_success)


class DeployCallPath(FeasibilityPath):
    method = "deployCall"

    def __init__(
        self,
        gateway: "ContractGateway",
        estimator: GasEstimator,
        budget: BalanceBudgetCalculator,
        transaction_request: DeployTransactionRequest,
    ):
        super().__init__(gateway, estimator, budget)
        self.transaction_request = transaction_request

    @property
    def request(self):
        return self.transaction_request.relay_request

    @property
    def signature(self) -> str:
        return self.transaction_request.metadata.signature

    @property
    def relay_worker(self) -> str:
        return self.request.relay_data.relay_worker

    @property
    def gas_price(self) -> int:
        return self.request.relay_data.gas_price

    async def estimate_max_gas(self) -> int:
        relay_hub = require_relay_hub(
            self.transaction_request.metadata.relay_hub_address,
            "estimateDeployCallGas",
        )
        return await self.estimator.estimate(
            EstimateGasParams(
                from_address=self.relay_worker,
                to=relay_hub,
                data=self.gateway.encode_deploy_call(self.request, self.signature),
                gas_price=self.gas_price,
            )
        )

    async def simulate_verifier(self) -> None:
        await self.gateway.simulate_verifier_acceptance(self.request, self.signature)

    async def simulate_execution(self, gas_limit: int) -> ExecutionOutcome:
        result = await self.gateway.simulate_deploy_execution(
            self.request,
            self.signature,
            gas_price=self.gas_price,
            gas_limit=gas_limit,
        )
        return ExecutionOutcome(transaction_id=result.transaction_id)


class CallFeasibilitySimulator:
    """Runs the feasibility state machine for relay and deploy calls."""

    def __init__(
        self,
        gateway: "ContractGateway",
        estimator: Optional[GasEstimator] = None,
        budget: Optional[BalanceBudgetCalculator] = None,
    ):
        self.gateway = gateway
        self.estimator = estimator or GasEstimator(gateway)
        self.budget = budget or BalanceBudgetCalculator(gateway)

    def relay_path(self, request: RelayRequest, signature: str) -> RelayCallPath:
        return RelayCallPath(self.gateway, self.estimator, self.budget, request, signature)

    def deploy_path(self, transaction_request: DeployTransactionRequest) -> DeployCallPath:
        return DeployCallPath(self.gateway, self.estimator, self.budget, transaction_request)

    async def simulate_relay_call(self, request: RelayRequest, signature: str) -> FeasibilityVerdict:
        return await self.run(self.relay_path(request, signature))

    async def simulate_deploy_call(self, transaction_request: DeployTransactionRequest) -> FeasibilityVerdict:
        return await self.run(self.deploy_path(transaction_request))

    async def run(self, path: FeasibilityPath) -> FeasibilityVerdict:
        log = get_verdict_logger(method=path.method, relay_worker=path.relay_worker, gas_price=path.gas_price)

        try:
            gas_limit = await path.compute_max_gas()
        except SimulatedCallError as exc:
            verdict = FeasibilityVerdict(
                verifier_accepted=False,
                reverted=True,
                detail=f"view call to '{path.method}' reverted during gas estimation: {exc.message}",
                stage=FeasibilityStage.BUDGET_CHECK,
            )
            log.info("feasibility_verdict", **verdict.to_dict())
            return verdict

        if gas_limit == 0:
            verdict = FeasibilityVerdict(
                verifier_accepted=False,
                reverted=False,
                detail=(
                    f"insufficient worker balance: relayWorker {path.relay_worker} does not have "
                    "enough balance to cover the maximum possible gas for this transaction"
                ),
                stage=FeasibilityStage.BUDGET_CHECK,
            )
            log.info("feasibility_verdict", **verdict.to_dict())
            return verdict

        try:
            await path.simulate_verifier()
        except SimulatedCallError as exc:
            verdict = FeasibilityVerdict(
                verifier_accepted=False,
                reverted=False,
                detail=f"view call to '{path.method}' reverted in verifier: {exc.message}",
                stage=FeasibilityStage.VERIFIER_SIMULATION,
            )
            log.info("feasibility_verdict", gas_limit=gas_limit, **verdict.to_dict())
            return verdict

        try:
            outcome = await path.simulate_execution(gas_limit)
        except SimulatedCallError as exc:
            verdict = FeasibilityVerdict(
                verifier_accepted=True,
                reverted=True,
                detail=f"view call to '{path.method}' reverted in client: {exc.message}",
                stage=FeasibilityStage.EXECUTION_SIMULATION,
            )
            log.info("feasibility_verdict", gas_limit=gas_limit, **verdict.to_dict())
            return verdict

        verdict = FeasibilityVerdict(
            verifier_accepted=True,
            reverted=False,
            reverted_in_destination=outcome.reverted_in_destination,
            detail="",
            stage=FeasibilityStage.ACCEPTED,
            transaction_id=outcome.transaction_id,
        )
        log.info("feasibility_verdict", gas_limit=gas_limit, **verdict.to_dict())
        return verdict
