"""
Relay Feasibility

Decides whether a relayed call should be attempted at all:
- GasEstimator: corrected gas estimates for prospective calls
- BalanceBudgetCalculator: can the relay worker pay for the estimate?
- CallFeasibilitySimulator: budget check, verifier dry run, execution dry run
- ContractInteractor: caller-facing entry point, gated on the hub version

Usage:
    from preflight.core.feasibility import ContractInteractor
    from preflight.gateway import RpcContractGateway

    interactor = await ContractInteractor.initialize(RpcContractGateway())
    verdict = await interactor.check_relay_feasibility(request, signature)
"""

from .models import (
    DeployExecutionResult,
    DeployForwardRequest,
    DeployRequest,
    DeployTransactionRequest,
    EstimateGasParams,
    FeasibilityStage,
    FeasibilityVerdict,
    ForwardRequest,
    RelayData,
    RelayExecutionResult,
    RelayManagerData,
    RelayRequest,
    RelayTransactionRequest,
    RequestMetadata,
    StakeInfo,
)

from .gas_estimator import GasEstimator

from .budget import BalanceBudgetCalculator

from .simulator import (
    CallFeasibilitySimulator,
    DeployCallPath,
    ExecutionOutcome,
    FeasibilityPath,
    RelayCallPath,
)

from .interactor import ContractInteractor

__all__ = [
    # Models
    "DeployExecutionResult",
    "DeployForwardRequest",
    "DeployRequest",
    "DeployTransactionRequest",
    "EstimateGasParams",
    "FeasibilityStage",
    "FeasibilityVerdict",
    "ForwardRequest",
    "RelayData",
    "RelayExecutionResult",
    "RelayManagerData",
    "RelayRequest",
    "RelayTransactionRequest",
    "RequestMetadata",
    "StakeInfo",
    # Estimation
    "GasEstimator",
    "BalanceBudgetCalculator",
    # Simulation
    "CallFeasibilitySimulator",
    "DeployCallPath",
    "ExecutionOutcome",
    "FeasibilityPath",
    "RelayCallPath",
    # Entry point
    "ContractInteractor",
]
