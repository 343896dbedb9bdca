"""
Shared fixtures: relay requests and a mocked contract gateway.
"""

from unittest.mock import AsyncMock

import pytest

from preflight.core.feasibility.models import (
    DeployExecutionResult,
    DeployForwardRequest,
    DeployRequest,
    DeployTransactionRequest,
    ForwardRequest,
    RelayData,
    RelayExecutionResult,
    RelayRequest,
    RequestMetadata,
)
from preflight.gateway.contract_gateway import ContractGateway


WORKER = "0x1111111111111111111111111111111111111111"
HUB = "0x2222222222222222222222222222222222222222"
SMART_WALLET = "0x3333333333333333333333333333333333333333"
OWNER = "0x4444444444444444444444444444444444444444"
DESTINATION = "0x5555555555555555555555555555555555555555"
VERIFIER = "0x6666666666666666666666666666666666666666"
SIGNATURE = "0x" + "ab" * 65
GAS_PRICE = 60_000_000


def _relay_request(gas_price: int = GAS_PRICE, relay_worker: str = WORKER) -> RelayRequest:
    return RelayRequest(
        request=ForwardRequest(
            relay_hub=HUB,
            from_address=OWNER,
            to=DESTINATION,
            data="0xa9059cbb",
            gas=50_000,
            nonce=3,
        ),
        relay_data=RelayData(
            gas_price=gas_price,
            relay_worker=relay_worker,
            call_forwarder=SMART_WALLET,
            call_verifier=VERIFIER,
        ),
    )


def _deploy_transaction_request(
    gas_price: int = GAS_PRICE,
    relay_hub_address: str = HUB,
) -> DeployTransactionRequest:
    return DeployTransactionRequest(
        relay_request=DeployRequest(
            request=DeployForwardRequest(
                relay_hub=HUB,
                from_address=OWNER,
                nonce=0,
                index=1,
            ),
            relay_data=RelayData(
                gas_price=gas_price,
                relay_worker=WORKER,
                call_forwarder=SMART_WALLET,
                call_verifier=VERIFIER,
            ),
        ),
        metadata=RequestMetadata(relay_hub_address=relay_hub_address, signature=SIGNATURE),
    )


@pytest.fixture
def make_relay_request():
    return _relay_request


@pytest.fixture
def make_deploy_request():
    return _deploy_transaction_request


@pytest.fixture
def relay_request() -> RelayRequest:
    return _relay_request()


@pytest.fixture
def deploy_request() -> DeployTransactionRequest:
    return _deploy_transaction_request()


@pytest.fixture
def gateway():
    """Gateway whose worker can afford the call and whose simulations pass."""
    gw = AsyncMock(spec=ContractGateway)
    gw.remote_hub_version.return_value = "2.0.1"
    gw.current_balance.return_value = 10**18
    gw.simulate_call.return_value = 100_000
    gw.simulate_verifier_acceptance.return_value = None
    gw.simulate_relay_execution.return_value = RelayExecutionResult(destination_call_success=True)
    gw.simulate_deploy_execution.return_value = DeployExecutionResult(transaction_id="0xdeadbeef")
    gw.encode_relay_call.return_value = "0x0cf3c9c5"
    gw.encode_deploy_call.return_value = "0x6e4ad2ba"
    return gw
