"""
Tests for the ContractInteractor entry point.
"""

from decimal import Decimal

import pytest

from preflight.config import Settings
from preflight.core.feasibility.interactor import ContractInteractor
from preflight.core.feasibility.models import (
    EstimateGasParams,
    RelayManagerData,
    RelayTransactionRequest,
    RequestMetadata,
)
from preflight.errors import (
    InteractorNotInitializedError,
    RelayHubNotDefinedError,
    TransportError,
    UnsupportedRemoteVersionError,
)

from conftest import DESTINATION, HUB, OWNER, SIGNATURE, WORKER


CONFIG = Settings(
    estimated_gas_correction_factor=Decimal("1.0"),
    internal_transaction_estimate_correction=20_000,
)


async def _interactor(gateway, config=CONFIG):
    return await ContractInteractor.initialize(gateway, config=config)


class TestInitialization:
    @pytest.mark.asyncio
    async def test_initialize_accepts_compatible_hub(self, gateway):
        interactor = await _interactor(gateway)

        assert interactor.initialized is True
        assert interactor.hub_version == "2.0.1"
        gateway.remote_hub_version.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_initialize_accepts_underscore_prerelease(self, gateway):
        gateway.remote_hub_version.return_value = "2.0.1_beta.2"

        interactor = await ContractInteractor.initialize(gateway, own_version="2.0.1-beta.1", config=CONFIG)

        assert interactor.hub_version == "2.0.1_beta.2"

    @pytest.mark.asyncio
    async def test_initialize_rejects_next_major(self, gateway):
        gateway.remote_hub_version.return_value = "3.0.0"

        with pytest.raises(UnsupportedRemoteVersionError) as exc_info:
            await _interactor(gateway)

        assert str(exc_info.value) == (
            "Provided Hub version(3.0.0) is not supported by the current interactor(2.0.1)"
        )
        assert exc_info.value.remote_version == "3.0.0"

    @pytest.mark.asyncio
    async def test_transport_error_during_initialize_propagates(self, gateway):
        gateway.remote_hub_version.side_effect = TransportError("connection refused")

        with pytest.raises(TransportError):
            await _interactor(gateway)

    @pytest.mark.asyncio
    async def test_validation_is_idempotent(self, gateway):
        interactor = await _interactor(gateway)

        assert await interactor.validate_remote_version() == "2.0.1"
        gateway.remote_hub_version.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_uninitialized_interactor_refuses_operations(self, gateway, relay_request):
        interactor = ContractInteractor(gateway, config=CONFIG)

        with pytest.raises(InteractorNotInitializedError):
            await interactor.check_relay_feasibility(relay_request, SIGNATURE)
        with pytest.raises(InteractorNotInitializedError):
            await interactor.get_balance(WORKER)

        gateway.current_balance.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_validation_leaves_interactor_uninitialized(self, gateway, relay_request):
        gateway.remote_hub_version.return_value = "1.0.0"
        interactor = ContractInteractor(gateway, config=CONFIG)

        with pytest.raises(UnsupportedRemoteVersionError):
            await interactor.validate_remote_version()

        assert interactor.initialized is False
        with pytest.raises(InteractorNotInitializedError):
            await interactor.check_relay_feasibility(relay_request, SIGNATURE)


class TestFeasibility:
    @pytest.mark.asyncio
    async def test_check_relay_feasibility(self, gateway, relay_request):
        interactor = await _interactor(gateway)

        verdict = await interactor.check_relay_feasibility(relay_request, SIGNATURE)

        assert verdict.accepted is True

    @pytest.mark.asyncio
    async def test_check_deploy_feasibility(self, gateway, deploy_request):
        interactor = await _interactor(gateway)

        verdict = await interactor.check_deploy_feasibility(deploy_request)

        assert verdict.accepted is True
        assert verdict.transaction_id == "0xdeadbeef"

    @pytest.mark.asyncio
    async def test_max_viewable_gas_limits(self, gateway, relay_request, deploy_request):
        interactor = await _interactor(gateway)

        assert await interactor.get_max_viewable_relay_gas_limit(relay_request, SIGNATURE) == 100_000
        assert await interactor.get_max_viewable_deploy_gas_limit(deploy_request) == 100_000

        gateway.current_balance.return_value = 0
        assert await interactor.get_max_viewable_relay_gas_limit(relay_request, SIGNATURE) == 0


class TestGasEstimation:
    @pytest.mark.asyncio
    async def test_estimate_max_possible_gas_applies_factor(self, gateway, relay_request):
        config = Settings(estimated_gas_correction_factor=Decimal("1.2"))
        interactor = await _interactor(gateway, config)

        assert await interactor.estimate_max_possible_gas(relay_request, SIGNATURE) == 120_000

    @pytest.mark.asyncio
    async def test_estimate_with_transaction_request_uses_metadata_hub(self, gateway, relay_request):
        other_hub = "0x7777777777777777777777777777777777777777"
        interactor = await _interactor(gateway)
        transaction_request = RelayTransactionRequest(
            relay_request=relay_request,
            metadata=RequestMetadata(relay_hub_address=other_hub, signature=SIGNATURE),
        )

        assert await interactor.estimate_max_possible_gas_with_transaction_request(transaction_request) == 100_000
        call = gateway.simulate_call.await_args.args[0]
        assert call.to == other_hub
        assert call.from_address == WORKER

    @pytest.mark.asyncio
    async def test_estimate_with_transaction_request_requires_hub(self, gateway, relay_request):
        interactor = await _interactor(gateway)
        transaction_request = RelayTransactionRequest(
            relay_request=relay_request,
            metadata=RequestMetadata(relay_hub_address=None, signature=SIGNATURE),
        )

        with pytest.raises(RelayHubNotDefinedError, match="estimateMaxPossibleGas"):
            await interactor.estimate_max_possible_gas_with_transaction_request(transaction_request)
        gateway.simulate_call.assert_not_called()

    @pytest.mark.asyncio
    async def test_estimate_deploy_call_gas(self, gateway, deploy_request):
        interactor = await _interactor(gateway)

        assert await interactor.estimate_deploy_call_gas(deploy_request) == 100_000
        assert gateway.simulate_call.await_args.args[0].to == HUB

    @pytest.mark.asyncio
    async def test_destination_call_gas_removes_internal_overhead(self, gateway):
        gateway.simulate_call.return_value = 65_000
        interactor = await _interactor(gateway, Settings(estimated_gas_correction_factor=Decimal("1.1")))
        params = EstimateGasParams(from_address=OWNER, to=DESTINATION, data="0xa9059cbb", gas_price=1)

        assert await interactor.estimate_destination_contract_call_gas(params) == 49_500
        assert await interactor.estimate_destination_contract_call_gas(params, add_cushion=False) == 45_000

    @pytest.mark.asyncio
    async def test_destination_call_gas_small_estimate_untouched(self, gateway):
        gateway.simulate_call.return_value = 19_000
        interactor = await _interactor(gateway)
        params = EstimateGasParams(from_address=OWNER, to=DESTINATION, data="0x", gas_price=1)

        assert await interactor.estimate_destination_contract_call_gas(params) == 19_000

    @pytest.mark.asyncio
    async def test_wallet_factory_estimate(self, gateway, deploy_request):
        gateway.estimate_wallet_creation_gas.return_value = 180_000
        interactor = await _interactor(gateway)
        factory = "0x8888888888888888888888888888888888888888"

        gas = await interactor.wallet_factory_estimate_gas_for_internal_call(
            deploy_request.relay_request, factory, "0x", SIGNATURE, test_call=True
        )

        assert gas == 180_000
        gateway.estimate_wallet_creation_gas.assert_awaited_once_with(
            deploy_request.relay_request, factory, "0x", SIGNATURE, test_call=True
        )


class TestChainReads:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("code,expected", [("0x", False), ("0x00", False), ("0x6080604052", True)])
    async def test_is_contract_deployed(self, gateway, code, expected):
        gateway.get_code.return_value = code
        interactor = await _interactor(gateway)

        assert await interactor.is_contract_deployed(DESTINATION) is expected

    @pytest.mark.asyncio
    async def test_active_relay_info_filters_unstaked_and_unregistered(self, gateway):
        infos = {
            "0xa1": RelayManagerData("0xa1", currently_staked=True, registered=True, url="https://a"),
            "0xa2": RelayManagerData("0xa2", currently_staked=False, registered=True, url="https://b"),
            "0xa3": RelayManagerData("0xa3", currently_staked=True, registered=False, url="https://c"),
        }
        gateway.get_relay_info.side_effect = lambda manager: infos[manager]
        interactor = await _interactor(gateway)

        everything = await interactor.get_relay_info(["0xa1", "0xa2", "0xa3"])
        active = await interactor.get_active_relay_info(["0xa1", "0xa2", "0xa3"])

        assert [info.manager for info in everything] == ["0xa1", "0xa2", "0xa3"]
        assert [info.manager for info in active] == ["0xa1"]

    @pytest.mark.asyncio
    async def test_reads_delegate_to_gateway(self, gateway):
        gateway.get_nonce.return_value = 7
        gateway.get_factory_nonce.return_value = 2
        gateway.get_latest_block_gas_limit.return_value = 6_800_000
        gateway.get_block_number.return_value = 1234
        gateway.get_transaction_count.return_value = 9
        interactor = await _interactor(gateway)

        assert await interactor.get_sender_nonce(DESTINATION) == 7
        assert await interactor.get_factory_nonce(HUB, OWNER) == 2
        assert await interactor.get_block_gas_limit() == 6_800_000
        assert await interactor.get_balance(WORKER) == 10**18
        assert await interactor.get_block_number() == 1234
        assert await interactor.get_transaction_count(WORKER, 1200) == 9

        gateway.get_factory_nonce.assert_awaited_once_with(HUB, OWNER)
        gateway.current_balance.assert_awaited_once_with(WORKER, "latest")
        gateway.get_transaction_count.assert_awaited_once_with(WORKER, 1200)

    @pytest.mark.asyncio
    async def test_broadcast_transaction(self, gateway):
        gateway.broadcast_transaction.return_value = "0x" + "cd" * 32
        interactor = await _interactor(gateway)

        assert await interactor.broadcast_transaction("0xf86b") == "0x" + "cd" * 32


def test_encoding_does_not_require_initialization(gateway, relay_request, deploy_request):
    interactor = ContractInteractor(gateway, config=CONFIG)

    assert interactor.encode_relay_call_abi(relay_request, SIGNATURE) == "0x0cf3c9c5"
    assert interactor.encode_deploy_call_abi(deploy_request.relay_request, SIGNATURE) == "0x6e4ad2ba"
