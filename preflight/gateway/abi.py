"""
Calldata builders for the relay hub, verifiers, forwarders and wallet factory.
"""

from __future__ import annotations

from typing import Any, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, keccak, to_bytes, to_checksum_address

from ..core.feasibility.models import (
    DeployForwardRequest,
    DeployRequest,
    ForwardRequest,
    RelayData,
    RelayManagerData,
    RelayRequest,
    StakeInfo,
)


FORWARD_REQUEST_TYPE = (
    "(address,address,address,address,uint256,uint256,uint256,uint256,uint256,uint256,bytes)"
)
DEPLOY_FORWARD_REQUEST_TYPE = (
    "(address,address,address,address,address,uint256,uint256,uint256,uint256,uint256,uint256,bytes)"
)
RELAY_DATA_TYPE = "(uint256,address,address,address)"
RELAY_REQUEST_TYPE = f"({FORWARD_REQUEST_TYPE},{RELAY_DATA_TYPE})"
DEPLOY_REQUEST_TYPE = f"({DEPLOY_FORWARD_REQUEST_TYPE},{RELAY_DATA_TYPE})"
RELAY_MANAGER_DATA_TYPE = "(address,bool,bool,string)"
STAKE_INFO_TYPE = "(uint256,uint256,uint256,address)"

RELAY_CALL_SIGNATURE = f"relayCall({RELAY_REQUEST_TYPE},bytes)"
DEPLOY_CALL_SIGNATURE = f"deployCall({DEPLOY_REQUEST_TYPE},bytes)"
VERIFY_RELAYED_CALL_SIGNATURE = f"verifyRelayedCall({RELAY_REQUEST_TYPE},bytes)"
VERIFY_DEPLOY_CALL_SIGNATURE = f"verifyRelayedCall({DEPLOY_REQUEST_TYPE},bytes)"
FORWARDER_VERIFY_SIGNATURE = f"verify(bytes32,{FORWARD_REQUEST_TYPE},bytes)"
WALLET_CREATION_SIGNATURE = (
    f"relayedUserSmartWalletCreation({DEPLOY_FORWARD_REQUEST_TYPE},bytes32,bytes)"
)
VERSION_HUB_SIGNATURE = "versionHub()"
NONCE_SIGNATURE = "nonce()"
GET_RELAY_INFO_SIGNATURE = "getRelayInfo(address)"
GET_STAKE_INFO_SIGNATURE = "getStakeInfo(address)"


def _hex_to_bytes(value: str) -> bytes:
    return to_bytes(hexstr=value) if value and value != "0x" else b""


def _bytes32(value: str) -> bytes:
    raw = _hex_to_bytes(value)
    if len(raw) > 32:
        raise ValueError(f"Value does not fit in bytes32: {value}")
    return raw.rjust(32, b"\0")


def _signature_arg_types(signature: str) -> Tuple[str, ...]:
    """Split the top-level argument list of a canonical function signature."""
    inner = signature[signature.index("(") + 1 : -1]
    types, depth, current = [], 0, ""
    for char in inner:
        if char == "," and depth == 0:
            types.append(current)
            current = ""
            continue
        depth += char == "("
        depth -= char == ")"
        current += char
    if current:
        types.append(current)
    return tuple(types)


def encode_function_call(signature: str, args: Sequence[Any] = ()) -> str:
    """Return 0x-prefixed calldata for ``signature`` called with ``args``."""
    selector = function_signature_to_4byte_selector(signature)
    arg_types = _signature_arg_types(signature)
    payload = encode(list(arg_types), list(args)) if arg_types else b""
    return "0x" + (selector + payload).hex()


def forward_request_tuple(request: ForwardRequest) -> tuple:
    return (
        to_checksum_address(request.relay_hub),
        to_checksum_address(request.from_address),
        to_checksum_address(request.to),
        to_checksum_address(request.token_contract),
        request.value,
        request.gas,
        request.nonce,
        request.token_amount,
        request.token_gas,
        request.valid_until_time,
        _hex_to_bytes(request.data),
    )


def deploy_forward_request_tuple(request: DeployForwardRequest) -> tuple:
    return (
        to_checksum_address(request.relay_hub),
        to_checksum_address(request.from_address),
        to_checksum_address(request.to),
        to_checksum_address(request.token_contract),
        to_checksum_address(request.recoverer),
        request.value,
        request.nonce,
        request.token_amount,
        request.token_gas,
        request.valid_until_time,
        request.index,
        _hex_to_bytes(request.data),
    )


def relay_data_tuple(relay_data: RelayData) -> tuple:
    return (
        relay_data.gas_price,
        to_checksum_address(relay_data.relay_worker),
        to_checksum_address(relay_data.call_forwarder),
        to_checksum_address(relay_data.call_verifier),
    )


def relay_request_tuple(request: RelayRequest) -> tuple:
    return (forward_request_tuple(request.request), relay_data_tuple(request.relay_data))


def deploy_request_tuple(request: DeployRequest) -> tuple:
    return (deploy_forward_request_tuple(request.request), relay_data_tuple(request.relay_data))


def encode_relay_call(request: RelayRequest, signature: str) -> str:
    return encode_function_call(
        RELAY_CALL_SIGNATURE,
        [relay_request_tuple(request), _hex_to_bytes(signature)],
    )


def encode_deploy_call(request: DeployRequest, signature: str) -> str:
    return encode_function_call(
        DEPLOY_CALL_SIGNATURE,
        [deploy_request_tuple(request), _hex_to_bytes(signature)],
    )


def encode_verify_relayed_call(request: RelayRequest, signature: str) -> str:
    return encode_function_call(
        VERIFY_RELAYED_CALL_SIGNATURE,
        [relay_request_tuple(request), _hex_to_bytes(signature)],
    )


def encode_verify_deploy_call(request: DeployRequest, signature: str) -> str:
    return encode_function_call(
        VERIFY_DEPLOY_CALL_SIGNATURE,
        [deploy_request_tuple(request), _hex_to_bytes(signature)],
    )


def encode_forwarder_verify(suffix_data: str, request: ForwardRequest, signature: str) -> str:
    return encode_function_call(
        FORWARDER_VERIFY_SIGNATURE,
        [_bytes32(suffix_data), forward_request_tuple(request), _hex_to_bytes(signature)],
    )


def encode_wallet_creation(request: DeployForwardRequest, suffix_data: str, signature: str) -> str:
    return encode_function_call(
        WALLET_CREATION_SIGNATURE,
        [deploy_forward_request_tuple(request), _bytes32(suffix_data), _hex_to_bytes(signature)],
    )


def encode_address_call(signature: str, address: str) -> str:
    return encode_function_call(signature, [to_checksum_address(address)])


def call_id(to: str, data: str) -> str:
    """Deterministic identifier of a call: keccak256(to || calldata)."""
    return "0x" + keccak(_hex_to_bytes(to) + _hex_to_bytes(data)).hex()


def decode_bool(result: str) -> bool:
    return bool(decode(["bool"], _hex_to_bytes(result))[0])


def decode_uint(result: str) -> int:
    return int(decode(["uint256"], _hex_to_bytes(result))[0])


def decode_string(result: str) -> str:
    return decode(["string"], _hex_to_bytes(result))[0]


def decode_relay_manager_data(result: str) -> RelayManagerData:
    manager, currently_staked, registered, url = decode(
        [RELAY_MANAGER_DATA_TYPE], _hex_to_bytes(result)
    )[0]
    return RelayManagerData(
        manager=to_checksum_address(manager),
        currently_staked=currently_staked,
        registered=registered,
        url=url,
    )


def decode_stake_info(result: str) -> StakeInfo:
    stake, unstake_delay, withdraw_block, owner = decode(
        [STAKE_INFO_TYPE], _hex_to_bytes(result)
    )[0]
    return StakeInfo(
        stake=stake,
        unstake_delay=unstake_delay,
        withdraw_block=withdraw_block,
        owner=to_checksum_address(owner),
    )
