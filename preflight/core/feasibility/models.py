"""
Relay request and feasibility verdict models.

Amounts (gas, wei) are plain ints; request types accept the camelCase JSON
shape used by relay clients through ``from_dict``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


def parse_quantity(value: Union[int, str, None]) -> int:
    """Parse an integer given as int, decimal string or 0x-prefixed hex."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity: {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


@dataclass(frozen=True)
class ForwardRequest:
    """The user-signed call a smart wallet forwards to its destination."""
    relay_hub: str
    from_address: str
    to: str
    data: str = "0x"
    gas: int = 0
    nonce: int = 0
    token_contract: str = "0x0000000000000000000000000000000000000000"
    value: int = 0
    token_amount: int = 0
    token_gas: int = 0
    valid_until_time: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ForwardRequest":
        return cls(
            relay_hub=data["relayHub"],
            from_address=data["from"],
            to=data["to"],
            data=data.get("data") or "0x",
            gas=parse_quantity(data.get("gas")),
            nonce=parse_quantity(data.get("nonce")),
            token_contract=data.get("tokenContract") or cls.token_contract,
            value=parse_quantity(data.get("value")),
            token_amount=parse_quantity(data.get("tokenAmount")),
            token_gas=parse_quantity(data.get("tokenGas")),
            valid_until_time=parse_quantity(data.get("validUntilTime")),
        )


@dataclass(frozen=True)
class DeployForwardRequest:
    """The user-signed request to deploy a smart wallet through the factory."""
    relay_hub: str
    from_address: str
    to: str = "0x0000000000000000000000000000000000000000"
    data: str = "0x"
    nonce: int = 0
    index: int = 0
    recoverer: str = "0x0000000000000000000000000000000000000000"
    token_contract: str = "0x0000000000000000000000000000000000000000"
    value: int = 0
    token_amount: int = 0
    token_gas: int = 0
    valid_until_time: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeployForwardRequest":
        return cls(
            relay_hub=data["relayHub"],
            from_address=data["from"],
            to=data.get("to") or cls.to,
            data=data.get("data") or "0x",
            nonce=parse_quantity(data.get("nonce")),
            index=parse_quantity(data.get("index")),
            recoverer=data.get("recoverer") or cls.recoverer,
            token_contract=data.get("tokenContract") or cls.token_contract,
            value=parse_quantity(data.get("value")),
            token_amount=parse_quantity(data.get("tokenAmount")),
            token_gas=parse_quantity(data.get("tokenGas")),
            valid_until_time=parse_quantity(data.get("validUntilTime")),
        )


@dataclass(frozen=True)
class RelayData:
    """Relay-side data: who pays gas, at what price, through which forwarder."""
    gas_price: int
    relay_worker: str
    call_forwarder: str
    call_verifier: str = "0x0000000000000000000000000000000000000000"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RelayData":
        return cls(
            gas_price=parse_quantity(data.get("gasPrice")),
            relay_worker=data["relayWorker"],
            call_forwarder=data["callForwarder"],
            call_verifier=data.get("callVerifier") or cls.call_verifier,
        )


@dataclass(frozen=True)
class RelayRequest:
    """A relay call for an already deployed smart wallet."""
    request: ForwardRequest
    relay_data: RelayData

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RelayRequest":
        return cls(
            request=ForwardRequest.from_dict(data["request"]),
            relay_data=RelayData.from_dict(data["relayData"]),
        )


@dataclass(frozen=True)
class DeployRequest:
    """A relay call that deploys a smart wallet."""
    request: DeployForwardRequest
    relay_data: RelayData

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeployRequest":
        return cls(
            request=DeployForwardRequest.from_dict(data["request"]),
            relay_data=RelayData.from_dict(data["relayData"]),
        )


@dataclass(frozen=True)
class RequestMetadata:
    relay_hub_address: Optional[str]
    signature: str
    relay_max_nonce: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RequestMetadata":
        return cls(
            relay_hub_address=data.get("relayHubAddress"),
            signature=data["signature"],
            relay_max_nonce=parse_quantity(data.get("relayMaxNonce")),
        )


@dataclass(frozen=True)
class RelayTransactionRequest:
    relay_request: RelayRequest
    metadata: RequestMetadata

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RelayTransactionRequest":
        return cls(
            relay_request=RelayRequest.from_dict(data["relayRequest"]),
            metadata=RequestMetadata.from_dict(data["metadata"]),
        )


@dataclass(frozen=True)
class DeployTransactionRequest:
    relay_request: DeployRequest
    metadata: RequestMetadata

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeployTransactionRequest":
        return cls(
            relay_request=DeployRequest.from_dict(data["relayRequest"]),
            metadata=RequestMetadata.from_dict(data["metadata"]),
        )


@dataclass(frozen=True)
class EstimateGasParams:
    """Parameters of a call to estimate with the node."""
    from_address: str
    to: str
    data: str
    gas_price: int = 0

    def to_rpc_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_address,
            "to": self.to,
            "data": self.data,
            "gasPrice": hex(self.gas_price),
        }


@dataclass(frozen=True)
class RelayExecutionResult:
    destination_call_success: bool


@dataclass(frozen=True)
class DeployExecutionResult:
    transaction_id: str


@dataclass(frozen=True)
class RelayManagerData:
    manager: str
    currently_staked: bool
    registered: bool
    url: str


@dataclass(frozen=True)
class StakeInfo:
    stake: int
    unstake_delay: int
    withdraw_block: int
    owner: str


class FeasibilityStage(str, Enum):
    """State of the feasibility check that produced a verdict."""
    BUDGET_CHECK = "budget_check"
    VERIFIER_SIMULATION = "verifier_simulation"
    EXECUTION_SIMULATION = "execution_simulation"
    ACCEPTED = "accepted"


@dataclass(frozen=True)
class FeasibilityVerdict:
    """Outcome of a relay or deploy feasibility check."""
    verifier_accepted: bool
    reverted: bool
    reverted_in_destination: bool = False
    detail: str = ""
    stage: FeasibilityStage = FeasibilityStage.ACCEPTED
    transaction_id: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return (
            self.stage == FeasibilityStage.ACCEPTED
            and self.verifier_accepted
            and not self.reverted
            and not self.reverted_in_destination
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verifierAccepted": self.verifier_accepted,
            "reverted": self.reverted,
            "revertedInDestination": self.reverted_in_destination,
            "detail": self.detail,
            "stage": self.stage.value,
            "transactionId": self.transaction_id,
        }
