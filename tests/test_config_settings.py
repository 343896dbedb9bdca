from decimal import Decimal

import pytest
from pydantic import ValidationError

from preflight.config import ZERO_ADDRESS, Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("RPC_URL", raising=False)
    monkeypatch.delenv("NODE_RPC_URL", raising=False)
    monkeypatch.delenv("ESTIMATED_GAS_CORRECTION_FACTOR", raising=False)

    settings = Settings(_env_file=None)

    assert settings.rpc_url == "http://127.0.0.1:4444"
    assert settings.estimated_gas_correction_factor == Decimal("1.0")
    assert settings.internal_transaction_estimate_correction == 20000
    assert settings.relay_hub_address == ZERO_ADDRESS
    assert settings.has_relay_hub is False


def test_gas_settings_from_env(monkeypatch):
    """Gas corrections are read from the environment."""

    monkeypatch.setenv("ESTIMATED_GAS_CORRECTION_FACTOR", "1.3")
    monkeypatch.setenv("INTERNAL_TRANSACTION_ESTIMATE_CORRECTION", "15000")

    settings = Settings(_env_file=None)

    assert settings.estimated_gas_correction_factor == Decimal("1.3")
    assert settings.internal_transaction_estimate_correction == 15000


def test_rpc_url_legacy_alias(monkeypatch):
    """Node URL should load from the legacy NODE_RPC_URL name when present."""

    monkeypatch.delenv("RPC_URL", raising=False)
    monkeypatch.setenv("NODE_RPC_URL", "http://legacy:4444")

    settings = Settings(_env_file=None)

    assert settings.rpc_url == "http://legacy:4444"


def test_correction_factor_below_one_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, estimated_gas_correction_factor=Decimal("0.5"))


def test_negative_internal_correction_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, internal_transaction_estimate_correction=-1)


def test_settings_are_frozen():
    settings = Settings(_env_file=None)

    with pytest.raises(ValidationError):
        settings.rpc_url = "http://other:4444"


def test_has_relay_hub():
    settings = Settings(_env_file=None, relay_hub_address="0x2222222222222222222222222222222222222222")

    assert settings.has_relay_hub is True
