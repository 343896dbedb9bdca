"""
Tests for the relay worker gas budget.
"""

import pytest

from preflight.core.feasibility.budget import BalanceBudgetCalculator


WORKER = "0x1111111111111111111111111111111111111111"


@pytest.mark.asyncio
async def test_affordable_returns_estimate(gateway):
    gateway.current_balance.return_value = 10**18
    budget = BalanceBudgetCalculator(gateway)

    assert await budget.max_affordable_gas(WORKER, 60_000_000, 100_000) == 100_000
    gateway.current_balance.assert_awaited_once_with(WORKER)


@pytest.mark.asyncio
async def test_unaffordable_returns_zero(gateway):
    gateway.current_balance.return_value = 99_999 * 10
    budget = BalanceBudgetCalculator(gateway)

    assert await budget.max_affordable_gas(WORKER, 10, 100_000) == 0


@pytest.mark.asyncio
async def test_exact_balance_is_affordable(gateway):
    gateway.current_balance.return_value = 100_000 * 10
    budget = BalanceBudgetCalculator(gateway)

    assert await budget.max_affordable_gas(WORKER, 10, 100_000) == 100_000


@pytest.mark.asyncio
async def test_balance_uses_integer_division(gateway):
    # 1_000_009 // 10 == 100_000
    gateway.current_balance.return_value = 1_000_009
    budget = BalanceBudgetCalculator(gateway)

    assert await budget.affordable_units(WORKER, 10) == 100_000
    assert await budget.max_affordable_gas(WORKER, 10, 100_001) == 0


@pytest.mark.asyncio
async def test_zero_balance(gateway):
    gateway.current_balance.return_value = 0
    budget = BalanceBudgetCalculator(gateway)

    assert await budget.max_affordable_gas(WORKER, 1, 21_000) == 0


@pytest.mark.asyncio
async def test_zero_gas_price_cannot_proceed(gateway):
    budget = BalanceBudgetCalculator(gateway)

    assert await budget.max_affordable_gas(WORKER, 0, 21_000) == 0
    gateway.current_balance.assert_not_called()
