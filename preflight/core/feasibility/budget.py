"""
Relay worker gas budget checks.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...gateway.contract_gateway import ContractGateway


logger = logging.getLogger(__name__)


class BalanceBudgetCalculator:
    """Converts a worker balance into gas units affordable at a gas price."""

    def __init__(self, gateway: "ContractGateway"):
        self.gateway = gateway

    async def affordable_units(self, worker_address: str, gas_price: int) -> int:
        if gas_price <= 0:
            return 0
        balance = await self.gateway.current_balance(worker_address)
        return balance // gas_price

    async def max_affordable_gas(
        self,
        worker_address: str,
        gas_price: int,
        estimated_gas: int,
    ) -> int:
        """
        Return ``estimated_gas`` if the worker can pay for it at ``gas_price``,
        otherwise 0 (the worker cannot fund the call).
        """
        if gas_price <= 0:
            return 0

        affordable = await self.affordable_units(worker_address, gas_price)
        if affordable >= estimated_gas:
            return estimated_gas

        logger.info(
            "Relay worker %s can afford %s gas units, %s required",
            worker_address,
            affordable,
            estimated_gas,
        )
        return 0
