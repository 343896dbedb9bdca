"""
Gas estimation with corrections for known node estimator bias.
"""

from __future__ import annotations

import logging
from decimal import ROUND_CEILING, Decimal
from typing import TYPE_CHECKING, Optional, Union

from ...config import Settings, settings as default_settings
from .models import EstimateGasParams

if TYPE_CHECKING:
    from ...gateway.contract_gateway import ContractGateway


logger = logging.getLogger(__name__)


class GasEstimator:
    """
    Estimates gas for a prospective call through the gateway.

    Two corrections are available:
    - internal: the node prices a call as if it were the outermost
      transaction, but relayed destination calls run internally, so a fixed
      overhead is removed (only when the estimate exceeds it).
    - correction factor: multiplies the estimate to offset systematic
      underestimation, rounding up to a whole gas unit.
    """

    def __init__(
        self,
        gateway: "ContractGateway",
        correction_factor: Optional[Union[Decimal, int, str]] = None,
        internal_correction: Optional[int] = None,
        config: Optional[Settings] = None,
    ):
        config = config or default_settings
        factor = Decimal(
            str(correction_factor)
            if correction_factor is not None
            else config.estimated_gas_correction_factor
        )
        if factor < 1:
            raise ValueError(f"Gas correction factor must be >= 1, got {factor}")
        internal = (
            internal_correction
            if internal_correction is not None
            else config.internal_transaction_estimate_correction
        )
        if internal < 0:
            raise ValueError(f"Internal transaction correction must be >= 0, got {internal}")

        self.gateway = gateway
        self.correction_factor = factor
        self.internal_correction = internal

    def apply_correction_factor(self, gas: int) -> int:
        """Multiply ``gas`` by the correction factor, rounding up."""
        if self.correction_factor == 1:
            return gas
        corrected = (Decimal(gas) * self.correction_factor).to_integral_value(rounding=ROUND_CEILING)
        return int(corrected)

    def apply_internal_correction(self, gas: int) -> int:
        if gas > self.internal_correction:
            return gas - self.internal_correction
        return gas

    async def estimate(
        self,
        call: EstimateGasParams,
        *,
        internal: bool = False,
        apply_correction: bool = True,
    ) -> int:
        """
        Estimate gas for ``call``.

        Args:
            call: The call to estimate
            internal: The call will run inside another call (removes the
                internal transaction overhead)
            apply_correction: Apply the correction factor

        Returns:
            Estimated gas; 0 when the call's gas price is 0, in which case the
            gateway is not queried.
        """
        if call.gas_price == 0:
            return 0

        estimated = await self.gateway.simulate_call(call)
        if internal:
            estimated = self.apply_internal_correction(estimated)
        if apply_correction:
            estimated = self.apply_correction_factor(estimated)

        logger.debug("Estimated %s gas for call to %s", estimated, call.to)
        return estimated
