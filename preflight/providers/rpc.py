"""
JSON-RPC provider for EVM-compatible nodes.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from .base import Provider
from ..config import settings
from ..errors import SimulatedCallError, TransportError


logger = logging.getLogger(__name__)

# Node error code for a reverted call (geth, RSKj)
EXECUTION_REVERTED_CODE = 3

# Messages nodes use when the simulated call itself failed
EXECUTION_FAILURE_MARKERS = (
    "revert",
    "out of gas",
    "gas required exceeds",
    "invalid opcode",
)


def is_execution_failure(code: Any, message: str, data: Any = None) -> bool:
    """True if a JSON-RPC error reports a failed execution, not a node problem."""
    if code == EXECUTION_REVERTED_CODE:
        return True
    lowered = message.lower()
    if any(marker in lowered for marker in EXECUTION_FAILURE_MARKERS):
        return True
    # Revert payload (e.g. Error(string) selector) without a recognizable message
    return isinstance(data, str) and data.startswith("0x") and len(data) >= 10


class JsonRpcProvider(Provider):
    """
    Thin async JSON-RPC client.

    Transport problems (connection errors, timeouts, non-2xx responses,
    bodies that are not JSON-RPC) raise TransportError. An ``error`` object
    returned by the node raises SimulatedCallError with the node's message
    kept verbatim.
    """

    name = "rpc"

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        *,
        timeout_s: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.rpc_url = rpc_url or settings.rpc_url
        self.timeout_s = timeout_s or settings.request_timeout_seconds
        self._client = client
        self._ids = itertools.count(1)

    async def ready(self) -> bool:
        return bool(self.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": "RPC URL not configured"}

        try:
            result = await self.call("eth_chainId", [])
            return {"status": "healthy", "chainId": int(result, 16)}
        except Exception as exc:
            return {"status": "error", "reason": str(exc)}

    async def call(self, method: str, params: List[Any]) -> Any:
        if not self._client or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)

        request_id = next(self._ids)
        try:
            response = await self._client.post(
                self.rpc_url,
                json={"jsonrpc": "2.0", "id": request_id, "method": method, "params": params},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            logger.warning("RPC %s failed: %s", method, exc)
            raise TransportError(f"RPC {method} failed: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"Malformed RPC response for {method}") from exc

        if not isinstance(payload, dict):
            raise TransportError(f"Malformed RPC response for {method}")

        if payload.get("error") is not None:
            raise self._classify_error(method, payload["error"])

        if "result" not in payload:
            raise TransportError(f"Malformed RPC response for {method}: missing result")

        return payload["result"]

    @staticmethod
    def _classify_error(method: str, error: Any) -> Exception:
        """
        Map a JSON-RPC ``error`` object to SimulatedCallError when the node
        executed the call and it failed, TransportError otherwise (rate
        limits, unknown methods, bad params, internal node errors).
        """
        if not isinstance(error, dict):
            return TransportError(f"RPC {method} failed: {error!r}")

        code = error.get("code")
        message = str(error.get("message", ""))
        data = error.get("data")

        if is_execution_failure(code, message, data):
            logger.debug("RPC %s execution failed: %s", method, error)
            return SimulatedCallError(message, code=code, data=data)

        logger.warning("RPC %s returned node error %s: %s", method, code, message)
        return TransportError(f"RPC {method} failed: {message} (code {code})")

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
