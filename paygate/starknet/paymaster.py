"""
Minimal SNIP-29 paymaster JSON-RPC client.

The paymaster builds the outside-execution typed data the payer signs; the
facilitator later submits it for sponsored execution during settlement.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-paymaster-api-key"
DEFAULT_TIMEOUT_SECONDS = 30


class PaymasterError(RuntimeError):
    """Paymaster request failed or returned a JSON-RPC error."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data


class PaymasterClient:
    """Client for a Starknet paymaster endpoint (e.g. AVNU)."""

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the paymaster client.

        Args:
            endpoint: Paymaster JSON-RPC URL
            api_key: Optional API key sent in the x-paymaster-api-key header
            timeout: Request timeout in seconds
            session: Optional requests session (connection reuse, testing)
        """
        if not endpoint:
            raise ValueError("Paymaster endpoint is required.")
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self._request_id = 0

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers[API_KEY_HEADER] = self.api_key
        return headers

    def call(self, method: str, params: Any = None) -> Any:
        """Send a JSON-RPC request and return its result.

        Raises:
            PaymasterError: On transport errors, non-200 responses or RPC errors
        """
        self._request_id += 1
        body = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params if params is not None else {},
        }
        logger.debug(f"[paymaster] {method} -> {self.endpoint}")

        try:
            response = self.session.post(
                self.endpoint,
                json=body,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise PaymasterError(f"Paymaster request failed: {e}") from e

        if response.status_code != 200:
            raise PaymasterError(f"Paymaster HTTP {response.status_code}: {response.text[:500]}")

        try:
            payload = response.json()
        except ValueError as e:
            raise PaymasterError(f"Paymaster returned invalid JSON: {e}") from e

        error = payload.get("error")
        if error:
            raise PaymasterError(
                error.get("message", "Unknown paymaster error"),
                code=error.get("code"),
                data=error.get("data"),
            )
        if "result" not in payload:
            raise PaymasterError("Paymaster response has no result")
        return payload["result"]

    def is_available(self) -> bool:
        try:
            return bool(self.call("paymaster_isAvailable"))
        except PaymasterError as e:
            logger.warning(f"[paymaster] {self.endpoint} unavailable: {e}")
            return False

    def build_transaction(
        self,
        user_address: str,
        calls: List[Dict[str, Any]],
        fee_mode: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Build a sponsored invoke and return the typed data to sign.

        Args:
            user_address: Account that will sign the outside execution
            calls: Calls as {"to", "selector", "calldata"} with hex strings
            fee_mode: Fee mode, sponsored by default

        Returns:
            The SNIP-12 typed data dict
        """
        result = self.call(
            "paymaster_buildTransaction",
            {
                "transaction": {
                    "type": "invoke",
                    "invoke": {"user_address": user_address, "calls": calls},
                },
                "parameters": {
                    "version": "0x1",
                    "fee_mode": fee_mode or {"mode": "sponsored"},
                },
            },
        )
        typed_data = result.get("typed_data") if isinstance(result, dict) else None
        if not isinstance(typed_data, dict):
            raise PaymasterError("Paymaster buildTransaction response is missing typed_data")
        return typed_data
