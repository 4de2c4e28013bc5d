"""
Starknet exact payment payload construction.

The payer's transfer is wrapped in a paymaster-sponsored outside execution:
the paymaster returns SNIP-12 typed data, the account signs it, and the
facilitator submits both during settlement.
"""

import logging
from typing import Any, Dict, List, Optional

from starknet_py.hash.selector import get_selector_from_name

from paygate.starknet.networks import STARKNET_CHAIN_IDS, validate_network
from paygate.starknet.paymaster import PaymasterClient
from paygate.utils import get_field, to_int

logger = logging.getLogger(__name__)

_UINT128_MASK = (1 << 128) - 1


class StarknetPayloadError(ValueError):
    """Starknet payment payload is incomplete or malformed."""


def to_hex(value: int) -> str:
    return hex(value)


def split_uint256(value: int) -> List[str]:
    """Split an integer into the [low, high] felts of a Cairo u256."""
    if value < 0 or value >= 1 << 256:
        raise StarknetPayloadError(f"Amount out of u256 range: {value}")
    return [to_hex(value & _UINT128_MASK), to_hex(value >> 128)]


def build_transfer_call(asset: str, pay_to: str, amount: int) -> Dict[str, Any]:
    """Build an ERC-20 ``transfer(recipient, amount)`` call."""
    recipient = to_int(pay_to)
    token = to_int(asset)
    if recipient is None or token is None:
        raise StarknetPayloadError("Payment requirements need hex payTo and asset addresses")
    return {
        "to": to_hex(token),
        "selector": to_hex(get_selector_from_name("transfer")),
        "calldata": [to_hex(recipient), *split_uint256(amount)],
    }


def check_typed_data_chain(typed_data: Dict[str, Any], network: str) -> None:
    """Reject typed data built for another chain than ``network``.

    The domain chainId may be hex (``0x534e5f5345504f4c4941``) or the short
    string itself (``SN_SEPOLIA``); typed data without one is accepted.
    """
    domain = typed_data.get("domain")
    chain_id = domain.get("chainId") if isinstance(domain, dict) else None
    if chain_id is None:
        return

    expected = STARKNET_CHAIN_IDS[network]
    short_name = bytes.fromhex(expected[2:]).decode("ascii")
    if chain_id == short_name or to_int(chain_id) == int(expected, 16):
        return
    raise StarknetPayloadError(
        f"Paymaster typed data targets chain {chain_id}, expected {short_name} for {network}"
    )


def _outside_execution_message(typed_data: Dict[str, Any]) -> Dict[str, Any]:
    message = typed_data.get("message")
    return message if isinstance(message, dict) else {}


def create_payment_payload(
    account: Any,
    x402_version: int,
    requirements: Any,
    endpoint: str,
    network: Optional[str] = None,
    api_key: Optional[str] = None,
    paymaster: Optional[PaymasterClient] = None,
) -> Dict[str, Any]:
    """Build and sign a Starknet exact payment payload.

    Args:
        account: starknet_py account (needs ``address`` and ``sign_message``)
        x402_version: Protocol version to stamp on the payload
        requirements: Payment requirements (model or dict)
        endpoint: Paymaster endpoint used to build the typed data
        network: Starknet network id (read from requirements when omitted)
        api_key: Optional paymaster API key
        paymaster: Optional preconfigured paymaster client

    Returns:
        Payment payload dict with ``payload``, ``typedData`` and ``paymasterEndpoint``

    Raises:
        StarknetPayloadError: If requirements are incomplete, or the typed data
            targets another chain
        PaymasterError: If the paymaster cannot build the transaction
    """
    network = validate_network(network or get_field(requirements, "network") or "")
    amount = to_int(get_field(requirements, "amount", "max_amount_required", "maxAmountRequired"))
    asset = get_field(requirements, "asset")
    pay_to = get_field(requirements, "pay_to", "payTo")
    if amount is None or amount <= 0:
        raise StarknetPayloadError("Payment requirements have no positive amount")
    if not asset or not pay_to:
        raise StarknetPayloadError("Payment requirements need asset and payTo")

    user_address = to_hex(to_int(account.address))
    call = build_transfer_call(asset, pay_to, amount)

    client = paymaster or PaymasterClient(endpoint, api_key=api_key)
    typed_data = client.build_transaction(user_address, [call])
    check_typed_data_chain(typed_data, network)
    logger.debug(f"[x402][starknet] Built typed data via {client.endpoint} for {user_address}")

    signature = [to_hex(to_int(part)) for part in account.sign_message(typed_data)]
    message = _outside_execution_message(typed_data)

    return {
        "x402Version": x402_version,
        "scheme": get_field(requirements, "scheme") or "exact",
        "network": network,
        "payload": {
            "signature": signature,
            "authorization": {
                "from": user_address,
                "to": pay_to,
                "amount": str(amount),
                "token": asset,
                "nonce": message.get("Nonce"),
                "validUntil": message.get("Execute Before"),
            },
        },
        "typedData": typed_data,
        "paymasterEndpoint": client.endpoint,
    }
