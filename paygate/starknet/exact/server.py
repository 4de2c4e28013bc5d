"""
Exact Starknet server scheme.

Turns route prices into Starknet asset amounts when the resource server builds
payment requirements. Verification and settlement stay with the facilitator.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from x402 import AssetAmount

from paygate.starknet.networks import (
    ETH_DECIMALS,
    ETH_TOKEN_ADDRESS,
    STRK_DECIMALS,
    STRK_TOKEN_ADDRESS,
    USDC_DECIMALS,
    USDC_TOKEN_ADDRESSES,
    to_atomic_units,
    validate_network,
)
from paygate.utils import get_field, to_int

PAYMASTER_TRANSFER_METHOD = "paymaster"

_MONEY = re.compile(r"^\$?\s*([0-9]+(?:\.[0-9]+)?)\s*(?:USD|USDC)?$", re.IGNORECASE)


def parse_money(price: Any) -> Decimal:
    """Parse "$0.01", "0.01 USDC" or a number into a Decimal dollar amount."""
    if isinstance(price, (int, float, Decimal)) and not isinstance(price, bool):
        return Decimal(str(price))
    if isinstance(price, str):
        match = _MONEY.match(price.strip())
        if match:
            try:
                return Decimal(match.group(1))
            except InvalidOperation:
                pass
    raise ValueError(f"Invalid money price: {price!r}")


class ExactStarknetServerScheme:
    """Server-side ``exact`` scheme for ``starknet:*`` networks."""

    scheme = "exact"
    # Transfers run as paymaster-sponsored outside executions signed up front
    default_asset_transfer_method = PAYMASTER_TRANSFER_METHOD
    payment_flows = {
        PAYMASTER_TRANSFER_METHOD: {"supported": ("authorization",), "default": "authorization"},
    }

    def get_asset_decimals(self, asset: str, network: str) -> Optional[int]:
        """Decimals for ETH, STRK or the network's USDC; None for other assets."""
        network = validate_network(network)
        known = {
            to_int(ETH_TOKEN_ADDRESS): ETH_DECIMALS,
            to_int(STRK_TOKEN_ADDRESS): STRK_DECIMALS,
            to_int(USDC_TOKEN_ADDRESSES[network]): USDC_DECIMALS,
        }
        return known.get(to_int(asset))

    def parse_price(self, price: Any, network: str) -> AssetAmount:
        """Convert a route price to an AssetAmount.

        Asset amounts (``{"amount", "asset"}``) pass through unchanged; money
        prices are paid in USDC on the target network.
        """
        network = validate_network(network)

        amount = get_field(price, "amount")
        asset = get_field(price, "asset")
        if amount is not None and asset:
            return AssetAmount(
                amount=str(amount),
                asset=asset,
                extra=get_field(price, "extra") or {},
            )

        dollars = parse_money(price)
        return AssetAmount(
            amount=to_atomic_units(dollars, USDC_DECIMALS),
            asset=USDC_TOKEN_ADDRESSES[network],
            extra={"decimals": USDC_DECIMALS},
        )

    def enhance_payment_requirements(
        self,
        requirements: Any,
        supported_kind: Any,
        extensions: Optional[Iterable[str]] = None,
    ) -> Any:
        """Merge the facilitator's advertised extra (paymaster, sponsor) into requirements."""
        kind_extra = get_field(supported_kind, "extra") or {}
        if not kind_extra:
            return requirements

        extra = dict(get_field(requirements, "extra") or {})
        for key, value in kind_extra.items():
            extra.setdefault(key, value)

        if isinstance(requirements, dict):
            requirements["extra"] = extra
        else:
            requirements.extra = extra
        return requirements
