"""
Starknet network identifiers, token addresses and payment requirement builders.
"""

from decimal import Decimal
from typing import Any, Dict, Optional, Union

STARKNET_MAINNET = "starknet:mainnet"
STARKNET_SEPOLIA = "starknet:sepolia"

STARKNET_NETWORKS = (STARKNET_MAINNET, STARKNET_SEPOLIA)

# Legacy dash-separated aliases accepted by validate_network
_NETWORK_ALIASES = {
    "starknet-mainnet": STARKNET_MAINNET,
    "starknet-sepolia": STARKNET_SEPOLIA,
}

# Chain ids as short strings (SN_MAIN / SN_SEPOLIA), hex encoded
STARKNET_CHAIN_IDS = {
    STARKNET_MAINNET: "0x534e5f4d41494e",
    STARKNET_SEPOLIA: "0x534e5f5345504f4c4941",
}

DEFAULT_PAYMASTER_ENDPOINTS = {
    STARKNET_MAINNET: "https://starknet.paymaster.avnu.fi",
    STARKNET_SEPOLIA: "https://sepolia.paymaster.avnu.fi",
}

ETH_TOKEN_ADDRESS = "0x049d36570d4e46f48e99674bd3fcc84644ddd6b96f7c741b1562b82f9e004dc7"
STRK_TOKEN_ADDRESS = "0x04718f5a0fc34cc1af16a1cdee98ffb20c31f5cd61d6ab07201858f4287c938d"

USDC_TOKEN_ADDRESSES = {
    STARKNET_MAINNET: "0x053c91253bc9682c04929ca02ed00b3e423f6710d2ee7e0d5ebb06f3ecf368a8",
    STARKNET_SEPOLIA: "0x053b40a647cedfca6ca84f542a0fe36736031905a9639a7f19a3c1e66bfd5080",
}

ETH_DECIMALS = 18
STRK_DECIMALS = 18
USDC_DECIMALS = 6

DEFAULT_MAX_TIMEOUT_SECONDS = 300


def is_starknet_network(network: str) -> bool:
    return network in STARKNET_NETWORKS or network in _NETWORK_ALIASES


def validate_network(network: str) -> str:
    """Return the canonical Starknet network id.

    Raises:
        ValueError: If the network is not a supported Starknet network
    """
    if network in STARKNET_NETWORKS:
        return network
    if network in _NETWORK_ALIASES:
        return _NETWORK_ALIASES[network]
    raise ValueError(
        f"Unsupported Starknet network: {network!r}. "
        f"Expected one of: {', '.join(STARKNET_NETWORKS)}"
    )


def to_atomic_units(amount: Union[int, float, str, Decimal], decimals: int) -> str:
    """Convert a human amount (0.0001 ETH) to atomic units as a string."""
    value = Decimal(str(amount)) * (Decimal(10) ** decimals)
    if value != value.to_integral_value():
        raise ValueError(f"Amount {amount} has more than {decimals} decimal places")
    if value <= 0:
        raise ValueError(f"Amount must be positive, got {amount}")
    return str(int(value))


def _build_payment(
    network: str,
    amount: Union[int, float, str, Decimal],
    pay_to: str,
    asset: str,
    decimals: int,
    max_timeout_seconds: int,
    description: Optional[str],
    scheme: str,
) -> Dict[str, Any]:
    requirements: Dict[str, Any] = {
        "scheme": scheme,
        "network": validate_network(network),
        "amount": to_atomic_units(amount, decimals),
        "asset": asset,
        "payTo": pay_to,
        "maxTimeoutSeconds": max_timeout_seconds,
        "extra": {"decimals": decimals},
    }
    if description:
        requirements["description"] = description
    return requirements


def build_eth_payment(
    network: str,
    amount: Union[int, float, str, Decimal],
    pay_to: str,
    max_timeout_seconds: int = DEFAULT_MAX_TIMEOUT_SECONDS,
    description: Optional[str] = None,
    scheme: str = "exact",
) -> Dict[str, Any]:
    """Build payment requirements for an ETH transfer on Starknet.

    Example:
        >>> build_eth_payment(network="starknet:sepolia", amount=0.0001, pay_to="0x123")["amount"]
        '100000000000000'
    """
    return _build_payment(
        network, amount, pay_to, ETH_TOKEN_ADDRESS, ETH_DECIMALS,
        max_timeout_seconds, description, scheme,
    )


def build_strk_payment(
    network: str,
    amount: Union[int, float, str, Decimal],
    pay_to: str,
    max_timeout_seconds: int = DEFAULT_MAX_TIMEOUT_SECONDS,
    description: Optional[str] = None,
    scheme: str = "exact",
) -> Dict[str, Any]:
    return _build_payment(
        network, amount, pay_to, STRK_TOKEN_ADDRESS, STRK_DECIMALS,
        max_timeout_seconds, description, scheme,
    )


def build_usdc_payment(
    network: str,
    amount: Union[int, float, str, Decimal],
    pay_to: str,
    max_timeout_seconds: int = DEFAULT_MAX_TIMEOUT_SECONDS,
    description: Optional[str] = None,
    scheme: str = "exact",
) -> Dict[str, Any]:
    network = validate_network(network)
    return _build_payment(
        network, amount, pay_to, USDC_TOKEN_ADDRESSES[network], USDC_DECIMALS,
        max_timeout_seconds, description, scheme,
    )
