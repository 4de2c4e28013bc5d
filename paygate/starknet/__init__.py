"""
Starknet support for x402 payments.

This package builds paymaster-sponsored Starknet payment payloads for the
``exact`` scheme and the matching server-side price parsing.
"""

from paygate.starknet.networks import (
    DEFAULT_PAYMASTER_ENDPOINTS,
    ETH_TOKEN_ADDRESS,
    STARKNET_MAINNET,
    STARKNET_NETWORKS,
    STARKNET_SEPOLIA,
    STRK_TOKEN_ADDRESS,
    USDC_TOKEN_ADDRESSES,
    build_eth_payment,
    build_strk_payment,
    build_usdc_payment,
    validate_network,
)
from paygate.starknet.paymaster import PaymasterClient, PaymasterError
from paygate.starknet.payload import StarknetPayloadError, create_payment_payload

__all__ = [
    "DEFAULT_PAYMASTER_ENDPOINTS",
    "ETH_TOKEN_ADDRESS",
    "STARKNET_MAINNET",
    "STARKNET_NETWORKS",
    "STARKNET_SEPOLIA",
    "STRK_TOKEN_ADDRESS",
    "USDC_TOKEN_ADDRESSES",
    "PaymasterClient",
    "PaymasterError",
    "StarknetPayloadError",
    "build_eth_payment",
    "build_strk_payment",
    "build_usdc_payment",
    "create_payment_payload",
    "validate_network",
]
