"""
Starknet ``exact`` payment scheme (client and server sides).
"""

from paygate.starknet.exact.client import (
    DEFAULT_STARKNET_CLIENT_NETWORKS,
    ExactStarknetClientScheme,
    assert_starknet_typed_data,
    register_exact_starknet_client_scheme,
    resolve_paymaster_api_key,
    resolve_paymaster_endpoint,
)
from paygate.starknet.exact.server import ExactStarknetServerScheme

__all__ = [
    "DEFAULT_STARKNET_CLIENT_NETWORKS",
    "ExactStarknetClientScheme",
    "ExactStarknetServerScheme",
    "assert_starknet_typed_data",
    "register_exact_starknet_client_scheme",
    "resolve_paymaster_api_key",
    "resolve_paymaster_endpoint",
]
