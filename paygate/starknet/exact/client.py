"""
Exact Starknet client scheme.

Client-side implementation of the ``exact`` scheme for Starknet networks.
Settlement needs the signed typed data, so it always travels with the payload.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from paygate.config import get_paymaster_api_key, get_paymaster_endpoint
from paygate.starknet.networks import (
    DEFAULT_PAYMASTER_ENDPOINTS,
    STARKNET_MAINNET,
    STARKNET_SEPOLIA,
    validate_network,
)
from paygate.starknet.payload import StarknetPayloadError, create_payment_payload

logger = logging.getLogger(__name__)

PerNetwork = Union[str, Mapping[str, str]]

X402_VERSION = 2
DEFAULT_STARKNET_CLIENT_NETWORKS = [STARKNET_MAINNET, STARKNET_SEPOLIA]


def assert_starknet_typed_data(payload: Mapping[str, Any]) -> None:
    """Raise StarknetPayloadError unless the payload carries a typedData object."""
    typed_data = payload.get("typedData") if isinstance(payload, Mapping) else None
    if not isinstance(typed_data, Mapping):
        raise StarknetPayloadError("Starknet payment payload missing typedData (required).")


def resolve_paymaster_endpoint(network: str, override: Optional[PerNetwork] = None) -> str:
    """Pick the paymaster endpoint for a network.

    A string override applies to every network; a mapping applies per network;
    otherwise the environment override or the default endpoint is used.
    """
    if isinstance(override, str):
        return override
    if override and override.get(network):
        return override[network]
    return get_paymaster_endpoint(network) or DEFAULT_PAYMASTER_ENDPOINTS[network]


def resolve_paymaster_api_key(network: str, override: Optional[PerNetwork] = None) -> Optional[str]:
    if isinstance(override, str):
        return override
    if override and override.get(network):
        return override[network]
    return get_paymaster_api_key()


class ExactStarknetClientScheme:
    """Creates signed Starknet payloads for ``exact`` payment requirements.

    Register it on an ``x402Client`` for each Starknet network it should pay on.
    """

    scheme = "exact"

    def __init__(
        self,
        account: Any,
        paymaster_endpoint: Optional[PerNetwork] = None,
        paymaster_api_key: Optional[PerNetwork] = None,
        x402_version: int = X402_VERSION,
    ):
        """Initialize the client scheme.

        Args:
            account: starknet_py account used to sign typed data
            paymaster_endpoint: Endpoint for all networks, or a per-network map
            paymaster_api_key: API key for all networks, or a per-network map
            x402_version: Protocol version stamped on built payloads
        """
        if not account:
            raise ValueError("Starknet account is required.")
        self.account = account
        self.paymaster_endpoint = paymaster_endpoint
        self.paymaster_api_key = paymaster_api_key
        self.x402_version = x402_version

    def create_payment_payload(self, requirements: Any) -> Dict[str, Any]:
        """Create the scheme-specific payload for the given requirements.

        The returned dict is the inner payload with ``typedData`` and
        ``paymasterEndpoint`` alongside it; x402Client wraps it into the
        full payment payload.
        """
        network_value = (
            requirements.get("network")
            if isinstance(requirements, Mapping)
            else getattr(requirements, "network", "")
        )
        network = validate_network(network_value or "")
        paymaster_endpoint = resolve_paymaster_endpoint(network, self.paymaster_endpoint)
        paymaster_api_key = resolve_paymaster_api_key(network, self.paymaster_api_key)

        payment_payload = create_payment_payload(
            self.account,
            self.x402_version,
            requirements,
            endpoint=paymaster_endpoint,
            network=network,
            api_key=paymaster_api_key,
        )

        assert_starknet_typed_data(payment_payload)

        logger.debug(f"[x402][starknet] Created exact payload on {network}")
        return {
            **payment_payload["payload"],
            "typedData": payment_payload["typedData"],
            "paymasterEndpoint": payment_payload.get("paymasterEndpoint") or paymaster_endpoint,
        }


def register_exact_starknet_client_scheme(
    client: Any,
    account: Any,
    networks: Optional[Union[str, Iterable[str]]] = None,
    paymaster_endpoint: Optional[PerNetwork] = None,
    paymaster_api_key: Optional[PerNetwork] = None,
) -> ExactStarknetClientScheme:
    """Register one ExactStarknetClientScheme on each requested network.

    Args:
        client: Anything with ``register(network, scheme)`` (e.g. x402Client)
        account: starknet_py account used to sign
        networks: One network or several (defaults to mainnet and sepolia)

    Returns:
        The registered scheme instance
    """
    scheme = ExactStarknetClientScheme(
        account,
        paymaster_endpoint=paymaster_endpoint,
        paymaster_api_key=paymaster_api_key,
    )
    if networks is None:
        register_networks = list(DEFAULT_STARKNET_CLIENT_NETWORKS)
    elif isinstance(networks, str):
        register_networks = [networks]
    else:
        register_networks = list(networks)

    for network in register_networks:
        client.register(network, scheme)

    return scheme
