"""
Resource server factory.

Builds an x402 resource server bound to a facilitator client with the exact
scheme registered for each configured network family.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from x402 import x402ResourceServer
from x402.mechanisms.evm.exact import ExactEvmServerScheme

from paygate.starknet.exact.server import ExactStarknetServerScheme
from paygate.starknet.networks import STARKNET_MAINNET, STARKNET_SEPOLIA

logger = logging.getLogger(__name__)


@dataclass
class ResourceServerConfig:
    """Which network families the resource server accepts payments on."""

    evm_networks: List[str] = field(default_factory=lambda: ["eip155:*"])
    svm_networks: List[str] = field(default_factory=list)
    starknet_networks: List[str] = field(
        default_factory=lambda: [STARKNET_MAINNET, STARKNET_SEPOLIA]
    )


def create_resource_server(
    facilitator_client: Any, config: Optional[ResourceServerConfig] = None
) -> x402ResourceServer:
    """Create a resource server with exact schemes registered.

    Args:
        facilitator_client: Facilitator client used for verify/settle
        config: Network families to register (EVM and Starknet by default)

    Returns:
        The x402ResourceServer instance
    """
    config = config or ResourceServerConfig()
    server = x402ResourceServer(facilitator_client)

    for network in config.evm_networks:
        server.register(network, ExactEvmServerScheme())

    if config.svm_networks:
        from x402.mechanisms.svm.exact import ExactSvmServerScheme

        for network in config.svm_networks:
            server.register(network, ExactSvmServerScheme())

    starknet_scheme = ExactStarknetServerScheme()
    for network in config.starknet_networks:
        server.register(network, starknet_scheme)

    logger.info(
        f"[x402] Resource server registered exact on "
        f"{config.evm_networks + config.svm_networks + config.starknet_networks}"
    )
    return server
