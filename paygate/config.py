"""
Environment configuration for paygate.

Values are read from the process environment (and a local .env file when
present) so the same code runs locally, in Docker and on hosted platforms.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Environment variable keys
ENV_FACILITATOR_URL = "FACILITATOR_URL"
ENV_DEBUG = "X402_DEBUG"
ENV_PAYMASTER_API_KEY = "STARKNET_PAYMASTER_API_KEY"
ENV_PAYMASTER_ENDPOINT_PREFIX = "STARKNET_PAYMASTER_ENDPOINT_"

DEFAULT_FACILITATOR_PORT = 8090
LOGGER_NAME = "paygate"


def get_default_facilitator_url() -> str:
    """Get default facilitator URL, handling Docker environments."""
    if os.getenv(ENV_FACILITATOR_URL):
        return os.getenv(ENV_FACILITATOR_URL)

    if os.path.exists("/.dockerenv"):
        # host.docker.internal reaches the host machine on Mac/Windows
        return f"http://host.docker.internal:{DEFAULT_FACILITATOR_PORT}"
    return f"http://localhost:{DEFAULT_FACILITATOR_PORT}"


def is_debug_enabled() -> bool:
    """Return True when X402_DEBUG is set to 1 or true."""
    value = os.getenv(ENV_DEBUG, "")
    return value == "1" or value.lower() == "true"


def _env_suffix(network: str) -> str:
    return network.replace(":", "_").replace("-", "_").upper()


def get_rpc_url(network: str) -> Optional[str]:
    """Get an RPC URL override for a network.

    ``base-sepolia`` reads ``BASE_SEPOLIA_RPC_URL`` and ``starknet:mainnet``
    reads ``STARKNET_MAINNET_RPC_URL``.
    """
    return os.getenv(f"{_env_suffix(network)}_RPC_URL") or None


def get_paymaster_endpoint(network: str) -> Optional[str]:
    """Get a paymaster endpoint override, e.g. STARKNET_PAYMASTER_ENDPOINT_STARKNET_SEPOLIA."""
    return os.getenv(f"{ENV_PAYMASTER_ENDPOINT_PREFIX}{_env_suffix(network)}") or None


def get_paymaster_api_key() -> Optional[str]:
    return os.getenv(ENV_PAYMASTER_API_KEY) or None


def configure_debug_logging(logger_name: str = LOGGER_NAME) -> logging.Logger:
    """Switch the package logger to DEBUG when X402_DEBUG is enabled.

    Args:
        logger_name: Logger to configure (defaults to the package logger)

    Returns:
        The logger instance
    """
    logger = logging.getLogger(logger_name)
    if not is_debug_enabled():
        return logger

    logger.setLevel(logging.DEBUG)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
