"""
Paid API example - single endpoint with EVM + Solana + Starknet payments.

Usage:
    1. Start a facilitator with Starknet enabled (default http://localhost:8090)
    2. Start this server:
        EVM_PAY_TO=0x... SVM_PAY_TO=... STARKNET_PAY_TO=0x... \
        python examples/paid_api_all.py

Environment variables:
    - PORT: Server port (default: 4025)
    - FACILITATOR_URL: Facilitator URL (default: http://localhost:8090)
    - EVM_PAY_TO: Recipient address on Base Sepolia (required)
    - SVM_PAY_TO: Recipient address on Solana devnet (required)
    - STARKNET_PAY_TO: Recipient address for Starknet payments (required)
    - STARKNET_NETWORK: starknet:mainnet | starknet:sepolia (default: starknet:sepolia)
    - STARKNET_PRICE: ETH amount for Starknet payment (default: 0.0001)

Endpoints:
    GET /api/premium-all - Exact payment (EVM + Solana + Starknet)
"""

import logging
import os
import sys

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from x402.http import FacilitatorConfig, HTTPFacilitatorClient

from paygate.config import get_default_facilitator_url
from paygate.fastapi import PaymentMiddlewareConfig, create_paid_routes
from paygate.server import ResourceServerConfig, create_resource_server
from paygate.starknet import build_eth_payment, validate_network

logger = logging.getLogger(__name__)

# Configuration constants
DEFAULT_PORT = 4025
API_VERSION = "0.1.0"
SERVICE_NAME = "paid-api-all"

EVM_NETWORK = "eip155:84532"
SVM_NETWORK = "solana:EtWTRABZaYq6iMfeYKouRu166VU2xqa1"

PORT = int(os.getenv("PORT", str(DEFAULT_PORT)))
FACILITATOR_URL = get_default_facilitator_url()
STARKNET_NETWORK = validate_network(os.getenv("STARKNET_NETWORK", "starknet:sepolia"))
STARKNET_PRICE = os.getenv("STARKNET_PRICE", "0.0001")
EVM_PAY_TO = os.getenv("EVM_PAY_TO")
SVM_PAY_TO = os.getenv("SVM_PAY_TO")
STARKNET_PAY_TO = os.getenv("STARKNET_PAY_TO")


def create_app() -> FastAPI:
    """Create and configure the paid API application.

    Returns:
        Configured FastAPI application instance
    """
    if not (EVM_PAY_TO and SVM_PAY_TO and STARKNET_PAY_TO):
        logger.error("Set EVM_PAY_TO, SVM_PAY_TO and STARKNET_PAY_TO to run the multi-chain API example.")
        sys.exit(1)

    app = FastAPI(
        title="Paid API (Multi-Chain)",
        version=API_VERSION,
    )

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint for monitoring and load balancers."""
        return JSONResponse(
            content={
                "status": "healthy",
                "service": SERVICE_NAME,
                "version": API_VERSION,
            }
        )

    facilitator_client = HTTPFacilitatorClient(FacilitatorConfig(url=FACILITATOR_URL))
    resource_server = create_resource_server(
        facilitator_client,
        ResourceServerConfig(
            evm_networks=[EVM_NETWORK],
            svm_networks=[SVM_NETWORK],
            starknet_networks=[STARKNET_NETWORK],
        ),
    )

    starknet_requirements = build_eth_payment(
        network=STARKNET_NETWORK,
        amount=STARKNET_PRICE,
        pay_to=STARKNET_PAY_TO,
        max_timeout_seconds=120,
    )

    paid = create_paid_routes(
        app,
        base_path="/api",
        middleware=PaymentMiddlewareConfig(
            resource_server=resource_server,
            paywall_config={"appName": "Paid API (Multi-Chain)", "testnet": True},
        ),
    )

    @paid.get(
        "/premium-all",
        payment={
            "accepts": [
                {"scheme": "exact", "network": EVM_NETWORK, "payTo": EVM_PAY_TO, "price": "$0.01"},
                {"scheme": "exact", "network": SVM_NETWORK, "payTo": SVM_PAY_TO, "price": "$0.01"},
                {
                    "scheme": "exact",
                    "network": STARKNET_NETWORK,
                    "payTo": STARKNET_PAY_TO,
                    "price": {
                        "amount": starknet_requirements["amount"],
                        "asset": starknet_requirements["asset"],
                    },
                },
            ],
            "description": "Premium content (EVM + Solana + Starknet)",
            "mimeType": "application/json",
        },
    )
    async def premium_all() -> dict:
        return {"message": "premium content (multi-chain)"}

    paid.install()

    # Added last so CORS headers also reach 402 responses
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["PAYMENT-REQUIRED", "PAYMENT-RESPONSE"],
    )
    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app = create_app()
    logger.info(
        f"Paid API (Multi-Chain) listening on http://localhost:{PORT} | "
        f"Facilitator: {FACILITATOR_URL} | Starknet: {STARKNET_NETWORK}"
    )
    uvicorn.run(app, host="0.0.0.0", port=PORT)
