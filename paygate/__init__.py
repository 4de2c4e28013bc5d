"""
paygate - x402 payments for FastAPI with Starknet support.

Subpackages:
    paygate.fastapi   payment middleware and paid route registration
    paygate.starknet  Starknet exact scheme (paymaster-sponsored payloads)
    paygate.upto      usage tracking for upto payments
"""

__version__ = "0.1.0"
