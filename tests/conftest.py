from types import SimpleNamespace

import pytest

NO_PAYMENT = SimpleNamespace(type="no-payment-required")


def verified(scheme="exact", payload=None, amount="1000", extra=None):
    """Build a payment-verified process result."""
    return SimpleNamespace(
        type="payment-verified",
        payment_payload=SimpleNamespace(
            x402_version=2,
            payload=payload if payload is not None else {"signature": "0xsig"},
        ),
        payment_requirements=SimpleNamespace(
            scheme=scheme,
            network="starknet:sepolia",
            asset="0xasset",
            amount=amount,
            pay_to="0xpayee",
            extra=extra or {},
        ),
    )


def payment_error(status=402, headers=None, body=None, is_html=False):
    return SimpleNamespace(
        type="payment-error",
        response=SimpleNamespace(
            status=status,
            headers=headers if headers is not None else {"PAYMENT-REQUIRED": "encoded-requirements"},
            body=body if body is not None else {"error": "Payment required"},
            is_html=is_html,
        ),
    )


class FakeHTTPServer:
    """Stands in for x402HTTPResourceServer; answers per request path."""

    def __init__(self, results=None, settlement=None, protected=()):
        self.results = results or {}
        # paths a configured route matches; every path with a canned result is one
        self.protected = set(self.results) | set(protected)
        self.checked = []
        self.settlement = settlement or SimpleNamespace(
            success=True, headers={"PAYMENT-RESPONSE": "settled"}
        )
        self.contexts = []
        self.paywall_configs = []
        self.settlements = []
        self.initialize_calls = 0
        self.paywall_providers = []

    async def initialize(self):
        self.initialize_calls += 1

    def requires_payment(self, context):
        self.checked.append(context.path)
        return context.path in self.protected

    def register_paywall_provider(self, provider):
        self.paywall_providers.append(provider)

    async def process_http_request(self, context, paywall_config=None):
        self.contexts.append(context)
        self.paywall_configs.append(paywall_config)
        return self.results.get(context.path, NO_PAYMENT)

    async def process_settlement(self, payment_payload, payment_requirements):
        self.settlements.append((payment_payload, payment_requirements))
        return self.settlement

    @property
    def paths(self):
        return [context.path for context in self.contexts]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer environment overrides out of the tests."""
    for key in (
        "X402_DEBUG",
        "FACILITATOR_URL",
        "STARKNET_PAYMASTER_API_KEY",
        "STARKNET_PAYMASTER_ENDPOINT_STARKNET_MAINNET",
        "STARKNET_PAYMASTER_ENDPOINT_STARKNET_SEPOLIA",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def fake_server():
    return FakeHTTPServer()
