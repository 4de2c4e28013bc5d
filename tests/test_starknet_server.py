"""
Tests for the Starknet exact server scheme and the resource server factory.
"""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from x402.payment_flow import resolve_payment_flow
from x402.schemas import PaymentRequirements

from paygate import server as server_module
from paygate.server import ResourceServerConfig, create_resource_server
from paygate.starknet.exact import ExactStarknetServerScheme
from paygate.starknet.exact.server import PAYMASTER_TRANSFER_METHOD, parse_money
from paygate.starknet.networks import (
    ETH_DECIMALS,
    ETH_TOKEN_ADDRESS,
    STRK_DECIMALS,
    STRK_TOKEN_ADDRESS,
    USDC_DECIMALS,
    USDC_TOKEN_ADDRESSES,
)


class TestParseMoney:
    @pytest.mark.parametrize(
        "price, expected",
        [
            ("$0.01", Decimal("0.01")),
            ("0.01 USDC", Decimal("0.01")),
            ("$ 1", Decimal("1")),
            ("2.5 usd", Decimal("2.5")),
            (3, Decimal("3")),
            (0.5, Decimal("0.5")),
        ],
    )
    def test_valid(self, price, expected):
        assert parse_money(price) == expected

    @pytest.mark.parametrize("price", ["free", "$", "1.2.3", True, None])
    def test_invalid(self, price):
        with pytest.raises(ValueError, match="Invalid money price"):
            parse_money(price)


class TestParsePrice:
    def test_money_price_pays_usdc(self):
        amount = ExactStarknetServerScheme().parse_price("$0.01", "starknet:sepolia")

        assert amount.amount == "10000"
        assert amount.asset == USDC_TOKEN_ADDRESSES["starknet:sepolia"]
        assert amount.extra == {"decimals": 6}

    def test_alias_network(self):
        amount = ExactStarknetServerScheme().parse_price("1", "starknet-mainnet")

        assert amount.asset == USDC_TOKEN_ADDRESSES["starknet:mainnet"]
        assert amount.amount == "1000000"

    def test_asset_amount_passes_through(self):
        price = {"amount": 500, "asset": "0xabc", "extra": {"decimals": 18}}
        amount = ExactStarknetServerScheme().parse_price(price, "starknet:sepolia")

        assert amount.amount == "500"
        assert amount.asset == "0xabc"
        assert amount.extra == {"decimals": 18}

    def test_rejects_other_networks(self):
        with pytest.raises(ValueError):
            ExactStarknetServerScheme().parse_price("$0.01", "eip155:8453")


class TestEnhancePaymentRequirements:
    def test_merges_kind_extra_without_overwriting(self):
        requirements = {"extra": {"decimals": 6}}
        kind = SimpleNamespace(extra={"decimals": 18, "paymasterEndpoint": "https://pm"})

        result = ExactStarknetServerScheme().enhance_payment_requirements(requirements, kind)

        assert result["extra"] == {"decimals": 6, "paymasterEndpoint": "https://pm"}

    def test_object_requirements(self):
        requirements = SimpleNamespace(extra=None)
        kind = {"extra": {"sponsor": "avnu"}}

        result = ExactStarknetServerScheme().enhance_payment_requirements(requirements, kind)

        assert result.extra == {"sponsor": "avnu"}

    def test_no_kind_extra_is_noop(self):
        requirements = {"extra": {"decimals": 6}}

        result = ExactStarknetServerScheme().enhance_payment_requirements(requirements, {})

        assert result is requirements
        assert requirements == {"extra": {"decimals": 6}}


class TestPaymentFlow:
    def requirements(self, **extra):
        return PaymentRequirements(
            scheme="exact",
            network="starknet:sepolia",
            asset=USDC_TOKEN_ADDRESSES["starknet:sepolia"],
            amount="10000",
            pay_to="0x456",
            max_timeout_seconds=300,
            extra=extra,
        )

    def test_paymaster_transfers_settle_after_the_handler(self):
        resolved = resolve_payment_flow(ExactStarknetServerScheme(), self.requirements())

        assert resolved.asset_transfer_method == PAYMASTER_TRANSFER_METHOD
        assert resolved.payment_flow == "authorization"

    def test_unknown_transfer_method_is_rejected(self):
        requirements = self.requirements(assetTransferMethod="permit2")

        with pytest.raises(ValueError, match="permit2"):
            resolve_payment_flow(ExactStarknetServerScheme(), requirements)

    @pytest.mark.parametrize(
        "asset, decimals",
        [
            (USDC_TOKEN_ADDRESSES["starknet:sepolia"], USDC_DECIMALS),
            (ETH_TOKEN_ADDRESS, ETH_DECIMALS),
            (STRK_TOKEN_ADDRESS.upper().replace("0X", "0x"), STRK_DECIMALS),
            ("0xabc", None),
        ],
    )
    def test_asset_decimals(self, asset, decimals):
        assert ExactStarknetServerScheme().get_asset_decimals(asset, "starknet:sepolia") == decimals

    def test_mainnet_usdc_is_unknown_on_sepolia(self):
        scheme = ExactStarknetServerScheme()
        mainnet_usdc = USDC_TOKEN_ADDRESSES["starknet:mainnet"]

        assert scheme.get_asset_decimals(mainnet_usdc, "starknet:sepolia") is None
        assert scheme.get_asset_decimals(mainnet_usdc, "starknet-mainnet") == USDC_DECIMALS


class TestCreateResourceServer:
    @pytest.fixture
    def patched(self, monkeypatch):
        server_cls = MagicMock()
        evm_scheme_cls = MagicMock()
        monkeypatch.setattr(server_module, "x402ResourceServer", server_cls)
        monkeypatch.setattr(server_module, "ExactEvmServerScheme", evm_scheme_cls)
        return server_cls, evm_scheme_cls

    def test_default_registration(self, patched):
        server_cls, evm_scheme_cls = patched
        facilitator = object()

        server = create_resource_server(facilitator)

        server_cls.assert_called_once_with(facilitator)
        registered = [call.args for call in server.register.call_args_list]
        assert [network for network, _ in registered] == [
            "eip155:*",
            "starknet:mainnet",
            "starknet:sepolia",
        ]
        assert registered[0][1] is evm_scheme_cls.return_value
        assert isinstance(registered[1][1], ExactStarknetServerScheme)
        assert registered[1][1] is registered[2][1]

    def test_custom_networks(self, patched):
        config = ResourceServerConfig(evm_networks=[], starknet_networks=["starknet:sepolia"])

        server = create_resource_server(object(), config)

        registered = [call.args[0] for call in server.register.call_args_list]
        assert registered == ["starknet:sepolia"]
