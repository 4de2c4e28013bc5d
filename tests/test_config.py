"""
Tests for environment configuration.
"""

import logging

from paygate import config


def test_facilitator_url_from_env(monkeypatch):
    monkeypatch.setenv("FACILITATOR_URL", "https://facilitator.example")

    assert config.get_default_facilitator_url() == "https://facilitator.example"


def test_facilitator_url_default(monkeypatch):
    monkeypatch.setattr(config.os.path, "exists", lambda path: False)

    assert config.get_default_facilitator_url() == "http://localhost:8090"


def test_facilitator_url_in_docker(monkeypatch):
    monkeypatch.setattr(config.os.path, "exists", lambda path: path == "/.dockerenv")

    assert config.get_default_facilitator_url() == "http://host.docker.internal:8090"


def test_debug_flag(monkeypatch):
    assert not config.is_debug_enabled()

    monkeypatch.setenv("X402_DEBUG", "TRUE")
    assert config.is_debug_enabled()

    monkeypatch.setenv("X402_DEBUG", "1")
    assert config.is_debug_enabled()

    monkeypatch.setenv("X402_DEBUG", "yes")
    assert not config.is_debug_enabled()


def test_rpc_url(monkeypatch):
    monkeypatch.setenv("BASE_SEPOLIA_RPC_URL", "https://sepolia.base.org")

    assert config.get_rpc_url("base-sepolia") == "https://sepolia.base.org"
    assert config.get_rpc_url("starknet:mainnet") is None


def test_paymaster_overrides(monkeypatch):
    monkeypatch.setenv("STARKNET_PAYMASTER_ENDPOINT_STARKNET_SEPOLIA", "https://pm.example")
    monkeypatch.setenv("STARKNET_PAYMASTER_API_KEY", "key")

    assert config.get_paymaster_endpoint("starknet:sepolia") == "https://pm.example"
    assert config.get_paymaster_endpoint("starknet:mainnet") is None
    assert config.get_paymaster_api_key() == "key"


def test_configure_debug_logging(monkeypatch):
    monkeypatch.setenv("X402_DEBUG", "1")
    logger = config.configure_debug_logging("paygate.tests.debug")

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1

    config.configure_debug_logging("paygate.tests.debug")
    assert len(logger.handlers) == 1


def test_configure_debug_logging_disabled():
    logger = config.configure_debug_logging("paygate.tests.quiet")

    assert logger.level == logging.NOTSET
    assert logger.handlers == []
