"""Unit tests for settings loading and network metadata."""

import logging
from pathlib import Path

import pytest

from monad_deploy.config.logging_config import log_deployment, setup_logger
from monad_deploy.config.network import (
    get_address_url,
    get_chain_config,
    get_chain_id,
    get_rpc_url,
    get_tx_url,
)
from monad_deploy.config.settings import DeployMode, Settings, VersionPolicy, load_settings
from monad_deploy.exceptions import ConfigurationError


class TestNetwork:
    """Test chain metadata helpers."""

    def test_monad_testnet(self):
        config = get_chain_config("monad_testnet")
        assert config["chain_id"] == 10143
        assert config["network"] == "monad-testnet"
        assert config["rpc_urls"][0] == "https://testnet-rpc.monad.xyz"

    def test_dash_and_case_normalised(self):
        assert get_chain_config("Monad-Testnet") is get_chain_config("monad_testnet")

    def test_lookup_by_chain_id(self):
        assert get_chain_config(10143)["network"] == "monad-testnet"

    def test_unknown_chain(self):
        with pytest.raises(ValueError, match="Unsupported chain"):
            get_chain_config("gnosis")

    def test_tx_url(self):
        assert get_tx_url("0xabc", "monad_testnet") == "https://explorer.testnet.monad.xyz/tx/0xabc"

    def test_address_url(self):
        assert get_address_url("0xabc", "monad_testnet") == "https://explorer.testnet.monad.xyz/address/0xabc"

    def test_no_explorer_for_localhost(self):
        assert get_tx_url("0xabc", "localhost") is None

    def test_rpc_url_ignores_environment(self, monkeypatch):
        """Test that endpoint overrides only flow through Settings."""
        monkeypatch.setenv("MONAD_RPC_URL", "http://node:8545")
        monkeypatch.setenv("CHAIN", "localhost")
        assert get_rpc_url("monad_testnet") == "https://testnet-rpc.monad.xyz"
        assert get_chain_config()["network"] == "monad-testnet"

    def test_chain_id(self):
        assert get_chain_id("localhost") == 31337


class TestLoadSettings:
    """Test building Settings from an environment mapping."""

    def test_defaults(self):
        settings = load_settings(environ={})
        assert settings.rpc_url == "https://testnet-rpc.monad.xyz"
        assert settings.private_key is None
        assert settings.chain == "monad_testnet"
        assert settings.solidity_version == "0.8.28"
        assert settings.optimization_runs == 200
        assert settings.artifacts_dir == Path("artifacts")
        assert settings.version_policy is VersionPolicy.REWRITE
        assert settings.deploy_mode is DeployMode.LIVE
        assert settings.receipt_timeout == 120
        assert settings.log_dir is None
        assert settings.chain_id == 10143
        assert settings.network_name == "monad-testnet"

    def test_overrides(self, tmp_path):
        settings = load_settings(environ={
            "MONAD_RPC_URL": "http://node:8545",
            "PRIVATE_KEY": " 0xabc ",
            "SOLIDITY_VERSION": "0.8.24",
            "OPTIMIZATION_RUNS": "1000",
            "ARTIFACTS_DIR": str(tmp_path),
            "VERSION_POLICY": "STRICT",
            "DEPLOY_MODE": "mock",
            "RECEIPT_TIMEOUT": "30",
            "MONAD_LOG_DIR": str(tmp_path / "logs"),
        })
        assert settings.rpc_url == "http://node:8545"
        assert settings.private_key == "0xabc"
        assert settings.solidity_version == "0.8.24"
        assert settings.optimization_runs == 1000
        assert settings.artifacts_dir == tmp_path
        assert settings.version_policy is VersionPolicy.STRICT
        assert settings.deploy_mode is DeployMode.MOCK
        assert settings.receipt_timeout == 30
        assert settings.log_dir == tmp_path / "logs"

    def test_rpc_url_fallback_variable(self):
        assert load_settings(environ={"RPC_URL": "http://other"}).rpc_url == "http://other"

    @pytest.mark.parametrize(
        "env",
        [
            {"OPTIMIZATION_RUNS": "many"},
            {"RECEIPT_TIMEOUT": "1.5"},
            {"VERSION_POLICY": "loose"},
            {"DEPLOY_MODE": "dry"},
            {"CHAIN": "gnosis"},
        ],
    )
    def test_malformed_values(self, env):
        with pytest.raises(ConfigurationError):
            load_settings(environ=env)

    def test_require_private_key(self):
        with pytest.raises(ConfigurationError, match="PRIVATE_KEY"):
            Settings(rpc_url="http://x").require_private_key()
        assert Settings(rpc_url="http://x", private_key="k").require_private_key() == "k"

    def test_env_file_loaded(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SOLIDITY_VERSION", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("SOLIDITY_VERSION=0.8.20\n")
        try:
            assert load_settings(str(env_file)).solidity_version == "0.8.20"
        finally:
            monkeypatch.delenv("SOLIDITY_VERSION", raising=False)


class TestLogging:
    """Test logger setup and structured deployment lines."""

    def test_file_handlers_only_with_log_dir(self, tmp_path):
        console_only = setup_logger("monad_deploy.test.console")
        assert len(console_only.handlers) == 1

        with_files = setup_logger("monad_deploy.test.files", log_dir=tmp_path)
        assert len(with_files.handlers) == 3
        assert (tmp_path / "monad_deploy.test.files.log").exists()
        for handler in with_files.handlers:
            handler.close()

    def test_log_deployment_format(self, caplog):
        logger = logging.getLogger("monad_deploy.test.deploy")
        with caplog.at_level(logging.INFO, logger="monad_deploy.test.deploy"):
            log_deployment(logger, "Counter", "0xaddr", "0xhash")
            log_deployment(logger, "Counter", None, None, success=False, error="boom")
        assert "SUCCESS | DEPLOY | Counter | Address: 0xaddr | TX: 0xhash" in caplog.text
        assert "FAILED | DEPLOY | Counter | Error: boom" in caplog.text
