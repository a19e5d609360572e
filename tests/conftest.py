"""Shared pytest fixtures for monad-deploy tests."""

from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest

from monad_deploy.config.settings import DeployMode, Settings
from monad_deploy.setup.artifacts import Artifact

TX_HASH_BYTES = bytes.fromhex("ab" * 32)
TX_HASH = "0x" + "ab" * 32
DEPLOYED_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
SENDER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
# Well-known dev key (anvil account #0), never funded on a public chain
DEV_PRIVATE_KEY = "ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


@pytest.fixture
def simple_storage_source() -> str:
    return (
        "// SPDX-License-Identifier: MIT\n"
        "pragma solidity ^0.8.0;\n"
        "\n"
        "contract SimpleStorage {\n"
        "    uint256 private value;\n"
        "    function setValue(uint256 _newValue) public { value = _newValue; }\n"
        "    function getValue() public view returns (uint256) { return value; }\n"
        "}\n"
    )


@pytest.fixture
def simple_storage_abi() -> List[Dict[str, Any]]:
    return [
        {
            "inputs": [{"internalType": "uint256", "name": "_newValue", "type": "uint256"}],
            "name": "setValue",
            "outputs": [],
            "stateMutability": "nonpayable",
            "type": "function",
        },
        {
            "inputs": [],
            "name": "getValue",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function",
        },
    ]


@pytest.fixture
def constructor_abi() -> List[Dict[str, Any]]:
    """ABI of a contract whose constructor takes (uint256, address)."""
    return [
        {
            "inputs": [
                {"name": "initial", "type": "uint256"},
                {"name": "owner", "type": "address"},
            ],
            "stateMutability": "nonpayable",
            "type": "constructor",
        },
    ]


@pytest.fixture
def fake_account() -> MagicMock:
    """Signing account double; sign_transaction returns an object with raw_transaction."""
    account = MagicMock()
    account.address = SENDER_ADDRESS
    account.sign_transaction.return_value = MagicMock(raw_transaction=b"\x02signed")
    return account


@pytest.fixture
def fake_w3() -> MagicMock:
    """Web3 double wired for a successful deployment."""
    w3 = MagicMock()
    w3.eth.chain_id = 10143
    w3.eth.get_transaction_count.return_value = 7
    w3.eth.send_raw_transaction.return_value = TX_HASH_BYTES
    w3.eth.wait_for_transaction_receipt.return_value = {
        "status": 1,
        "contractAddress": DEPLOYED_ADDRESS,
        "transactionHash": TX_HASH_BYTES,
        "blockNumber": 123,
    }
    constructor = w3.eth.contract.return_value.constructor.return_value
    constructor.estimate_gas.return_value = 100_000
    constructor.build_transaction.side_effect = lambda params: {**params, "data": "0x6080"}
    return w3


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Live-mode settings with artifacts under a temporary directory."""
    return Settings(
        rpc_url="http://127.0.0.1:8545",
        private_key=DEV_PRIVATE_KEY,
        artifacts_dir=tmp_path / "artifacts",
    )


@pytest.fixture
def mock_settings(settings: Settings) -> Settings:
    """Settings in mock deploy mode (no network, no signing key needed)."""
    return Settings(
        rpc_url=settings.rpc_url,
        private_key=None,
        artifacts_dir=settings.artifacts_dir,
        deploy_mode=DeployMode.MOCK,
    )


@pytest.fixture
def sample_artifact(simple_storage_abi: List[Dict[str, Any]]) -> Artifact:
    return Artifact(
        contract_name="SimpleStorage",
        address=DEPLOYED_ADDRESS,
        abi=simple_storage_abi,
        transaction_hash=TX_HASH,
        network="monad-testnet",
        chain_id=10143,
        explorer_url=f"https://explorer.testnet.monad.xyz/tx/{TX_HASH}",
        deployed_at="2025-01-01T00:00:00+00:00",
    )
