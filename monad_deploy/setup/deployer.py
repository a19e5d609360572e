"""
Deploy compiled contracts to the configured chain.

The Deployer builds the contract-creation transaction (constructor
arguments ABI-encoded by web3), estimates gas with a 10% buffer, signs with
the local account, broadcasts and waits for the receipt.

Usage:
    deployer = Deployer(w3, load_account(settings.require_private_key()))
    result = deployer.deploy(output.abi, output.bytecode, ["42"], contract_name=output.contract_name)
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Sequence

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from ..config.logging_config import log_deployment
from ..config.network import DEFAULT_CHAIN, GAS_LIMIT_BUFFER, get_chain_id, get_tx_url
from ..config.settings import DEFAULT_RECEIPT_TIMEOUT, DeployMode
from ..exceptions import ConfigurationError, MonadDeployError, TransactionError
from ..helpers.contract_io import coerce_args

logger = logging.getLogger(__name__)

__all__ = [
    "DeploymentResult",
    "Deployer",
    "load_account",
    "MOCK_ADDRESS",
    "MOCK_TRANSACTION_HASH",
]

# Canned values returned in mock mode
MOCK_ADDRESS = "0x71C7656EC7ab88b098defB751B7401B5f6d8976F"
MOCK_TRANSACTION_HASH = "0x88df016429689c079f3b2f6ad39fa052532c56795b733da78a91ebe6a713944b"

_HEX_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def load_account(secret: str | None, validate: bool = True) -> LocalAccount:
    """
    Build a signing account from a hex private key.

    Args:
        secret: Private key, with or without ``0x``
        validate: Require exactly 64 hex characters

    Returns:
        LocalAccount

    Raises:
        ConfigurationError: If the key is missing or malformed
    """
    key = (secret or "").strip()
    if not key:
        raise ConfigurationError("PRIVATE_KEY is not set")
    if key.startswith(("0x", "0X")):
        key = key[2:]
    if validate and not _HEX_KEY_RE.match(key):
        raise ConfigurationError("PRIVATE_KEY must be 64 hex characters (optionally 0x-prefixed)")
    try:
        return Account.from_key("0x" + key)
    except Exception as e:
        raise ConfigurationError(f"Invalid PRIVATE_KEY: {e}")


@dataclass
class DeploymentResult:
    success: bool
    contract_name: str | None = None
    address: str | None = None
    transaction_hash: str | None = None
    error: str | None = None
    chain_id: int | None = None
    explorer_url: str | None = None
    abi: list[dict[str, Any]] = field(default_factory=list, repr=False)
    artifact_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Tool response envelope (camelCase, unset fields omitted)."""
        data = {
            "success": self.success,
            "address": self.address,
            "transactionHash": self.transaction_hash,
            "contractName": self.contract_name,
            "chainId": self.chain_id,
            "explorerUrl": self.explorer_url,
            "artifactPath": self.artifact_path,
            "error": self.error,
        }
        return {k: v for k, v in data.items() if v is not None}


class Deployer:
    """Sends contract-creation transactions.

    Args:
        w3: Connected Web3 instance
        account: Signing account
        chain: Chain key from ``config.network.CHAINS``
        mode: ``DeployMode.MOCK`` returns a canned result without any RPC call
        gas_buffer: Multiplier applied to the gas estimate
        receipt_timeout: Seconds to wait for the receipt
    """

    def __init__(
        self,
        w3: Web3 | None,
        account: LocalAccount | None,
        *,
        chain: str = DEFAULT_CHAIN,
        mode: DeployMode = DeployMode.LIVE,
        gas_buffer: float = GAS_LIMIT_BUFFER,
        receipt_timeout: int = DEFAULT_RECEIPT_TIMEOUT,
    ):
        if mode is DeployMode.LIVE and (w3 is None or account is None):
            raise ConfigurationError("Live deployments need a Web3 connection and a signing account")
        self.w3 = w3
        self.account = account
        self.chain = chain
        self.chain_id = get_chain_id(chain)
        self.mode = mode
        self.gas_buffer = gas_buffer
        self.receipt_timeout = receipt_timeout

    def _constructor_args(self, abi: list[dict[str, Any]], constructor_args: Sequence[Any]) -> list[Any]:
        ctor = next((e for e in abi if e.get("type") == "constructor"), None)
        inputs = ctor.get("inputs", []) if ctor else []
        return coerce_args(inputs, list(constructor_args))

    def deploy_or_raise(
        self,
        abi: list[dict[str, Any]],
        bytecode: str,
        constructor_args: Sequence[Any] = (),
        contract_name: str | None = None,
    ) -> DeploymentResult:
        """
        Deploy and return a successful DeploymentResult.

        Raises:
            ValidationError: If the constructor arguments do not match the ABI
            TransactionError: If estimation, sending or the receipt fails; carries
                the transaction hash once the transaction has been broadcast
        """
        if self.mode is DeployMode.MOCK:
            logger.info(f"Mock deployment of {contract_name or 'contract'}")
            return DeploymentResult(
                success=True,
                contract_name=contract_name,
                address=MOCK_ADDRESS,
                transaction_hash=MOCK_TRANSACTION_HASH,
                chain_id=self.chain_id,
                explorer_url=get_tx_url(MOCK_TRANSACTION_HASH, self.chain),
                abi=abi,
            )

        args = self._constructor_args(abi, constructor_args)
        if not bytecode.startswith("0x"):
            bytecode = "0x" + bytecode

        sender = self.account.address
        try:
            # web3 ABI-encodes the arguments here; out-of-range values fail
            factory = self.w3.eth.contract(abi=abi, bytecode=bytecode)
            constructor = factory.constructor(*args)
            estimated = int(constructor.estimate_gas({"from": sender}))
            gas_limit = int(estimated * self.gas_buffer)
            logger.info(f"Gas estimate {estimated:,}, limit {gas_limit:,}")
            tx = constructor.build_transaction({
                "from": sender,
                "nonce": self.w3.eth.get_transaction_count(sender, "pending"),
                "chainId": self.chain_id,
                "gas": gas_limit,
            })
            signed = self.account.sign_transaction(tx)
        except Exception as e:
            raise TransactionError(f"Failed to prepare deployment: {e}") from e

        try:
            tx_hash = Web3.to_hex(self.w3.eth.send_raw_transaction(signed.raw_transaction))
        except Exception as e:
            raise TransactionError(f"Failed to send deployment: {e}") from e
        logger.info(f"Deployment sent: {tx_hash}")

        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except Exception as e:
            raise TransactionError(f"Failed waiting for receipt: {e}", transaction_hash=tx_hash) from e

        address = receipt.get("contractAddress")
        if receipt.get("status") == 0:
            raise TransactionError("Deployment transaction reverted", transaction_hash=tx_hash)
        if not address:
            raise TransactionError("Deployment failed: no contract address in receipt", transaction_hash=tx_hash)

        return DeploymentResult(
            success=True,
            contract_name=contract_name,
            address=Web3.to_checksum_address(address),
            transaction_hash=tx_hash,
            chain_id=self.chain_id,
            explorer_url=get_tx_url(tx_hash, self.chain),
            abi=abi,
        )

    def deploy(
        self,
        abi: list[dict[str, Any]],
        bytecode: str,
        constructor_args: Sequence[Any] = (),
        contract_name: str | None = None,
    ) -> DeploymentResult:
        """Deploy and report the outcome as a DeploymentResult instead of raising."""
        try:
            result = self.deploy_or_raise(abi, bytecode, constructor_args, contract_name)
        except MonadDeployError as e:
            result = DeploymentResult(
                success=False,
                contract_name=contract_name,
                transaction_hash=getattr(e, "transaction_hash", None),
                error=str(e),
                chain_id=self.chain_id,
            )
            if result.transaction_hash:
                result.explorer_url = get_tx_url(result.transaction_hash, self.chain)

        log_deployment(
            logger,
            contract_name or "contract",
            result.address,
            result.transaction_hash,
            success=result.success,
            error=result.error,
        )
        return result
