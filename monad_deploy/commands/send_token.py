"""
ERC20 batch transfer - send the same amount of a token to many recipients.

Transfers run one after another from a single account. A failing recipient
is recorded and the batch continues; the batch only fails as a whole when
no transfer went through.

Recipients are lowercased before validation and are reported back in that
form.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address
from web3 import Web3

from ..config.abis import ERC20_ABI
from ..config.network import DEFAULT_CHAIN, get_chain_id, get_tx_url
from ..config.settings import DEFAULT_RECEIPT_TIMEOUT
from ..exceptions import TransactionError, ValidationError

logger = logging.getLogger(__name__)

__all__ = [
    "RecipientOutcome",
    "TransferBatchResult",
    "TokenSender",
    "to_base_units",
    "validate_token_address",
    "DEFAULT_DECIMALS",
]

DEFAULT_DECIMALS = 18


def to_base_units(amount: Any, decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Convert a human amount ("1.5") to integer base units.

    Raises:
        ValidationError: If the amount is not a positive number or has more
            fractional digits than the token supports
    """
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount: {amount}")
    if not value.is_finite() or value <= 0:
        raise ValidationError(f"Amount must be greater than 0, got {amount}")
    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValidationError(f"Amount {amount} has more than {decimals} decimal places")
    return int(scaled)


def validate_token_address(token_address: Any) -> ChecksumAddress:
    """Strict token address check; returns the checksummed address."""
    if not isinstance(token_address, str) or not token_address:
        raise ValidationError("Token address is required")
    if not token_address.startswith("0x") or len(token_address) != 42 or not is_address(token_address):
        raise ValidationError(f"Invalid token address: {token_address}")
    return to_checksum_address(token_address)


@dataclass
class RecipientOutcome:
    to: str
    tx_hash: str | None = None
    explorer_url: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None and self.tx_hash is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"to": self.to}
        if self.tx_hash:
            data["txHash"] = self.tx_hash
        if self.explorer_url:
            data["explorerUrl"] = self.explorer_url
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class TransferBatchResult:
    token_address: str
    amount: int
    sent: list[RecipientOutcome] = field(default_factory=list)
    failed: list[RecipientOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.sent) > 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "sent": [o.to_dict() for o in self.sent],
            "failed": [o.to_dict() for o in self.failed],
        }
        if not self.success:
            data["error"] = "All transfers failed"
        return data


class TokenSender:
    """Sequential ERC20 ``transfer`` calls from one account.

    Args:
        w3: Connected Web3 instance
        account: Sending account
        chain: Chain key from ``config.network.CHAINS``
        receipt_timeout: Seconds to wait for each receipt
    """

    def __init__(
        self,
        w3: Web3,
        account: LocalAccount,
        *,
        chain: str = DEFAULT_CHAIN,
        receipt_timeout: int = DEFAULT_RECEIPT_TIMEOUT,
    ):
        self.w3 = w3
        self.account = account
        self.chain = chain
        self.chain_id = get_chain_id(chain)
        self.receipt_timeout = receipt_timeout

    def _token(self, token_address: str):
        return self.w3.eth.contract(address=token_address, abi=ERC20_ABI)

    def token_decimals(self, token_address: str) -> int:
        """Token decimals, or 18 when the token does not answer."""
        token = self._token(validate_token_address(token_address))
        try:
            return int(token.functions.decimals().call())
        except Exception as e:
            logger.warning(f"Could not read decimals of {token_address}, assuming {DEFAULT_DECIMALS}: {e}")
            return DEFAULT_DECIMALS

    def _log_token_info(self, token, amount: int, count: int) -> None:
        try:
            symbol = token.functions.symbol().call()
            decimals = int(token.functions.decimals().call())
            balance = int(token.functions.balanceOf(self.account.address).call())
        except Exception as e:
            logger.warning(f"Could not read token info: {e}")
            return
        needed = amount * count
        logger.info(
            f"Token {symbol}: balance {Decimal(balance).scaleb(-decimals)}, "
            f"sending {Decimal(amount).scaleb(-decimals)} to {count} recipient(s)"
        )
        if balance < needed:
            logger.warning(f"Balance {balance} is below the {needed} needed for every transfer")

    def send(self, token_address: str, recipients: Sequence[str], amount: int) -> TransferBatchResult:
        """
        Transfer ``amount`` base units of the token to each recipient.

        Args:
            token_address: ERC20 contract address
            recipients: Recipient addresses
            amount: Amount in base units, > 0

        Returns:
            TransferBatchResult with one outcome per recipient

        Raises:
            ValidationError: If the token address, amount or recipient list is invalid
            TransactionError: If the starting nonce cannot be read
        """
        token_checksum = validate_token_address(token_address)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError(f"Amount must be a positive integer of base units, got {amount!r}")
        if not recipients:
            raise ValidationError("At least one recipient is required")

        result = TransferBatchResult(token_address=token_checksum, amount=amount)
        token = self._token(token_checksum)
        self._log_token_info(token, amount, len(recipients))

        sender = self.account.address
        try:
            nonce = self.w3.eth.get_transaction_count(sender, "pending")
        except Exception as e:
            raise TransactionError(f"Failed to fetch nonce for {sender}: {e}") from e

        for raw in recipients:
            to = raw.strip().lower() if isinstance(raw, str) else str(raw)
            if not to.startswith("0x") or not is_address(to):
                logger.warning(f"Skipping invalid recipient {to}")
                result.failed.append(RecipientOutcome(to=to, error=f"Invalid recipient address: {to}"))
                continue

            tx_hash = None
            try:
                tx = token.functions.transfer(to_checksum_address(to), amount).build_transaction({
                    "from": sender,
                    "nonce": nonce,
                    "chainId": self.chain_id,
                })
                signed = self.account.sign_transaction(tx)
                tx_hash = Web3.to_hex(self.w3.eth.send_raw_transaction(signed.raw_transaction))
                nonce += 1
                receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
            except Exception as e:
                logger.error(f"Transfer to {to} failed: {e}")
                result.failed.append(RecipientOutcome(to=to, tx_hash=tx_hash, error=str(e)))
                continue

            if receipt.get("status") == 0:
                logger.error(f"Transfer to {to} reverted: {tx_hash}")
                result.failed.append(RecipientOutcome(to=to, tx_hash=tx_hash, error="Transfer reverted"))
                continue

            logger.info(f"Transfer to {to} confirmed: {tx_hash}")
            result.sent.append(RecipientOutcome(to=to, tx_hash=tx_hash, explorer_url=get_tx_url(tx_hash, self.chain)))

        logger.info(f"Batch finished: {len(result.sent)} sent, {len(result.failed)} failed")
        return result

    def send_human_amount(self, token_address: str, recipients: Sequence[str], amount: Any) -> TransferBatchResult:
        """Like ``send`` but ``amount`` is in whole tokens ("1.5"), scaled by the token's decimals."""
        validate_token_address(token_address)
        base_units = to_base_units(amount, self.token_decimals(token_address))
        return self.send(token_address, recipients, base_units)
