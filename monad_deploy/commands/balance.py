"""
Native balance lookup - read-only, no signing key needed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from eth_utils import is_address, to_checksum_address
from web3 import Web3

from ..config.network import DEFAULT_CHAIN, get_address_url, get_chain_config
from ..exceptions import MonadDeployError, ValidationError

logger = logging.getLogger(__name__)

__all__ = ["BalanceResult", "get_native_balance"]


@dataclass(frozen=True)
class BalanceResult:
    address: str
    balance_wei: int
    symbol: str
    explorer_url: str | None = None

    @property
    def balance(self) -> Decimal:
        return Decimal(Web3.from_wei(self.balance_wei, "ether"))

    @property
    def formatted(self) -> str:
        """Balance in whole units without exponent notation, e.g. ``"1.5"``."""
        return format(self.balance, "f")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": True,
            "address": self.address,
            "balance": self.formatted,
            "balanceWei": str(self.balance_wei),
            "symbol": self.symbol,
            "message": f"Balance for {self.address}: {self.formatted} {self.symbol}",
        }
        if self.explorer_url:
            data["explorerUrl"] = self.explorer_url
        return data


def get_native_balance(w3: Web3, address: Any, chain: str = DEFAULT_CHAIN) -> BalanceResult:
    """
    Read the native (MON) balance of ``address``.

    Args:
        w3: Connected Web3 instance
        address: 0x-prefixed account or contract address
        chain: Chain key from ``config.network.CHAINS``

    Returns:
        BalanceResult

    Raises:
        ValidationError: If the address is malformed
        MonadDeployError: If the RPC call fails
    """
    if not isinstance(address, str) or not address.strip().startswith("0x") or not is_address(address.strip()):
        raise ValidationError(f"Invalid address: {address}")
    checksum = to_checksum_address(address.strip())

    try:
        wei = int(w3.eth.get_balance(checksum))
    except Exception as e:
        logger.error(f"Balance lookup for {checksum} failed: {e}")
        raise MonadDeployError(f"Error fetching balance: {e}") from e

    result = BalanceResult(
        address=checksum,
        balance_wei=wei,
        symbol=get_chain_config(chain)["currency"],
        explorer_url=get_address_url(checksum, chain),
    )
    logger.info(f"Balance of {checksum}: {result.formatted} {result.symbol}")
    return result
