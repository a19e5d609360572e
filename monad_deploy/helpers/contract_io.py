"""
Contract interaction helpers - read/write calls against a deployed contract.

Public API
----------
ContractHandle(w3, address, abi, account=None)
    ``read(fn, *args)`` performs an eth_call, ``write(fn, *args)`` signs,
    sends and waits for the receipt. Failures raise ContractCallError whose
    ``kind`` is one of CallErrorKind.
classify_failure(message)
    Map a node / revert message onto CallErrorKind.
coerce_args(inputs, raw_args)
    Convert command line strings into the Python values web3 expects.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from eth_account.signers.local import LocalAccount
from eth_utils import is_address, to_checksum_address
from web3 import Web3

from ..config.network import DEFAULT_CHAIN, get_chain_id, get_tx_url
from ..config.settings import DEFAULT_RECEIPT_TIMEOUT
from ..exceptions import (
    CallErrorKind,
    ConfigurationError,
    ContractCallError,
    ValidationError,
)

logger = logging.getLogger(__name__)

__all__ = ["ContractHandle", "classify_failure", "coerce_args"]


# Checked in order; the first matching pattern wins.
_FAILURE_PATTERNS: tuple[tuple[CallErrorKind, tuple[str, ...]], ...] = (
    (CallErrorKind.NOT_OWNER, (
        "not the contract owner",
        "caller is not the owner",
        "ownableunauthorizedaccount",
        "not owner",
    )),
    (CallErrorKind.UNAUTHORIZED, (
        "only chairperson",
        "unauthorized",
        "not authorized",
        "not allowed",
        "access denied",
        "accesscontrol",
    )),
    (CallErrorKind.INSUFFICIENT_FUNDS, (
        "insufficient funds",
        "insufficient balance",
    )),
    (CallErrorKind.NONCE, (
        "nonce too low",
        "nonce too high",
        "replacement transaction underpriced",
        "already known",
    )),
    (CallErrorKind.REVERTED, (
        "execution reverted",
        "revert",
    )),
    (CallErrorKind.NETWORK, (
        "connection",
        "timed out",
        "timeout",
        "max retries exceeded",
        "name or service not known",
    )),
)


def classify_failure(message: str) -> CallErrorKind:
    """Return the CallErrorKind describing ``message``."""
    text = (message or "").lower()
    for kind, patterns in _FAILURE_PATTERNS:
        if any(p in text for p in patterns):
            return kind
    return CallErrorKind.UNKNOWN


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValidationError(f"Invalid bool value: {value!r}")


def _coerce_value(abi_type: str, value: Any, components: Sequence[dict] | None = None) -> Any:
    if abi_type.endswith("]"):
        base = abi_type[: abi_type.rindex("[")]
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                raise ValidationError(f"Expected a JSON array for {abi_type}, got {value!r}")
        if not isinstance(value, (list, tuple)):
            raise ValidationError(f"Expected an array for {abi_type}, got {value!r}")
        return [_coerce_value(base, item, components) for item in value]

    if abi_type == "tuple":
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                raise ValidationError(f"Expected a JSON array for tuple, got {value!r}")
        if components and isinstance(value, dict):
            value = [value[c["name"]] for c in components]
        if components:
            return tuple(
                _coerce_value(c["type"], item, c.get("components"))
                for c, item in zip(components, value)
            )
        return tuple(value)

    if abi_type.startswith(("uint", "int")):
        if isinstance(value, bool):
            raise ValidationError(f"Expected an integer for {abi_type}, got {value!r}")
        if isinstance(value, str):
            try:
                return int(value.strip(), 0)
            except ValueError:
                raise ValidationError(f"Invalid {abi_type} value: {value!r}")
        return int(value)

    if abi_type == "bool":
        return _parse_bool(value) if isinstance(value, str) else bool(value)

    if abi_type == "address":
        if not isinstance(value, str) or not is_address(value):
            raise ValidationError(f"Invalid address: {value!r}")
        return to_checksum_address(value)

    if abi_type.startswith("bytes"):
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        if isinstance(value, str) and value.startswith("0x"):
            try:
                return bytes.fromhex(value[2:])
            except ValueError:
                raise ValidationError(f"Invalid hex value for {abi_type}: {value!r}")
        raise ValidationError(f"Expected 0x-prefixed hex for {abi_type}, got {value!r}")

    return value


def coerce_args(inputs: Sequence[dict[str, Any]], raw_args: Sequence[Any]) -> list[Any]:
    """
    Convert raw arguments (typically strings) to the types declared in ``inputs``.

    Args:
        inputs: ABI ``inputs`` list of the function or constructor
        raw_args: Positional argument values

    Returns:
        List of converted values

    Raises:
        ValidationError: On arity mismatch or an unconvertible value
    """
    if len(inputs) != len(raw_args):
        raise ValidationError(f"Expected {len(inputs)} argument(s), got {len(raw_args)}")
    return [
        _coerce_value(inp["type"], value, inp.get("components"))
        for inp, value in zip(inputs, raw_args)
    ]


class ContractHandle:
    """Typed access to one deployed contract."""

    def __init__(
        self,
        w3: Web3,
        address: str,
        abi: list[dict[str, Any]],
        account: LocalAccount | None = None,
        *,
        chain: str = DEFAULT_CHAIN,
        receipt_timeout: int = DEFAULT_RECEIPT_TIMEOUT,
    ):
        if not isinstance(address, str) or not is_address(address):
            raise ValidationError(f"Invalid contract address: {address!r}")
        self.w3 = w3
        self.address = to_checksum_address(address)
        self.abi = abi
        self.account = account
        self.chain = chain
        self.receipt_timeout = receipt_timeout
        self.contract = w3.eth.contract(address=self.address, abi=abi)

    @classmethod
    def from_artifact(cls, w3: Web3, artifact, account: LocalAccount | None = None, **kwargs) -> "ContractHandle":
        return cls(w3, artifact.address, artifact.abi, account, **kwargs)

    def function_abi(self, fn: str, arity: int | None = None) -> dict[str, Any]:
        """ABI entry for ``fn``; with overloads the one taking ``arity`` arguments."""
        candidates = [e for e in self.abi if e.get("type") == "function" and e.get("name") == fn]
        if not candidates:
            available = sorted({e["name"] for e in self.abi if e.get("type") == "function"})
            raise ValidationError(f"Function {fn} not found in ABI. Available: {', '.join(available)}")
        if arity is not None:
            for entry in candidates:
                if len(entry.get("inputs", [])) == arity:
                    return entry
        return candidates[0]

    def _prepare(self, fn: str, args: Sequence[Any]):
        entry = self.function_abi(fn, len(args))
        values = coerce_args(entry.get("inputs", []), args)
        return getattr(self.contract.functions, fn)(*values)

    def read(self, fn: str, *args: Any) -> Any:
        """Call a view/pure function and return its decoded result."""
        call = self._prepare(fn, args)
        try:
            result = call.call()
        except Exception as e:
            message = str(e)
            logger.error(f"Read {fn} failed: {message}")
            raise ContractCallError(message, kind=classify_failure(message)) from e
        logger.debug(f"{fn}({', '.join(map(str, args))}) -> {result}")
        return result

    def write(self, fn: str, *args: Any):
        """
        Send a state-changing transaction and wait for it to be mined.

        Returns:
            Transaction receipt

        Raises:
            ConfigurationError: If no signing account was supplied
            ContractCallError: If sending fails or the transaction reverted
        """
        if self.account is None:
            raise ConfigurationError("A signing account is required for write calls (set PRIVATE_KEY)")

        call = self._prepare(fn, args)
        tx_hash = None
        try:
            tx = call.build_transaction({
                "from": self.account.address,
                "nonce": self.w3.eth.get_transaction_count(self.account.address, "pending"),
                "chainId": get_chain_id(self.chain),
            })
            signed = self.account.sign_transaction(tx)
            tx_hash = Web3.to_hex(self.w3.eth.send_raw_transaction(signed.raw_transaction))
            logger.info(f"{fn} sent: {tx_hash}")
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except Exception as e:
            message = str(e)
            logger.error(f"Write {fn} failed: {message}")
            raise ContractCallError(message, kind=classify_failure(message), transaction_hash=tx_hash) from e

        if receipt.get("status") == 0:
            raise ContractCallError(
                f"Transaction {tx_hash} reverted",
                kind=CallErrorKind.REVERTED,
                transaction_hash=tx_hash,
            )

        url = get_tx_url(tx_hash, self.chain)
        logger.info(f"{fn} mined in block {receipt.get('blockNumber')}" + (f" | {url}" if url else ""))
        return receipt
