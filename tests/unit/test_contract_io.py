"""Unit tests for contract reads/writes, failure classification and argument coercion."""

from unittest.mock import MagicMock

import pytest
from web3.exceptions import ContractLogicError

from monad_deploy.exceptions import (
    CallErrorKind,
    ConfigurationError,
    ContractCallError,
    ValidationError,
)
from monad_deploy.helpers.contract_io import ContractHandle, classify_failure, coerce_args

ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TX_HASH_BYTES = bytes.fromhex("cd" * 32)


@pytest.fixture
def handle(fake_w3, fake_account, simple_storage_abi):
    return ContractHandle(fake_w3, ADDRESS, simple_storage_abi, fake_account)


@pytest.fixture
def functions(fake_w3):
    return fake_w3.eth.contract.return_value.functions


class TestClassifyFailure:
    """Test mapping of node / revert messages to CallErrorKind."""

    @pytest.mark.parametrize(
        "message, kind",
        [
            ("execution reverted: Not the contract owner", CallErrorKind.NOT_OWNER),
            ("Ownable: caller is not the owner", CallErrorKind.NOT_OWNER),
            ("execution reverted: Only chairperson can give right to vote.", CallErrorKind.UNAUTHORIZED),
            ("AccessControl: account is missing role", CallErrorKind.UNAUTHORIZED),
            ("insufficient funds for gas * price + value", CallErrorKind.INSUFFICIENT_FUNDS),
            ("nonce too low", CallErrorKind.NONCE),
            ("execution reverted: Value must be positive", CallErrorKind.REVERTED),
            ("HTTPConnectionPool: Max retries exceeded", CallErrorKind.NETWORK),
            ("something odd", CallErrorKind.UNKNOWN),
            ("", CallErrorKind.UNKNOWN),
        ],
    )
    def test_kinds(self, message, kind):
        assert classify_failure(message) is kind


class TestCoerceArgs:
    """Test conversion of command line strings to ABI values."""

    def test_scalars(self):
        inputs = [
            {"type": "uint256"},
            {"type": "int8"},
            {"type": "bool"},
            {"type": "address"},
            {"type": "string"},
        ]
        values = coerce_args(inputs, ["42", "-3", "true", ADDRESS.lower(), "hello"])
        assert values == [42, -3, True, ADDRESS, "hello"]

    def test_hex_int(self):
        assert coerce_args([{"type": "uint256"}], ["0x10"]) == [16]

    def test_non_string_values_pass_through(self):
        assert coerce_args([{"type": "uint256"}, {"type": "bool"}], [5, False]) == [5, False]

    def test_arrays_from_json(self):
        values = coerce_args([{"type": "uint256[]"}], ["[1, 2, 3]"])
        assert values == [[1, 2, 3]]

    def test_address_array(self):
        values = coerce_args([{"type": "address[2]"}], [[ADDRESS.lower(), ADDRESS.lower()]])
        assert values == [[ADDRESS, ADDRESS]]

    def test_bytes(self):
        assert coerce_args([{"type": "bytes32"}], ["0x" + "00" * 32]) == [b"\x00" * 32]

    def test_tuple_with_components(self):
        inputs = [{
            "type": "tuple",
            "components": [{"name": "a", "type": "uint256"}, {"name": "b", "type": "bool"}],
        }]
        assert coerce_args(inputs, ['{"a": "7", "b": "false"}']) == [(7, False)]

    def test_arity_mismatch(self):
        with pytest.raises(ValidationError, match="Expected 1 argument"):
            coerce_args([{"type": "uint256"}], [])

    @pytest.mark.parametrize(
        "abi_type, raw",
        [("uint256", "abc"), ("bool", "maybe"), ("address", "0x123"), ("bytes32", "zz"), ("uint256[]", "not json")],
    )
    def test_bad_values(self, abi_type, raw):
        with pytest.raises(ValidationError):
            coerce_args([{"type": abi_type}], [raw])


class TestRead:
    """Test eth_call reads."""

    def test_read_returns_value(self, handle, functions):
        functions.getValue.return_value.call.return_value = 42
        assert handle.read("getValue") == 42

    def test_read_revert_classified(self, handle, functions):
        functions.getValue.return_value.call.side_effect = ContractLogicError("execution reverted: Not the contract owner")
        with pytest.raises(ContractCallError) as exc_info:
            handle.read("getValue")
        assert exc_info.value.kind is CallErrorKind.NOT_OWNER

    def test_unknown_function(self, handle):
        with pytest.raises(ValidationError, match="Function nope not found"):
            handle.read("nope")

    def test_invalid_address(self, fake_w3, simple_storage_abi):
        with pytest.raises(ValidationError):
            ContractHandle(fake_w3, "0x1234", simple_storage_abi)

    def test_from_artifact(self, fake_w3, sample_artifact):
        h = ContractHandle.from_artifact(fake_w3, sample_artifact)
        assert h.address == sample_artifact.address
        assert h.abi == sample_artifact.abi


class TestWrite:
    """Test signed transactions."""

    def _wire(self, fake_w3, functions, receipt):
        functions.setValue.return_value.build_transaction.side_effect = lambda params: {**params, "data": "0x55"}
        fake_w3.eth.send_raw_transaction.return_value = TX_HASH_BYTES
        fake_w3.eth.wait_for_transaction_receipt.return_value = receipt

    def test_write_success(self, handle, fake_w3, functions, fake_account):
        self._wire(fake_w3, functions, {"status": 1, "blockNumber": 5})
        receipt = handle.write("setValue", "42")
        assert receipt["status"] == 1
        functions.setValue.assert_called_once_with(42)
        fake_account.sign_transaction.assert_called_once()

    def test_write_reverted(self, handle, fake_w3, functions):
        self._wire(fake_w3, functions, {"status": 0, "blockNumber": 5})
        with pytest.raises(ContractCallError) as exc_info:
            handle.write("setValue", "42")
        assert exc_info.value.kind is CallErrorKind.REVERTED
        assert exc_info.value.transaction_hash == "0x" + "cd" * 32

    def test_write_send_failure(self, handle, fake_w3, functions):
        self._wire(fake_w3, functions, {"status": 1})
        fake_w3.eth.send_raw_transaction.side_effect = ValueError("insufficient funds for gas * price + value")
        with pytest.raises(ContractCallError) as exc_info:
            handle.write("setValue", "1")
        assert exc_info.value.kind is CallErrorKind.INSUFFICIENT_FUNDS
        assert exc_info.value.transaction_hash is None

    def test_write_without_account(self, fake_w3, simple_storage_abi):
        h = ContractHandle(fake_w3, ADDRESS, simple_storage_abi)
        with pytest.raises(ConfigurationError):
            h.write("setValue", "1")

    def test_write_bad_argument_never_sends(self, handle, fake_w3):
        with pytest.raises(ValidationError):
            handle.write("setValue", "not-a-number")
        fake_w3.eth.send_raw_transaction.assert_not_called()
