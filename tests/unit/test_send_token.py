"""Unit tests for the ERC20 batch transfer runner."""

from decimal import Decimal

import pytest

from monad_deploy.commands.send_token import (
    RecipientOutcome,
    TokenSender,
    TransferBatchResult,
    to_base_units,
    validate_token_address,
)
from monad_deploy.exceptions import TransactionError, ValidationError

TOKEN = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
ALICE = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
BOB = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"


@pytest.fixture
def token_functions(fake_w3):
    functions = fake_w3.eth.contract.return_value.functions
    functions.symbol.return_value.call.return_value = "TST"
    functions.decimals.return_value.call.return_value = 6
    functions.balanceOf.return_value.call.return_value = 10**12
    functions.transfer.return_value.build_transaction.side_effect = lambda params: {**params, "data": "0xa9059cbb"}
    return functions


@pytest.fixture
def sender(fake_w3, fake_account, token_functions):
    return TokenSender(fake_w3, fake_account)


class TestToBaseUnits:
    """Test human amount conversion."""

    @pytest.mark.parametrize(
        "amount, decimals, expected",
        [("1", 18, 10**18), ("1.5", 6, 1_500_000), (2, 0, 2), ("0.000001", 6, 1), (Decimal("3"), 2, 300)],
    )
    def test_conversion(self, amount, decimals, expected):
        assert to_base_units(amount, decimals) == expected

    @pytest.mark.parametrize("amount", ["0", "-1", "abc", "", "NaN"])
    def test_rejects_non_positive_or_garbage(self, amount):
        with pytest.raises(ValidationError):
            to_base_units(amount, 18)

    def test_rejects_excess_precision(self):
        with pytest.raises(ValidationError, match="decimal places"):
            to_base_units("0.1234567", 6)


class TestValidateTokenAddress:
    @pytest.mark.parametrize(
        "value",
        [None, "", 123, "5FbDB2315678afecb367f032d93F642f64180aa3", "0x1234", TOKEN + "00", "0x" + "zz" * 20],
    )
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            validate_token_address(value)

    def test_valid_lowercase(self):
        assert validate_token_address(TOKEN.lower()) == TOKEN


class TestSend:
    """Test batch behaviour."""

    def test_all_succeed(self, sender, fake_w3, token_functions):
        result = sender.send(TOKEN, [ALICE, BOB], 1000)
        assert result.success
        assert [o.to for o in result.sent] == [ALICE.lower(), BOB.lower()]
        assert result.failed == []
        assert all(o.explorer_url.startswith("https://explorer.testnet.monad.xyz/tx/0x") for o in result.sent)
        token_functions.transfer.assert_any_call(ALICE, 1000)
        token_functions.transfer.assert_any_call(BOB, 1000)

    def test_nonces_increment(self, sender, fake_w3, token_functions):
        sender.send(TOKEN, [ALICE, BOB], 1)
        calls = token_functions.transfer.return_value.build_transaction.call_args_list
        assert [c[0][0]["nonce"] for c in calls] == [7, 8]

    def test_recipients_lowercased(self, sender):
        result = sender.send(TOKEN, ["  " + ALICE.upper().replace("0X", "0x") + " "], 1)
        assert result.sent[0].to == ALICE.lower()

    def test_malformed_recipient_never_reaches_network(self, sender, fake_w3, token_functions):
        """Test that a bad recipient is recorded as failed without any transaction."""
        result = sender.send(TOKEN, ["0xnot-an-address", "1234"], 1)
        assert not result.success
        assert [o.to for o in result.failed] == ["0xnot-an-address", "1234"]
        assert all("Invalid recipient" in o.error for o in result.failed)
        token_functions.transfer.assert_not_called()
        fake_w3.eth.send_raw_transaction.assert_not_called()

    def test_mixed_batch_only_valid_recipients_attempted(self, sender, token_functions):
        """Test that valid recipients go out while malformed ones never reach transfer."""
        result = sender.send(TOKEN, [ALICE, "0xbad", BOB, "1234"], 5)
        assert token_functions.transfer.call_count == 2
        token_functions.transfer.assert_any_call(ALICE, 5)
        token_functions.transfer.assert_any_call(BOB, 5)
        assert len(result.sent) + len(result.failed) == 4
        assert [o.to for o in result.sent] == [ALICE.lower(), BOB.lower()]
        assert [o.to for o in result.failed] == ["0xbad", "1234"]
        assert all("Invalid recipient" in o.error for o in result.failed)

    def test_nonce_failure_raises_package_error(self, sender, fake_w3):
        fake_w3.eth.get_transaction_count.side_effect = ConnectionError("rpc down")
        with pytest.raises(TransactionError, match="rpc down"):
            sender.send(TOKEN, [ALICE], 1)
        fake_w3.eth.send_raw_transaction.assert_not_called()

    def test_partial_failure_still_succeeds(self, sender, fake_w3):
        fake_w3.eth.send_raw_transaction.side_effect = [bytes.fromhex("11" * 32), ValueError("nonce too low")]
        result = sender.send(TOKEN, [ALICE, BOB], 1)
        assert result.success
        assert len(result.sent) == 1
        assert result.failed[0].to == BOB.lower()
        assert "nonce too low" in result.failed[0].error

    def test_all_fail(self, sender, fake_w3):
        fake_w3.eth.send_raw_transaction.side_effect = ValueError("insufficient funds")
        result = sender.send(TOKEN, [ALICE, BOB], 1)
        assert not result.success
        assert result.to_dict()["error"] == "All transfers failed"

    def test_reverted_transfer_keeps_hash(self, sender, fake_w3):
        fake_w3.eth.wait_for_transaction_receipt.return_value = {"status": 0}
        result = sender.send(TOKEN, [ALICE], 1)
        assert not result.success
        assert result.failed[0].tx_hash == "0x" + "ab" * 32

    @pytest.mark.parametrize("amount", [0, -5, 1.5, True, "10"])
    def test_bad_amount(self, sender, amount):
        with pytest.raises(ValidationError):
            sender.send(TOKEN, [ALICE], amount)

    def test_empty_recipients(self, sender):
        with pytest.raises(ValidationError):
            sender.send(TOKEN, [], 1)

    def test_bad_token(self, sender, fake_w3):
        with pytest.raises(ValidationError):
            sender.send("0x1234", [ALICE], 1)
        fake_w3.eth.send_raw_transaction.assert_not_called()

    def test_token_info_failure_is_not_fatal(self, sender, token_functions):
        token_functions.symbol.return_value.call.side_effect = ValueError("no symbol")
        assert sender.send(TOKEN, [ALICE], 1).success


class TestHumanAmounts:
    """Test decimals-aware sending."""

    def test_uses_token_decimals(self, sender, token_functions):
        sender.send_human_amount(TOKEN, [ALICE], "2.5")
        token_functions.transfer.assert_called_once_with(ALICE, 2_500_000)

    def test_defaults_to_18_decimals(self, sender, token_functions):
        token_functions.decimals.return_value.call.side_effect = ValueError("no decimals")
        sender.send_human_amount(TOKEN, [ALICE], "1")
        token_functions.transfer.assert_called_once_with(ALICE, 10**18)


class TestResultEnvelope:
    def test_to_dict(self):
        result = TransferBatchResult(
            token_address=TOKEN,
            amount=1,
            sent=[RecipientOutcome(to=ALICE.lower(), tx_hash="0x01", explorer_url="https://x/tx/0x01")],
            failed=[RecipientOutcome(to="bad", error="Invalid recipient address: bad")],
        )
        assert result.to_dict() == {
            "success": True,
            "sent": [{"to": ALICE.lower(), "txHash": "0x01", "explorerUrl": "https://x/tx/0x01"}],
            "failed": [{"to": "bad", "error": "Invalid recipient address: bad"}],
        }
